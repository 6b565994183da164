"""
Test fixtures for cargo_pgoe.

Provides synthetic cargo JSON messages and fake ``cargo``/``rustc``
executables (small Python scripts), so no Rust toolchain is required.
"""
from __future__ import annotations

import json
import os
import stat
import sys
import textwrap
from pathlib import Path
from typing import List

import pytest


HOST_TRIPLE = "x86_64-unknown-linux-gnu"

RUSTC_VV = textwrap.dedent(f"""\
    rustc 1.80.0 (051478957 2024-07-21)
    binary: rustc
    commit-hash: 051478957371ee0084a7c0913941d2a8c4757bb9
    commit-date: 2024-07-21
    host: {HOST_TRIPLE}
    release: 1.80.0
    LLVM version: 18.1.7
""")


# ── Synthetic cargo messages ─────────────────────────────────────────────────

def make_artifact(
    name: str,
    kind: List[str] | None = None,
    executable: str | None = "/work/target/release/app",
    fresh: bool = False,
) -> dict:
    """Build a minimal compiler-artifact message dict."""
    return {
        "reason": "compiler-artifact",
        "package_id": f"{name} 0.1.0 (path+file:///work)",
        "target": {
            "name": name,
            "kind": kind if kind is not None else ["bin"],
            "crate_types": ["bin"],
            "src_path": "/work/src/main.rs",
        },
        "profile": {"opt_level": "3", "debuginfo": 0, "test": False},
        "features": [],
        "filenames": [executable] if executable else ["/work/target/release/libapp.rlib"],
        "executable": executable,
        "fresh": fresh,
    }


def make_finished(success: bool = True) -> dict:
    return {"reason": "build-finished", "success": success}


def make_compiler_message(rendered: str = "warning: unused variable\n") -> dict:
    return {
        "reason": "compiler-message",
        "package_id": "app 0.1.0 (path+file:///work)",
        "message": {"message": "unused variable", "level": "warning", "rendered": rendered},
    }


def to_lines(*messages: dict) -> List[str]:
    return [json.dumps(m) + "\n" for m in messages]


# ── Fake executables ─────────────────────────────────────────────────────────

def write_executable(path: Path, body: str) -> Path:
    """Write a Python script runnable as a program."""
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def fake_cargo_script(
    lines: List[str],
    exit_code: int = 0,
    record: Path | None = None,
    target_directory: Path | None = None,
) -> str:
    """
    Source of a fake cargo.

    ``cargo metadata`` prints *target_directory*; any other command writes
    *lines* to stdout and exits with *exit_code*.  When *record* is set the
    argv and RUSTFLAGS are dumped there as JSON.
    """
    payload = "".join(lines)
    return f"""
        import json, os, sys
        if sys.argv[1:2] == ["metadata"]:
            print(json.dumps({{"target_directory": {str(target_directory)!r},
                               "workspace_root": "/work", "packages": []}}))
            sys.exit(0)
        record = {str(record) if record else None!r}
        if record:
            with open(record, "w") as f:
                json.dump({{"argv": sys.argv[1:],
                           "rustflags": os.environ.get("RUSTFLAGS")}}, f)
        sys.stdout.write({payload!r})
        sys.stdout.flush()
        sys.exit({exit_code})
    """


@pytest.fixture
def fake_rustc(tmp_path: Path) -> Path:
    """A rustc that answers ``-vV``."""
    return write_executable(
        tmp_path / "rustc",
        f"""
        import sys
        sys.stdout.write({RUSTC_VV!r})
        """,
    )


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    d = tmp_path / "target"
    d.mkdir()
    return d


@pytest.fixture
def clean_env() -> dict:
    """Process environment without RUSTFLAGS."""
    env = dict(os.environ)
    env.pop("RUSTFLAGS", None)
    return env
