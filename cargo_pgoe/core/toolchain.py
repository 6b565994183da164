"""
Toolchain queries — host target triple and version queries.

The host triple comes from ``rustc -vV``, whose verbose version output
carries a ``host: <triple>`` line.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from typing import List, Optional

from cargo_pgoe.core.errors import ToolchainError

logger = logging.getLogger(__name__)


def _run_capture(cmd: List[str]) -> subprocess.CompletedProcess:
    """Run *cmd* to completion, capturing stdout/stderr as text."""
    try:
        return subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ToolchainError(f"Cannot execute `{cmd[0]}`: {e}") from e


def parse_host_triple(version_output: str) -> Optional[str]:
    """Extract the ``host:`` field from ``rustc -vV`` output."""
    for line in version_output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "host":
            value = value.strip()
            return value or None
    return None


def get_host_triple(rustc: str = "rustc") -> str:
    """
    Return the default target triple of the active toolchain.

    Raises ToolchainError when rustc cannot be run, fails, or does not
    report a host.
    """
    result = _run_capture([rustc, "-vV"])
    if result.returncode != 0:
        raise ToolchainError(
            f"`{rustc} -vV` failed with status {result.returncode}: "
            f"{result.stderr.strip()}"
        )

    triple = parse_host_triple(result.stdout)
    if triple is None:
        raise ToolchainError(
            f"Cannot determine the default target: no host field in `{rustc} -vV` output"
        )

    logger.debug("Resolved host triple: %s", triple)
    return triple


def get_tool_version(program: str) -> Optional[str]:
    """First line of ``<program> --version``, or None if unavailable."""
    if shutil.which(program) is None:
        return None
    try:
        result = subprocess.run(
            [program, "--version"], capture_output=True, text=True
        )
    except OSError:
        return None
    if result.returncode != 0:
        return None
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else None
