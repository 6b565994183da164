"""
Runner — top-level orchestration of ``cargo pgoe``.

This module ties the workspace, argument handling, the cargo session and
the event reporter together into ``run_instrument``, which can be called
from the CLI or programmatically.

Instrument flow:
  1. Resolve the PGO profile directory; clear it unless profiles are kept.
  2. Sanitize the user's cargo arguments.
  3. Build the cargo invocation with ``-Cprofile-generate`` in RUSTFLAGS.
  4. Spawn cargo and report events as they arrive.
  5. Reap cargo; a non-zero exit fails the request.
"""
from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, TextIO, Tuple

from cargo_pgoe import __version__
from cargo_pgoe.config import settings
from cargo_pgoe.core.args import sanitize_cargo_args
from cargo_pgoe.core.errors import PgoError, ToolchainError
from cargo_pgoe.core.invocation import BuildCommandKind, build_invocation
from cargo_pgoe.core.reporter import ArtifactReporter
from cargo_pgoe.core.session import spawn_build
from cargo_pgoe.core.toolchain import get_host_triple, get_tool_version
from cargo_pgoe.core.workspace import ProjectContext, clear_directory, get_cargo_ctx
from cargo_pgoe.io.schema import InstrumentReport

logger = logging.getLogger(__name__)

SUBCOMMAND_NAME = "pgoe"


# ── Public API ───────────────────────────────────────────────────────────────

def prepare_pgo_directory(ctx: ProjectContext, keep_profiles: bool) -> Path:
    """Resolve the PGO directory, clearing old profiles unless kept."""
    pgo_dir = ctx.get_pgo_directory()
    if keep_profiles:
        logger.info("Keeping existing profiles in %s", pgo_dir)
    else:
        logger.info("PGO profile directory will be cleared: %s", pgo_dir)
        clear_directory(pgo_dir)
    return pgo_dir


def run_instrument(
    ctx: ProjectContext,
    command: BuildCommandKind = BuildCommandKind.BUILD,
    cargo_args: Sequence[str] = (),
    keep_profiles: bool = False,
    cargo: str | None = None,
    rustc: str | None = None,
    environ: Optional[Mapping[str, str]] = None,
    out: Optional[TextIO] = None,
) -> InstrumentReport:
    """
    Run an instrumented cargo build and report its artifacts.

    Parameters
    ----------
    ctx : ProjectContext
        Resolved project output root.
    command : BuildCommandKind
        ``build`` or ``bench``.
    cargo_args : Sequence[str]
        Extra arguments forwarded to cargo after sanitization.
    keep_profiles : bool
        Keep profiles gathered by previous runs.
    cargo, rustc : str, optional
        Toolchain programs. Default to the configured settings.
    environ : Mapping, optional
        Environment the child starts from. Defaults to ``os.environ``.
    out : TextIO, optional
        Where artifact reports are written. Defaults to stdout.

    Raises ToolchainError, EventStreamError, BuildFailedError or OSError.
    """
    cargo = cargo or settings.CARGO
    rustc = rustc or settings.RUSTC

    pgo_dir = prepare_pgo_directory(ctx, keep_profiles)

    sanitized = sanitize_cargo_args(cargo_args, profile=ctx.profile)
    flags = f"{ctx.profile.profile_generate_flag}={pgo_dir}"
    invocation = build_invocation(
        command,
        flags,
        sanitized,
        cargo=cargo,
        environ=environ,
        host_triple_resolver=lambda: get_host_triple(rustc),
        profile=ctx.profile,
    )

    reporter = ArtifactReporter(command, pgo_dir, out=out, profile=ctx.profile)
    with spawn_build(invocation, base_env=environ) as session:
        reporter.consume(session.events())
        session.wait()

    return InstrumentReport(
        profile_id=ctx.profile.profile_id,
        command=command.value,
        pgo_dir=str(pgo_dir),
        build_succeeded=reporter.build_succeeded,
        artifacts=reporter.artifacts,
    )


def environment_info(
    ctx: Optional[ProjectContext] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Print toolchain facts relevant to PGO.  Never fails on a missing tool."""
    if out is None:
        out = sys.stdout

    def line(label: str, value: Optional[str]) -> None:
        out.write(f"{label}: {value if value else 'not found'}\n")

    line("cargo", get_tool_version(settings.CARGO))
    line("rustc", get_tool_version(settings.RUSTC))
    try:
        host = get_host_triple(settings.RUSTC)
    except ToolchainError as e:
        logger.debug("host triple unavailable: %s", e)
        host = None
    line("host", host)
    line(settings.LLVM_PROFDATA, shutil.which(settings.LLVM_PROFDATA))
    if ctx is not None:
        line("pgo directory", str(ctx.get_pgo_directory()))


# ── CLI ──────────────────────────────────────────────────────────────────────

def _split_trailing(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split at the first ``--``; everything after it goes to cargo."""
    if "--" in argv:
        idx = argv.index("--")
        return argv[:idx], argv[idx + 1:]
    return argv, []


_INSTRUMENT_OPTIONS = frozenset({"--keep-profiles", "-h", "--help"})


def _split_instrument_args(tokens: List[str]) -> Tuple[List[str], List[str]]:
    """
    Separate the tokens following ``instrument`` into (ours, cargo's).

    A leading bare word is the cargo command.  Of the options, only
    ``--keep-profiles`` and help belong to the tool; every other token,
    including option values such as ``--target <triple>``, goes to cargo
    in its original order.
    """
    ours: List[str] = []
    cargo: List[str] = []
    rest = list(tokens)
    if rest and not rest[0].startswith("-"):
        ours.append(rest.pop(0))
    for tok in rest:
        if tok in _INSTRUMENT_OPTIONS:
            ours.append(tok)
        else:
            cargo.append(tok)
    return ours, cargo


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo pgoe",
        description="cargo-pgoe — profile-guided optimization for cargo projects",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="subcommand", required=True)

    sub.add_parser("info", help="Show toolchain information relevant to PGO")

    instrument = sub.add_parser(
        "instrument",
        help="Execute a cargo command to create PGO-instrumented artifact(s)",
        description=(
            "Execute a cargo command to create PGO-instrumented artifact(s). "
            "After the artifacts are executed, they produce profiles that can "
            "later be used to optimize the build. Extra cargo arguments may "
            "follow the command, or come after `--`."
        ),
    )
    instrument.add_argument(
        "command",
        nargs="?",
        choices=[c.value for c in BuildCommandKind],
        default=BuildCommandKind.BUILD.value,
        help="Cargo command used for the instrumented compilation",
    )
    instrument.add_argument(
        "--keep-profiles",
        action="store_true",
        help="Do not remove profiles gathered during previous runs",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for cargo-pgoe."""
    if argv is None:
        argv = sys.argv[1:]
    # `cargo pgoe ...` runs `cargo-pgoe pgoe ...`
    if argv and argv[0] == SUBCOMMAND_NAME:
        argv = argv[1:]

    head, trailing = _split_trailing(list(argv))
    parser = build_parser()

    extra: List[str] = []
    idx = next((i for i, tok in enumerate(head) if not tok.startswith("-")), None)
    if idx is not None and head[idx] == "instrument":
        ours, extra = _split_instrument_args(head[idx + 1:])
        head = head[:idx + 1] + ours
    args = parser.parse_args(head)

    if args.subcommand != "instrument" and trailing:
        parser.error(f"unrecognized arguments: {' '.join(trailing)}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.subcommand == "info":
        try:
            ctx: Optional[ProjectContext] = get_cargo_ctx(settings.CARGO)
        except ToolchainError as e:
            logger.warning("%s", e)
            ctx = None
        environment_info(ctx)
        return

    try:
        project = get_cargo_ctx(settings.CARGO)
        report = run_instrument(
            project,
            command=BuildCommandKind(args.command),
            cargo_args=extra + trailing,
            keep_profiles=args.keep_profiles,
        )
    except (PgoError, OSError) as e:
        logger.error("error: %s", e)
        sys.exit(1)

    logger.info(
        "Instrumented %d artifact(s); profiles go to %s",
        len(report.artifacts), report.pgo_dir,
    )


if __name__ == "__main__":
    main()
