"""
Errors raised by the instrumentation core.

Nothing here is recovered locally; every error halts the current build
request and is presented by the CLI entry point.
"""
from __future__ import annotations


class PgoError(RuntimeError):
    """Base class for all cargo_pgoe failures."""


class ToolchainError(PgoError):
    """A toolchain program is missing or reported something unusable."""


class EventStreamError(PgoError):
    """A captured cargo output line is not a valid build message."""

    def __init__(self, line_number: int, line: str, reason: str):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(
            f"invalid cargo message at line {line_number}: {reason}: {line!r}"
        )


class BuildFailedError(PgoError):
    """Cargo exited with a non-zero status."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"cargo exited with status {exit_code}")
