"""
Build invocation builder.

Composes the complete cargo child-process descriptor for an instrumented
build: program, ordered arguments, environment overlay and stream wiring.
Building an invocation has no process-global side effects; the compiler
flags are carried in an overlay that is only applied at spawn time.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from cargo_pgoe.core.args import SanitizedArguments
from cargo_pgoe.core.toolchain import get_host_triple
from cargo_pgoe.policy.profile import PgoProfile

logger = logging.getLogger(__name__)


class BuildCommandKind(str, Enum):
    """Cargo command used for the instrumented compilation"""
    BUILD = "build"
    BENCH = "bench"

    @property
    def uses_release(self) -> bool:
        """cargo bench selects its own optimized profile"""
        return self is BuildCommandKind.BUILD


class StreamMode(str, Enum):
    """How a standard stream of the child is wired"""
    INHERIT = "inherit"
    CAPTURE = "capture"


@dataclass(frozen=True)
class BuildInvocation:
    """Fully specified cargo execution"""
    program: str
    args: Tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    stdin: StreamMode = StreamMode.INHERIT
    stdout: StreamMode = StreamMode.CAPTURE
    stderr: StreamMode = StreamMode.INHERIT

    def command_line(self) -> List[str]:
        return [self.program, *self.args]

    def child_environment(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """*base* (default: os.environ) with the overlay applied on top"""
        merged = dict(os.environ if base is None else base)
        merged.update(self.env)
        return merged


def compose_rustflags(existing: str, injected: str) -> str:
    """Append *injected* to *existing*, never replacing it."""
    if existing:
        return f"{existing} {injected}"
    return injected


def build_invocation(
    command: BuildCommandKind,
    injected_flags: str,
    sanitized: SanitizedArguments,
    cargo: str = "cargo",
    environ: Optional[Mapping[str, str]] = None,
    host_triple_resolver: Optional[Callable[[], str]] = None,
    profile: PgoProfile | None = None,
) -> BuildInvocation:
    """
    Compose the cargo invocation for an instrumented build.

    Parameters
    ----------
    command : BuildCommandKind
        ``build`` also gets ``--release``; ``bench`` does not.
    injected_flags : str
        Compiler flags appended to the current ``RUSTFLAGS``.
    sanitized : SanitizedArguments
        User arguments with the owned flags already removed.
    cargo : str
        Build driver program.
    environ : Mapping, optional
        Environment the existing ``RUSTFLAGS`` is read from.
        Defaults to ``os.environ``.
    host_triple_resolver : callable, optional
        Returns the default target triple.  Only called when the user did
        not pass ``--target``.  Defaults to ``get_host_triple``.

    Raises ToolchainError when the default target cannot be determined.
    """
    if profile is None:
        profile = PgoProfile.v0()
    if environ is None:
        environ = os.environ
    if host_triple_resolver is None:
        host_triple_resolver = get_host_triple

    rustflags = compose_rustflags(
        environ.get(profile.rustflags_var, ""), injected_flags
    )
    logger.debug("%s=%s", profile.rustflags_var, rustflags)

    args: List[str] = [
        command.value,
        profile.message_format_flag,
        profile.message_format,
    ]
    if command.uses_release:
        args.append(profile.release_flag)

    # An explicit target keeps build scripts out of the instrumented set
    if not sanitized.has_target:
        args.extend([profile.target_flag, host_triple_resolver()])

    args.extend(sanitized.args)

    return BuildInvocation(
        program=cargo,
        args=tuple(args),
        env=MappingProxyType({profile.rustflags_var: rustflags}),
    )
