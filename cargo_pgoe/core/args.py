"""
Argument sanitizer for user-supplied cargo arguments.

Strips the arguments the tool must control itself (release mode and the
message format) and records whether the user already picked a target.
Sanitization never fails: unrecognized tokens always pass through.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from cargo_pgoe.policy.profile import PgoProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SanitizedArguments:
    """Pass-through cargo arguments, in original order."""
    args: List[str] = field(default_factory=list)
    has_target: bool = False


def _warn_owned(flag: str) -> None:
    logger.warning(
        "Do not pass `%s` manually, it will be added automatically by cargo-pgoe",
        flag,
    )


def sanitize_cargo_args(
    cargo_args: Iterable[str],
    profile: PgoProfile | None = None,
) -> SanitizedArguments:
    """
    Scan *cargo_args* left to right and drop the owned flags.

    ``--release`` and its short form ``-r`` are dropped.
    ``--message-format`` is dropped together with its value token, or as
    a single ``--message-format=VALUE`` token.
    ``--target`` is kept, together with its value token, and flips
    ``has_target``.  Everything after a bare ``--`` belongs to the
    executed program and passes through untouched.
    """
    if profile is None:
        profile = PgoProfile.v0()

    release_flags = (profile.release_flag, profile.release_short_flag)
    message_format = profile.message_format_flag
    target = profile.target_flag

    args: List[str] = []
    has_target = False

    tokens = iter(cargo_args)
    for arg in tokens:
        if arg in release_flags:
            _warn_owned(arg)
        elif arg == message_format:
            _warn_owned(message_format)
            next(tokens, None)
        elif arg.startswith(message_format + "="):
            _warn_owned(message_format)
        elif arg == target:
            has_target = True
            args.append(arg)
            value = next(tokens, None)
            if value is not None:
                args.append(value)
        elif arg.startswith(target + "="):
            has_target = True
            args.append(arg)
        elif arg == "--":
            args.append(arg)
            args.extend(tokens)
        else:
            args.append(arg)

    return SanitizedArguments(args=args, has_target=has_target)
