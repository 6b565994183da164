"""
Messages — Pydantic models for cargo's JSON build messages.

Cargo writes one JSON object per line on stdout when run with
``--message-format json*``.  The ``reason`` field tags the message kind:

  compiler-artifact   — an artifact was produced (target, executable).
  build-finished      — the build ended (success flag).
  compiler-message    — a rendered compiler diagnostic.

Any other reason decodes to ``UnknownMessage`` and is passed through
untouched, so new cargo message kinds never break the stream.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from cargo_pgoe.core.errors import EventStreamError


# ── Artifact ─────────────────────────────────────────────────────────────────

class ArtifactTarget(BaseModel):
    """Cargo target that produced an artifact."""
    name: str
    kind: List[str] = Field(default_factory=list)
    crate_types: List[str] = Field(default_factory=list)
    src_path: Optional[str] = None


class CompilerArtifact(BaseModel):
    reason: Literal["compiler-artifact"] = "compiler-artifact"
    package_id: Optional[str] = None
    target: ArtifactTarget
    profile: Optional[Dict[str, Any]] = None
    features: List[str] = Field(default_factory=list)
    filenames: List[str] = Field(default_factory=list)
    executable: Optional[str] = None
    fresh: bool = False


# ── Build finished ───────────────────────────────────────────────────────────

class BuildFinished(BaseModel):
    reason: Literal["build-finished"] = "build-finished"
    success: bool


# ── Compiler diagnostic ──────────────────────────────────────────────────────

class Diagnostic(BaseModel):
    message: str = ""
    level: Optional[str] = None
    rendered: Optional[str] = None


class CompilerMessage(BaseModel):
    reason: Literal["compiler-message"] = "compiler-message"
    package_id: Optional[str] = None
    message: Diagnostic


# ── Anything else ────────────────────────────────────────────────────────────

class UnknownMessage(BaseModel):
    """A message kind without orchestrator semantics."""
    reason: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


BuildEvent = Union[CompilerArtifact, BuildFinished, CompilerMessage, UnknownMessage]

_KNOWN_MESSAGES = {
    "compiler-artifact": CompilerArtifact,
    "build-finished": BuildFinished,
    "compiler-message": CompilerMessage,
}


# ── Decoding ─────────────────────────────────────────────────────────────────

def decode_message(line: Union[str, bytes], line_number: int = 0) -> Optional[BuildEvent]:
    """
    Decode one line of cargo output.

    Raw lines are decoded as strict UTF-8.  Returns None for a blank line.
    Raises EventStreamError when the line is not valid UTF-8, is not a JSON
    object, or a known message kind has the wrong shape.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            shown = line.strip().decode("utf-8", errors="backslashreplace")
            raise EventStreamError(line_number, shown, f"invalid UTF-8 ({e.reason})") from e

    stripped = line.strip()
    if not stripped:
        return None

    try:
        d = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise EventStreamError(line_number, stripped, f"not JSON ({e.msg})") from e

    if not isinstance(d, dict):
        raise EventStreamError(line_number, stripped, "not a JSON object")

    reason = d.get("reason")
    model = _KNOWN_MESSAGES.get(reason) if isinstance(reason, str) else None
    if model is None:
        return UnknownMessage(
            reason=reason if isinstance(reason, str) else None,
            raw=d,
        )

    try:
        return model.model_validate(d)
    except ValidationError as e:
        raise EventStreamError(
            line_number, stripped, f"malformed {reason} message ({e.error_count()} errors)"
        ) from e


def iter_messages(lines: Iterable[Union[str, bytes]]) -> Iterator[BuildEvent]:
    """
    Lazily decode *lines* into build events, in order.

    Stops at the first bad line by raising; nothing after it is read.
    """
    for line_number, line in enumerate(lines, start=1):
        event = decode_message(line, line_number)
        if event is not None:
            yield event
