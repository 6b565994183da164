"""
Event reporter — reacts to cargo build events in stream order.

Artifacts with an executable are reported under ``build`` only; under
``bench`` nothing is reported because benchmark executables are run by
cargo itself.  Build-finished events are recorded.  Everything else goes
to the pass-through reporter.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from cargo_pgoe.core.invocation import BuildCommandKind
from cargo_pgoe.io.messages import (
    BuildEvent,
    BuildFinished,
    CompilerArtifact,
    CompilerMessage,
)
from cargo_pgoe.io.schema import InstrumentedArtifact
from cargo_pgoe.policy.classify import classify_artifact, profile_env_assignment
from cargo_pgoe.policy.profile import PgoProfile

logger = logging.getLogger(__name__)


def passthrough(event: BuildEvent, out: TextIO) -> None:
    """Forward an event without orchestrator semantics."""
    if isinstance(event, CompilerMessage):
        if event.message.rendered:
            out.write(event.message.rendered)
            if not event.message.rendered.endswith("\n"):
                out.write("\n")
        return
    logger.debug("cargo message: %s", getattr(event, "reason", None))


def format_artifact(artifact: InstrumentedArtifact) -> str:
    return (
        f"[{artifact.category}] {artifact.name} successfully instrumented. "
        f"Now run {artifact.executable} on your workload.\n"
        "If your program creates multiple processes or you will execute it "
        "multiple times in parallel, consider running it with the following "
        "environment variable to have more precise profiles:\n"
        f"{artifact.profile_env}\n"
    )


class ArtifactReporter:
    """Consumes build events for one build request."""

    def __init__(
        self,
        command: BuildCommandKind,
        pgo_dir: Path,
        out: Optional[TextIO] = None,
        profile: PgoProfile | None = None,
    ):
        self.command = command
        self.pgo_dir = pgo_dir
        self.out = out if out is not None else sys.stdout
        self.profile = profile or PgoProfile.v0()
        self.artifacts: List[InstrumentedArtifact] = []
        self.build_succeeded: Optional[bool] = None

    def handle(self, event: BuildEvent) -> None:
        if isinstance(event, CompilerArtifact):
            self._handle_artifact(event)
        elif isinstance(event, BuildFinished):
            self.build_succeeded = event.success
            if event.success:
                logger.info("PGO instrumentation build finished successfully")
            else:
                logger.error("PGO instrumentation build has failed")
        else:
            passthrough(event, self.out)

    def consume(self, events: Iterable[BuildEvent]) -> List[InstrumentedArtifact]:
        """Handle every event in order; return the reported artifacts."""
        for event in events:
            self.handle(event)
        return self.artifacts

    def _handle_artifact(self, event: CompilerArtifact) -> None:
        if event.executable is None:
            return
        # TODO: report bench executables once their profile layout is settled
        if self.command is not BuildCommandKind.BUILD:
            return

        name = event.target.name
        artifact = InstrumentedArtifact(
            category=classify_artifact(event.target.kind).value,
            name=name,
            executable=event.executable,
            profile_env=profile_env_assignment(self.pgo_dir, name, self.profile),
        )
        self.artifacts.append(artifact)
        self.out.write(format_artifact(artifact))
