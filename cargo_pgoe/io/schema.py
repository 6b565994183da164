"""
Schema — Pydantic models for the result of an instrumented build.

Runtime contract fields (present in every report):
  package_name, tool_version, profile_id.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from cargo_pgoe import PACKAGE_NAME, TOOL_VERSION


class InstrumentedArtifact(BaseModel):
    """One executable produced by the instrumented build."""
    category: str            # binary | benchmark | example | artifact
    name: str
    executable: str
    profile_env: str         # LLVM_PROFILE_FILE=<dir>/<name>_%m_%p.profraw


class InstrumentReport(BaseModel):
    """Outcome of ``cargo pgoe instrument``."""
    package_name: str = PACKAGE_NAME
    tool_version: str = TOOL_VERSION
    profile_id: str
    command: str             # build | bench
    pgo_dir: str
    build_succeeded: Optional[bool] = None   # None: no build-finished seen
    artifacts: List[InstrumentedArtifact] = Field(default_factory=list)
