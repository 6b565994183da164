"""
Workspace resolver — cargo target directory and profile subdirectories.

The target directory is resolved once per run from ``cargo metadata``.
Subdirectory lookups create the directory on demand; clearing removes the
whole tree and recreates it empty.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from cargo_pgoe.core.errors import ToolchainError
from cargo_pgoe.io.metadata import CargoMetadata
from cargo_pgoe.policy.profile import PgoProfile

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create *path* (and parents) if missing.  Never fails if present."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def clear_directory(path: Path) -> Path:
    """Remove everything under *path* and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    return ensure_directory(path)


class ProjectContext:
    """Resolved output root of the current cargo project."""

    def __init__(self, target_directory: Path, profile: PgoProfile | None = None):
        self.target_directory = Path(target_directory)
        self.profile = profile or PgoProfile.v0()

    def get_pgo_directory(self) -> Path:
        return self._get_target_subdirectory(self.profile.pgo_dir_name)

    def get_bolt_directory(self) -> Path:
        return self._get_target_subdirectory(self.profile.bolt_dir_name)

    def _get_target_subdirectory(self, name: str) -> Path:
        return ensure_directory(self.target_directory / name)

    def __repr__(self) -> str:
        return f"ProjectContext(target_directory={str(self.target_directory)!r})"


def get_cargo_ctx(
    cargo: str = "cargo",
    cwd: Optional[Path] = None,
    profile: PgoProfile | None = None,
) -> ProjectContext:
    """
    Query ``cargo metadata`` from *cwd* and build the ProjectContext.

    Raises ToolchainError if cargo cannot be run or its output is unusable.
    """
    logger.info("Querying cargo metadata, this may take a while")

    cmd = [cargo, "metadata", "--no-deps", "--format-version", "1"]
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise ToolchainError(f"Cannot execute `{cargo}`: {e}") from e

    if result.returncode != 0:
        raise ToolchainError(
            f"Cannot get cargo metadata (status {result.returncode}): "
            f"{result.stderr.strip()}"
        )

    try:
        metadata = CargoMetadata.model_validate_json(result.stdout)
    except ValidationError as e:
        raise ToolchainError(f"Cannot parse cargo metadata: {e}") from e

    return ProjectContext(Path(metadata.target_directory), profile=profile)
