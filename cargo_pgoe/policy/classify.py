"""
Artifact classification and profile-path instructions.

An artifact can carry several cargo kind tags; the first match in
``_KIND_PRIORITY`` order decides its category.
"""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Tuple

from cargo_pgoe.policy.profile import PgoProfile


class ArtifactCategory(str, Enum):
    BINARY = "binary"
    BENCHMARK = "benchmark"
    EXAMPLE = "example"
    ARTIFACT = "artifact"


# (kind tags, category), checked in order
_KIND_PRIORITY: Tuple[Tuple[frozenset, ArtifactCategory], ...] = (
    (frozenset({"bin", "binary"}), ArtifactCategory.BINARY),
    (frozenset({"bench"}), ArtifactCategory.BENCHMARK),
    (frozenset({"example"}), ArtifactCategory.EXAMPLE),
)


def classify_artifact(kinds: Iterable[str]) -> ArtifactCategory:
    """Category of an artifact from its kind tags."""
    tags = set(kinds)
    for matching, category in _KIND_PRIORITY:
        if tags & matching:
            return category
    return ArtifactCategory.ARTIFACT


def profile_file_template(
    pgo_dir: Path,
    artifact_name: str,
    profile: PgoProfile | None = None,
) -> str:
    """
    Profile output path for one artifact.

    ``%m`` and ``%p`` are expanded by the LLVM profiling runtime to the
    module signature and process id, so parallel runs do not collide.
    """
    if profile is None:
        profile = PgoProfile.v0()
    return f"{pgo_dir}/{artifact_name}{profile.profile_file_suffix}"


def profile_env_assignment(
    pgo_dir: Path,
    artifact_name: str,
    profile: PgoProfile | None = None,
) -> str:
    """``LLVM_PROFILE_FILE=<template>`` ready to paste into a shell."""
    if profile is None:
        profile = PgoProfile.v0()
    template = profile_file_template(pgo_dir, artifact_name, profile)
    return f"{profile.profile_file_var}={template}"
