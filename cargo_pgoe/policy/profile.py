"""
Profile descriptor for cargo_pgoe.

Frozen dataclass holding every flag, variable name and directory name the
tool owns.  Core logic reads these from the profile and holds no literals
of its own.  Not user-selectable in v0 — use ``PgoProfile.v0()``.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PgoProfile:
    """cargo_pgoe v0 instrumentation profile."""

    profile_id: str

    # Compiler flags
    rustflags_var: str = "RUSTFLAGS"
    profile_generate_flag: str = "-Cprofile-generate"

    # Cargo arguments owned by the tool
    release_flag: str = "--release"
    release_short_flag: str = "-r"
    message_format_flag: str = "--message-format"
    message_format: str = "json-diagnostic-rendered-ansi"
    target_flag: str = "--target"

    # Profile output of the instrumented artifact
    profile_file_var: str = "LLVM_PROFILE_FILE"
    profile_file_suffix: str = "_%m_%p.profraw"

    # Subdirectories of the cargo target directory
    pgo_dir_name: str = "pgo-profiles"
    bolt_dir_name: str = "bolt-profiles"

    @classmethod
    def v0(cls) -> PgoProfile:
        """The single supported profile for cargo_pgoe v0."""
        return cls(profile_id="rustc-llvm-profile-generate")
