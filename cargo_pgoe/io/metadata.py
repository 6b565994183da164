"""
Metadata — the subset of ``cargo metadata`` output the tool reads.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CargoMetadata(BaseModel):
    """``cargo metadata --format-version 1`` (only the fields used)."""
    target_directory: str
    workspace_root: Optional[str] = None
