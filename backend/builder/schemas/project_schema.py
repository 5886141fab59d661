"""
Project Schema - Detected layout, patch outcomes and published artifacts
"""
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class BuildMode(str, Enum):
    """How the cloned repository produces its web assets"""
    NESTED_FRONTEND = "nested-frontend"
    ROOT_PROJECT = "root-project"
    STATIC = "static"


class ProjectLayout(BaseModel):
    """Structure detector output, derived fresh per session"""
    mode: BuildMode
    search_root: Path = Field(..., description="Directory searched for build output (frontend/ or project root)")
    build_output_dir: Optional[Path] = Field(None, description="dist/build/out (or public/web/root in static mode)")
    manifest_dir: Optional[Path] = Field(
        None, description="Directory whose package.json drives install/build (frontend/ first, then project root)"
    )
    has_root_manifest: bool = False
    has_frontend: bool = False


class PatchResult(BaseModel):
    """Outcome of a single native project patch"""
    changed: bool = False
    skipped: bool = Field(False, description="Target file did not exist")
    reason: Optional[str] = None


class BuildArtifact(BaseModel):
    """Published APK"""
    file_name: str
    path: Path
    download_url: str


__all__ = ["BuildMode", "ProjectLayout", "PatchResult", "BuildArtifact"]
