"""
Schemas for the APK Build Pipeline

These schemas define the contracts between pipeline stages:
- Session: Per-request state (stage, logs, options)
- Project: Detected layout, patch results, published artifact
"""
from .session_schema import (
    Stage,
    STAGE_ORDER,
    STAGE_PROGRESS,
    InvalidTransition,
    LogType,
    LogEntry,
    BuildOptions,
    BuildSession,
)
from .project_schema import BuildMode, ProjectLayout, PatchResult, BuildArtifact

__all__ = [
    # Session
    "Stage",
    "STAGE_ORDER",
    "STAGE_PROGRESS",
    "InvalidTransition",
    "LogType",
    "LogEntry",
    "BuildOptions",
    "BuildSession",
    # Project
    "BuildMode",
    "ProjectLayout",
    "PatchResult",
    "BuildArtifact",
]
