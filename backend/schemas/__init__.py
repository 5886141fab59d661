"""
Pydantic schemas for API request validation
"""
from .build import BuildRequest, ORIENTATIONS, MISSING_REPO_URL

__all__ = [
    # Build
    "BuildRequest",
    "ORIENTATIONS",
    "MISSING_REPO_URL",
]
