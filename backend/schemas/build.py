"""
Build-related Pydantic schemas
"""
import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import (
    DEFAULT_APP_NAME,
    DEFAULT_APP_ID,
    DEFAULT_ORIENTATION,
    DEFAULT_VERSION_CODE,
    DEFAULT_VERSION_NAME,
)
from builder.schemas import BuildOptions

ORIENTATIONS = ("portrait", "landscape", "user")
MISSING_REPO_URL = "No Repository URL provided"

# Written verbatim into app/build.gradle
_VERSION_CODE_RE = re.compile(r"[0-9]+")
_VERSION_NAME_RE = re.compile(r"[0-9A-Za-z][0-9A-Za-z._+ -]*")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class BuildRequest(BaseModel):
    """Request body for POST /api/build/stream"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    repo_url: str = Field(..., alias="repoUrl", description="Git URL of the web project")
    app_name: Optional[str] = Field(None, alias="appName")
    app_id: Optional[str] = Field(None, alias="appId", description="Reverse-domain id, e.g. com.acme.app")
    orientation: Optional[str] = Field(None, description="portrait | landscape | user")
    fullscreen: Union[bool, str, None] = Field(False)
    version_code: Optional[str] = Field(None, alias="versionCode")
    version_name: Optional[str] = Field(None, alias="versionName")
    icon_url: Optional[str] = Field(None, alias="iconUrl", description="http(s) URL or data:image base64 URL")

    @field_validator("repo_url", mode="before")
    @classmethod
    def validate_repo_url(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError(MISSING_REPO_URL)
        return v.strip()

    @field_validator("app_name", "app_id", "orientation", "version_name", "icon_url", mode="before")
    @classmethod
    def blank_strings(cls, v):
        return _blank_to_none(v)

    @field_validator("app_id")
    @classmethod
    def validate_app_id(cls, v):
        if v is not None and not all(part.isidentifier() for part in v.split(".")):
            raise ValueError("appId must be a reverse-domain identifier like com.example.app")
        return v

    @field_validator("orientation")
    @classmethod
    def validate_orientation(cls, v):
        if v is not None and v not in ORIENTATIONS:
            raise ValueError(f"orientation must be one of {', '.join(ORIENTATIONS)}")
        return v

    @field_validator("version_code", mode="before")
    @classmethod
    def validate_version_code(cls, v):
        v = _blank_to_none(v)
        if v is None:
            return None
        if isinstance(v, bool) or not _VERSION_CODE_RE.fullmatch(str(v).strip()):
            raise ValueError("versionCode must be a positive integer")
        return str(v).strip()

    @field_validator("version_name")
    @classmethod
    def validate_version_name(cls, v):
        if v is not None and not _VERSION_NAME_RE.fullmatch(v):
            raise ValueError("versionName may only contain letters, digits, spaces and . _ + -")
        return v

    def to_options(self) -> BuildOptions:
        """Apply defaults and freeze the request for the pipeline"""
        return BuildOptions(
            repo_url=self.repo_url,
            app_name=(self.app_name or DEFAULT_APP_NAME).strip(),
            app_id=self.app_id or DEFAULT_APP_ID,
            orientation=self.orientation or DEFAULT_ORIENTATION,
            fullscreen=self.fullscreen is True or self.fullscreen == "true",
            version_code=self.version_code or DEFAULT_VERSION_CODE,
            version_name=self.version_name or DEFAULT_VERSION_NAME,
            icon_source=self.icon_url,
        )


__all__ = ["BuildRequest", "ORIENTATIONS", "MISSING_REPO_URL"]
