"""
Session Schema - Build session state

A BuildSession is created per build request and owned by the pipeline for
its lifetime. Its stage only ever moves forward:

IDLE → CLONING → INSTALLING → BUILDING → STAGING → WRAPPING_INIT →
PLATFORM_ADD → NATIVE_PATCH → PLATFORM_SYNC → ICON_APPLY → COMPILING → SUCCESS

ERROR is reachable from any non-terminal stage. SUCCESS and ERROR are terminal.
"""
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class Stage(str, Enum):
    """Pipeline stages, in execution order"""
    IDLE = "IDLE"
    CLONING = "CLONING"
    INSTALLING = "INSTALLING"
    BUILDING = "BUILDING"
    STAGING = "STAGING"
    WRAPPING_INIT = "WRAPPING_INIT"
    PLATFORM_ADD = "PLATFORM_ADD"
    NATIVE_PATCH = "NATIVE_PATCH"
    PLATFORM_SYNC = "PLATFORM_SYNC"
    ICON_APPLY = "ICON_APPLY"
    COMPILING = "COMPILING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.SUCCESS, Stage.ERROR)


STAGE_ORDER: List[Stage] = [
    Stage.IDLE,
    Stage.CLONING,
    Stage.INSTALLING,
    Stage.BUILDING,
    Stage.STAGING,
    Stage.WRAPPING_INIT,
    Stage.PLATFORM_ADD,
    Stage.NATIVE_PATCH,
    Stage.PLATFORM_SYNC,
    Stage.ICON_APPLY,
    Stage.COMPILING,
    Stage.SUCCESS,
]

# Progress reported alongside each status event (0-100)
STAGE_PROGRESS = {
    Stage.IDLE: 0,
    Stage.CLONING: 10,
    Stage.INSTALLING: 25,
    Stage.BUILDING: 40,
    Stage.STAGING: 50,
    Stage.WRAPPING_INIT: 60,
    Stage.PLATFORM_ADD: 65,
    Stage.NATIVE_PATCH: 70,
    Stage.PLATFORM_SYNC: 80,
    Stage.ICON_APPLY: 85,
    Stage.COMPILING: 90,
    Stage.SUCCESS: 100,
    Stage.ERROR: 100,
}


class InvalidTransition(Exception):
    """Raised when a session is moved backwards or out of a terminal stage"""
    pass


class LogType(str, Enum):
    """Severity tag of a log entry"""
    INFO = "info"
    COMMAND = "command"
    ERROR = "error"
    SUCCESS = "success"


class LogEntry(BaseModel):
    """A single user-visible log line"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now().strftime("%H:%M:%S"))
    message: str
    type: LogType = LogType.INFO

    class Config:
        use_enum_values = True


class BuildOptions(BaseModel):
    """Normalized, immutable build request handed to the pipeline"""
    repo_url: str
    app_name: str
    app_id: str
    orientation: str
    fullscreen: bool = False
    version_code: str
    version_name: str
    icon_source: Optional[str] = None

    class Config:
        frozen = True


class BuildSession(BaseModel):
    """Per-request pipeline state"""
    build_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_dir: Path
    stage: Stage = Stage.IDLE
    logs: List[LogEntry] = Field(default_factory=list)

    @classmethod
    def create(cls, workspace_dir: Path) -> "BuildSession":
        """Create a session whose working directory is scoped to its own id"""
        build_id = uuid.uuid4().hex
        return cls(build_id=build_id, project_dir=Path(workspace_dir) / build_id)

    def advance(self, stage: Stage) -> Stage:
        """
        Move the session to a later stage

        Raises:
            InvalidTransition: If the session is terminal or the stage is not ahead of the current one
        """
        if self.stage.is_terminal:
            raise InvalidTransition(f"Session {self.build_id} already finished with {self.stage.value}")
        if stage != Stage.ERROR and STAGE_ORDER.index(stage) <= STAGE_ORDER.index(self.stage):
            raise InvalidTransition(f"Cannot move from {self.stage.value} to {stage.value}")
        self.stage = stage
        return stage

    def record(self, entry: LogEntry) -> LogEntry:
        self.logs.append(entry)
        return entry


__all__ = [
    "Stage",
    "STAGE_ORDER",
    "STAGE_PROGRESS",
    "InvalidTransition",
    "LogType",
    "LogEntry",
    "BuildOptions",
    "BuildSession",
]
