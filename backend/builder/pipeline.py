"""
Main Pipeline - Orchestrates the complete repository → APK flow

This module wires together all pipeline components:
clone → npm install → npm build → stage web/ → Capacitor init → add android
→ Android patches → cap sync → icon → Gradle → publish

Usage:
    pipeline = BuildPipeline(options, publisher, base_url="https://host")
    artifact = await pipeline.run()

Stages run strictly one after another. The first fatal error moves the
session to ERROR, emits a failure result and stops the run. Icon and
Android file patches are best-effort and never fail a build.
"""
import logging
import shutil
from pathlib import Path
from typing import Optional, Sequence

from config import (
    WORKSPACE_DIR,
    PUBLIC_DIR,
    DOWNLOAD_PREFIX,
    KOTLIN_STDLIB_VERSION,
    KEEP_WORKSPACE,
    ICON_DOWNLOAD_TIMEOUT,
)
from builder.schemas import (
    BuildArtifact,
    BuildOptions,
    BuildSession,
    LogEntry,
    LogType,
    ProjectLayout,
    Stage,
)
from builder.core import Builder, BuildError, CapacitorWrapper, Publisher, WebBuilder
from builder.core.web_builder import CommandRunner
from builder.tools import (
    CommandError,
    detect_structure,
    format_command,
    inject_safe_area,
    install_icon,
    patch_android_project,
    refresh_build_output,
    run_command,
    stage_assets,
)
from services.event_service import EventPublisher

logger = logging.getLogger(__name__)

RES_DIR = Path("app/src/main/res")

MODE_MESSAGES = {
    "nested-frontend": "✅ Detected nested frontend at `./frontend`. Using Nested Node.js Build Mode.",
    "root-project": "✅ Detected package.json at project root. Using Node.js Build Mode.",
    "static": "⚠️ No package.json found and no `frontend/`. Using Static HTML Mode.",
}


class PipelineError(Exception):
    """Raised when pipeline execution fails"""
    pass


class BuildPipeline:
    """
    Complete APK build pipeline for one build request

    Owns the BuildSession for its lifetime and closes the publisher exactly
    once, whichever stage was reached.
    """

    def __init__(
        self,
        options: BuildOptions,
        publisher: EventPublisher,
        base_url: str,
        workspace_dir: Optional[Path] = None,
        public_dir: Optional[Path] = None,
        runner: Optional[CommandRunner] = None,
        kotlin_version: Optional[str] = None,
        keep_workspace: Optional[bool] = None
    ):
        """
        Initialize pipeline

        Args:
            options: Normalized build request
            publisher: Event channel for this session
            base_url: Scheme and host used for the download URL
            workspace_dir: Parent of per-build working directories (defaults to WORKSPACE_DIR)
            public_dir: Directory APKs are published to (defaults to PUBLIC_DIR)
            runner: Process runner, run_command unless overridden
            kotlin_version: Version forced for kotlin-stdlib (defaults to KOTLIN_STDLIB_VERSION)
            keep_workspace: Keep the working directory after the run (defaults to KEEP_WORKSPACE)
        """
        self.options = options
        self.publisher = publisher
        self.base_url = base_url
        self.session = BuildSession.create(Path(workspace_dir or WORKSPACE_DIR))
        self.publisher.build_id = self.session.build_id
        self.runner = runner or run_command
        self.kotlin_version = kotlin_version or KOTLIN_STDLIB_VERSION
        self.keep_workspace = KEEP_WORKSPACE if keep_workspace is None else keep_workspace

        project_dir = self.session.project_dir
        self.web_builder = WebBuilder(self._run, self.log)
        self.capacitor = CapacitorWrapper(project_dir, self._run, self.log)
        self.builder = Builder(self.capacitor.android_dir, self._run, self.log)
        self.artifacts = Publisher(Path(public_dir or PUBLIC_DIR), DOWNLOAD_PREFIX)

    @property
    def project_dir(self) -> Path:
        return self.session.project_dir

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    def log(self, message: str, type: str = LogType.INFO.value) -> LogEntry:
        entry = self.session.record(LogEntry(message=message, type=type))
        self.publisher.log(entry)
        return entry

    def _on_line(self, line: str, stream: str):
        self.log(line, LogType.INFO.value)

    async def _run(self, command: str, args: Sequence[str], cwd: Path):
        self.log(format_command(command, args), LogType.COMMAND.value)
        await self.runner(command, args, cwd, self._on_line)

    def _enter(self, stage: Stage):
        self.session.advance(stage)
        logger.info(f"[BuildPipeline {self.session.build_id}] → {stage.value}")
        self.publisher.status(stage)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self) -> Optional[BuildArtifact]:
        """
        Execute every stage in order

        Returns:
            The published artifact, or None if the build failed
        """
        options = self.options
        try:
            self.project_dir.mkdir(parents=True, exist_ok=True)
            self.log(f"Starting build process ID: {self.session.build_id}")
            self.log(f"Config: {options.app_name} | Fullscreen: {options.fullscreen}")

            self._enter(Stage.CLONING)
            await self._clone()
            layout = detect_structure(self.project_dir)
            self.log(MODE_MESSAGES[layout.mode.value], "success" if layout.manifest_dir else "info")
            if layout.has_frontend and layout.manifest_dir == self.project_dir:
                self.log("`frontend/` has no package.json. Installing and building from the root package.json.")

            self._enter(Stage.INSTALLING)
            await self.web_builder.install(layout)

            self._enter(Stage.BUILDING)
            await self.web_builder.build(layout)
            layout = refresh_build_output(layout)

            self._enter(Stage.STAGING)
            self._stage(layout)

            self._enter(Stage.WRAPPING_INIT)
            self.capacitor.ensure_manifest(options.app_name, options.version_name)
            await self.capacitor.install()
            await self.capacitor.init(options.app_name, options.app_id)

            self._enter(Stage.PLATFORM_ADD)
            await self.capacitor.add_platform()

            self._enter(Stage.NATIVE_PATCH)
            patch_android_project(self.capacitor.android_dir, options, self.kotlin_version, self.log)

            self._enter(Stage.PLATFORM_SYNC)
            await self.capacitor.sync()

            self._enter(Stage.ICON_APPLY)
            await self._apply_icon()

            self._enter(Stage.COMPILING)
            apk_path = await self.builder.build()
            artifact = self.artifacts.publish(
                apk_path,
                options.app_name,
                options.version_name,
                self.session.build_id,
                self.base_url
            )

            self._enter(Stage.SUCCESS)
            self.log("APK generated successfully!", LogType.SUCCESS.value)
            self.publisher.success(artifact.download_url, artifact.file_name)
            return artifact

        except (CommandError, BuildError, PipelineError) as e:
            self._fail(str(e))
        except Exception as e:
            logger.exception(f"[BuildPipeline {self.session.build_id}] Unexpected failure")
            self._fail(str(e) or e.__class__.__name__)
        finally:
            self.publisher.close()
            self._cleanup()
        return None

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _clone(self):
        self.log(f"Cloning {self.options.repo_url}...", LogType.COMMAND.value)
        await self._run("git", ["clone", self.options.repo_url, "."], self.project_dir)

    def _stage(self, layout: ProjectLayout):
        web_dir = stage_assets(layout, self.project_dir, self.log)
        if not any(web_dir.iterdir()):
            raise PipelineError("No web assets found to package: web/ is empty after staging.")
        inject_safe_area(web_dir, self.options.fullscreen, self.log)

    async def _apply_icon(self):
        source = self.options.icon_source
        res_dir = self.capacitor.android_dir / RES_DIR
        if not source or not res_dir.exists():
            self.log("No custom icon or android res folder missing; skipping icon step.")
            return
        await install_icon(res_dir, source, self.project_dir, self.log, timeout=ICON_DOWNLOAD_TIMEOUT)

    # ------------------------------------------------------------------
    # Terminal handling
    # ------------------------------------------------------------------

    def _fail(self, message: str):
        logger.error(f"[BuildPipeline {self.session.build_id}] ✗ {message}")
        if not self.session.stage.is_terminal:
            self.session.advance(Stage.ERROR)
            self.publisher.status(Stage.ERROR)
        self.log(message, LogType.ERROR.value)
        self.publisher.failure(message)

    def _cleanup(self):
        if self.keep_workspace:
            return
        try:
            shutil.rmtree(self.project_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[BuildPipeline {self.session.build_id}] Could not remove workspace: {e}")


__all__ = ["BuildPipeline", "PipelineError"]
