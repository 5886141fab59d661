"""
Builder - Gradle Compilation

Responsibilities:
- Make the Gradle wrapper executable
- Run the debug assemble task
- Verify the APK actually exists

A zero exit code from Gradle is not trusted on its own: the APK is looked up
separately and its absence is a build failure.
"""
import logging
from pathlib import Path

from builder.core.web_builder import CommandRunner, StageLog

logger = logging.getLogger(__name__)

GRADLE_WRAPPER = "gradlew"
ASSEMBLE_TASK = "assembleDebug"
DEBUG_APK_PATH = Path("app/build/outputs/apk/debug/app-debug.apk")


class BuildError(Exception):
    """Raised when an expected build input or output is missing"""
    pass


class Builder:
    """
    Builder - Compiles the Android project with Gradle
    """

    def __init__(self, android_dir: Path, run: CommandRunner, log: StageLog):
        self.android_dir = Path(android_dir)
        self.run = run
        self.log = log

    @property
    def expected_apk_path(self) -> Path:
        return self.android_dir / DEBUG_APK_PATH

    async def build(self) -> Path:
        """
        Compile a debug APK

        Returns:
            Path to the compiled APK

        Raises:
            BuildError: If the wrapper script or the APK is missing
            CommandError: If chmod or Gradle fails
        """
        self.log("Compiling APK with Gradle...", "command")

        if not (self.android_dir / GRADLE_WRAPPER).exists():
            raise BuildError("gradlew script not found in android folder.")

        await self.run("chmod", ["+x", GRADLE_WRAPPER], self.android_dir)
        await self.run(f"./{GRADLE_WRAPPER}", [ASSEMBLE_TASK], self.android_dir)

        return self._find_apk()

    def _find_apk(self) -> Path:
        """Locate the compiled debug APK"""
        apk = self.expected_apk_path
        if not apk.is_file():
            logger.error(f"[Builder] Gradle succeeded but {apk} is missing")
            raise BuildError("APK not found after gradle assemble. Check gradle output for errors.")
        logger.info(f"[Builder] Found APK: {apk}")
        return apk


__all__ = ["Builder", "BuildError", "DEBUG_APK_PATH"]
