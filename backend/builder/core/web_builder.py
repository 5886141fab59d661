"""
Web Builder - Runs the cloned project's own package manager

Install runs whenever a package.json was detected. The build step runs only
when the manifest declares a "build" script; otherwise the project is
assumed to be pre-built or static.
"""
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from builder.schemas import BuildMode, ProjectLayout
from builder.tools.structure_tool import FRONTEND_DIR, MANIFEST_NAME

logger = logging.getLogger(__name__)

CommandRunner = Callable[[str, Sequence[str], Path], Awaitable[None]]
StageLog = Callable[[str, str], None]


def read_build_script(manifest_dir: Path) -> Optional[str]:
    """Return the manifest's scripts.build entry, or None if absent/unreadable"""
    manifest = Path(manifest_dir) / MANIFEST_NAME
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"[WebBuilder] Could not read {manifest}: {e}")
        return None
    scripts = data.get("scripts") if isinstance(data, dict) else None
    if not isinstance(scripts, dict):
        return None
    script = scripts.get("build")
    return script if isinstance(script, str) and script.strip() else None


class WebBuilder:
    """Install and build steps for the cloned web project"""

    def __init__(self, run: CommandRunner, log: StageLog):
        self.run = run
        self.log = log

    async def install(self, layout: ProjectLayout) -> bool:
        """
        Run npm install in the manifest directory

        Returns:
            False when there was nothing to install
        """
        manifest_dir = layout.manifest_dir
        if manifest_dir is None or not (manifest_dir / MANIFEST_NAME).exists():
            self.log("No package.json found. Skipping dependency install.", "info")
            return False
        await self.run("npm", ["install"], manifest_dir)
        return True

    async def build(self, layout: ProjectLayout) -> bool:
        """
        Run npm run build if a build script is declared

        Returns:
            False when the project declares no build step
        """
        manifest_dir = layout.manifest_dir
        if manifest_dir is None or not (manifest_dir / MANIFEST_NAME).exists():
            self.log("No package.json found. No build step, using files as-is.", "info")
            return False

        if read_build_script(manifest_dir) is None:
            in_frontend = layout.mode == BuildMode.NESTED_FRONTEND and manifest_dir == layout.search_root
            where = f"{FRONTEND_DIR}/{MANIFEST_NAME}" if in_frontend else MANIFEST_NAME
            self.log(f"No `build` script in `{where}`. Assuming pre-built or static files.", "info")
            return False

        await self.run("npm", ["run", "build"], manifest_dir)
        return True


__all__ = ["WebBuilder", "read_build_script", "CommandRunner", "StageLog"]
