"""
Capacitor Wrapper - Wraps the staged web root in an Android shell

Capacitor's CLI expects a package.json at the project root regardless of
where the original project kept its own, so a minimal one is synthesized
when missing.
"""
import json
import logging
import re
from pathlib import Path

from builder.core.web_builder import CommandRunner, StageLog
from builder.tools.structure_tool import MANIFEST_NAME
from builder.tools.staging_tool import WEB_DIR_NAME
from config import CAPACITOR_PACKAGES

logger = logging.getLogger(__name__)

PLATFORM = "android"


def package_slug(app_name: str) -> str:
    """npm-compatible package name derived from the app name"""
    slug = re.sub(r"\s+", "-", app_name.strip().lower())
    slug = re.sub(r"[^a-z0-9._-]", "", slug).strip("-._")
    return slug or "app"


class CapacitorWrapper:
    """init / add platform / sync steps of the Capacitor CLI"""

    def __init__(self, project_dir: Path, run: CommandRunner, log: StageLog):
        self.project_dir = Path(project_dir)
        self.run = run
        self.log = log

    @property
    def android_dir(self) -> Path:
        return self.project_dir / PLATFORM

    def ensure_manifest(self, app_name: str, version_name: str) -> bool:
        """
        Create a minimal root package.json if the project has none

        Returns:
            True if a manifest was written
        """
        manifest = self.project_dir / MANIFEST_NAME
        if manifest.exists():
            return False

        self.log("Root package.json not found. Creating dummy package.json.", "info")
        dummy = {
            "name": package_slug(app_name),
            "version": version_name,
            "description": "Generated by APK Builder",
            "main": "index.js",
            "scripts": {},
        }
        manifest.write_text(json.dumps(dummy, indent=2), encoding="utf-8")
        return True

    async def install(self):
        self.log("Installing Capacitor dependencies...", "command")
        await self.run("npm", ["install", *CAPACITOR_PACKAGES, "--save-dev"], self.project_dir)

    async def init(self, app_name: str, app_id: str):
        self.log("Initializing Capacitor...", "command")
        await self.run(
            "npx",
            ["cap", "init", app_name, app_id, "--web-dir", WEB_DIR_NAME],
            self.project_dir
        )

    async def add_platform(self):
        self.log("Adding Android platform...", "command")
        await self.run("npx", ["cap", "add", PLATFORM], self.project_dir)

    async def sync(self):
        await self.run("npx", ["cap", "sync"], self.project_dir)


__all__ = ["CapacitorWrapper", "package_slug", "PLATFORM"]
