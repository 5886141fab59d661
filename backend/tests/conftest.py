"""
Shared test setup

Points config at throwaway directories before any application module is
imported, and provides a fake toolchain that stands in for git, npm,
Capacitor and Gradle by producing the files those tools would.
"""
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

_TEST_ROOT = tempfile.mkdtemp(prefix="apk-builder-tests-")
os.environ["WORKSPACE_DIR"] = os.path.join(_TEST_ROOT, "workspace")
os.environ["PUBLIC_DIR"] = os.path.join(_TEST_ROOT, "public")
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["KEEP_WORKSPACE"] = "true"

from builder.tools.process_tool import CommandError, format_command  # noqa: E402


ANDROID_MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">
    <application android:label="@string/app_name">
        <activity
            android:name=".MainActivity"
            android:exported="true">
        </activity>
    </application>
</manifest>
"""

STYLES_XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <style name="AppTheme" parent="Theme.AppCompat.Light.DarkActionBar">
        <item name="colorPrimary">@color/colorPrimary</item>
    </style>
    <style name="AppTheme.NoActionBar" parent="Theme.AppCompat.DayNight.NoActionBar">
        <item name="windowActionBar">false</item>
    </style>
</resources>
"""

APP_BUILD_GRADLE = """apply plugin: 'com.android.application'

android {
    namespace "com.acme.app"
    defaultConfig {
        applicationId "com.acme.app"
        minSdkVersion rootProject.ext.minSdkVersion
        versionCode 1
        versionName "1.0"
    }
}
"""

ROOT_BUILD_GRADLE = """buildscript {
    repositories {
        google()
        mavenCentral()
    }
}
"""

ENTRY_PAGE = """<!doctype html>
<html>
<head>
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Acme</title>
</head>
<body><div id="root"></div></body>
</html>
"""

ROOT_MANIFEST_WITH_BUILD = '{"name": "acme-app", "scripts": {"build": "vite build"}}'


def write_files(root: Path, files: dict):
    """Create files (relative path -> text) under root"""
    for rel, content in files.items():
        path = Path(root) / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def create_android_project(android_dir: Path):
    """Write the parts of a `npx cap add android` tree the pipeline touches"""
    write_files(android_dir, {
        "app/src/main/AndroidManifest.xml": ANDROID_MANIFEST,
        "app/src/main/res/values/styles.xml": STYLES_XML,
        "app/src/main/res/mipmap-anydpi-v26/ic_launcher.xml": "<adaptive-icon/>",
        "app/build.gradle": APP_BUILD_GRADLE,
        "build.gradle": ROOT_BUILD_GRADLE,
        "gradlew": "#!/bin/sh\n",
    })
    for bucket in ["mipmap-mdpi", "mipmap-hdpi", "mipmap-xhdpi", "mipmap-xxhdpi", "mipmap-xxxhdpi"]:
        (android_dir / "app/src/main/res" / bucket).mkdir(parents=True, exist_ok=True)


class FakeToolchain:
    """
    Async stand-in for run_command

    Args:
        repo_files: Files the fake `git clone` writes into the working directory
        fail_on: Command string prefix that exits with code 1
        produce_apk: Whether `./gradlew assembleDebug` leaves an APK behind
        after_add_platform: Hook run after the fake `npx cap add android`
    """

    def __init__(
        self,
        repo_files: dict,
        fail_on: Optional[str] = None,
        produce_apk: bool = True,
        after_add_platform: Optional[Callable[[Path], None]] = None
    ):
        self.repo_files = repo_files
        self.fail_on = fail_on
        self.produce_apk = produce_apk
        self.after_add_platform = after_add_platform
        self.calls: List[str] = []

    async def __call__(self, command, args, cwd, on_line=None):
        cmd = format_command(command, args)
        cwd = Path(cwd)
        self.calls.append(cmd)
        if on_line:
            on_line(f"fake output of {command}", "stdout")

        if self.fail_on and cmd.startswith(self.fail_on):
            if on_line:
                on_line("FAILURE: Build failed with an exception.", "stderr")
            raise CommandError(cmd, 1)

        if cmd.startswith("git clone"):
            write_files(cwd, self.repo_files)
        elif cmd == "npm run build":
            write_files(cwd, {"dist/index.html": ENTRY_PAGE, "dist/assets/app.js": "console.log(1)"})
        elif cmd.startswith("npx cap init"):
            write_files(cwd, {"capacitor.config.json": '{"webDir": "web"}'})
        elif cmd == "npx cap add android":
            create_android_project(cwd / "android")
            if self.after_add_platform:
                self.after_add_platform(cwd / "android")
        elif cmd == "./gradlew assembleDebug" and self.produce_apk:
            write_files(cwd, {"app/build/outputs/apk/debug/app-debug.apk": "APK"})


@pytest.fixture
def temp_dir():
    """Create temporary directory"""
    temp = Path(tempfile.mkdtemp())
    yield temp
    if temp.exists():
        shutil.rmtree(temp)
