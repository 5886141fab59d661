"""
Tools for APK Building

These tools are invoked by the pipeline to perform specific steps:
- Process execution (git, npm, npx cap, gradlew)
- Project structure detection
- Web asset staging and safe-area injection
- Android project patching
- Launcher icon installation

Everything except the process runner works on the local filesystem only.
"""
from .process_tool import run_command, format_command, CommandError
from .structure_tool import detect_structure, refresh_build_output
from .staging_tool import stage_assets, inject_safe_area
from .android_patch_tool import patch_android_project
from .icon_tool import install_icon

__all__ = [
    "run_command",
    "format_command",
    "CommandError",
    "detect_structure",
    "refresh_build_output",
    "stage_assets",
    "inject_safe_area",
    "patch_android_project",
    "install_icon",
]
