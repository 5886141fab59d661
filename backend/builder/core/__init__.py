"""
Core Pipeline Components

These components wrap the external toolchain used by the pipeline:
1. WebBuilder - The cloned project's own npm install / build
2. CapacitorWrapper - Capacitor init, add android, sync
3. Builder - Gradle debug assemble + APK verification
4. Publisher - Moves the APK into the public download directory
"""
from .web_builder import WebBuilder, read_build_script
from .capacitor import CapacitorWrapper, package_slug
from .builder import Builder, BuildError
from .publisher import Publisher, public_apk_name

__all__ = [
    "WebBuilder",
    "read_build_script",
    "CapacitorWrapper",
    "package_slug",
    "Builder",
    "BuildError",
    "Publisher",
    "public_apk_name",
]
