"""
Android Patch Tool - Customizes the generated Capacitor Android project

Four patches, each a pure text transform plus a file wrapper:
- Version: versionCode / versionName in app/build.gradle
- Orientation: android:screenOrientation on the first <activity>
- Styles: theme parent swap + status bar / fullscreen items in styles.xml
- Kotlin resolution: force kotlin-stdlib versions to avoid duplicate classes

Every transform is idempotent: applying it to its own output returns the
same text. Guards are containment checks on the exact inserted text, never
blind substitution. A missing target file is reported as skipped, not as a
failure.
"""
import logging
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional

from builder.schemas import BuildOptions, PatchResult

logger = logging.getLogger(__name__)

UNCONSTRAINED_ORIENTATION = "user"

MANIFEST_PATH = Path("app/src/main/AndroidManifest.xml")
STYLES_PATH = Path("app/src/main/res/values/styles.xml")
APP_BUILD_GRADLE_PATH = Path("app/build.gradle")

KOTLIN_RESOLUTION_CANDIDATES = [
    Path("build.gradle"),
    Path("app/build.gradle"),
    Path("settings.gradle"),
    Path("settings.gradle.kts"),
]
KOTLIN_RESOLUTION_MARKER = "Added by APK Builder to force Kotlin stdlib resolution"

DEFAULT_THEME_PARENT = 'parent="AppTheme.NoActionBar"'
WINDOWED_THEME_PARENT = 'parent="Theme.AppCompat.NoActionBar"'
FULLSCREEN_THEME_PARENT = 'parent="Theme.AppCompat.NoActionBar.FullScreen"'

SAFE_AREA_STYLE_ITEMS = (
    '<item name="android:windowFullscreen">false</item>'
    '<item name="android:windowTranslucentStatus">false</item>'
    '<item name="android:fitsSystemWindows">true</item>'
    '<item name="android:statusBarColor">@android:color/black</item>'
    '<item name="android:windowLightStatusBar">false</item>'
)
FULLSCREEN_STYLE_ITEMS = '<item name="android:windowFullscreen">true</item>'

_VERSION_CODE_RE = re.compile(r"versionCode\s+\d+")
_VERSION_NAME_RE = re.compile(r'versionName\s+"[^"]*"')
_DEFAULT_CONFIG_RE = re.compile(r"defaultConfig\s*\{")
_ACTIVITY_RE = re.compile(r"<activity\b")

PatchLog = Callable[[str, str], None]


# ============================================================================
# Text transforms
# ============================================================================

def patch_version_text(content: str, version_code: str, version_name: str) -> str:
    """Rewrite (or insert) versionCode and versionName in a Gradle build script"""
    code_line = f"versionCode {version_code}"
    name_line = f'versionName "{version_name}"'

    if _VERSION_CODE_RE.search(content):
        content = _VERSION_CODE_RE.sub(lambda m: code_line, content, count=1)
    else:
        content = _DEFAULT_CONFIG_RE.sub(lambda m: f"defaultConfig {{\n        {code_line}", content, count=1)

    if _VERSION_NAME_RE.search(content):
        content = _VERSION_NAME_RE.sub(lambda m: name_line, content, count=1)
    else:
        content = _VERSION_CODE_RE.sub(lambda m: f"{code_line}\n        {name_line}", content, count=1)
    return content


def patch_orientation_text(content: str, orientation: str) -> str:
    """Add android:screenOrientation to the first activity unless already declared"""
    if orientation == UNCONSTRAINED_ORIENTATION or "android:screenOrientation" in content:
        return content
    return _ACTIVITY_RE.sub(
        lambda m: f'<activity android:screenOrientation="{orientation}"', content, count=1
    )


def style_items_for(fullscreen: bool) -> str:
    return FULLSCREEN_STYLE_ITEMS if fullscreen else SAFE_AREA_STYLE_ITEMS


def patch_styles_text(content: str, fullscreen: bool) -> str:
    """Swap the app theme parent and append display-mode items before the first </style>"""
    if DEFAULT_THEME_PARENT in content:
        content = content.replace(
            DEFAULT_THEME_PARENT,
            FULLSCREEN_THEME_PARENT if fullscreen else WINDOWED_THEME_PARENT
        )

    items = style_items_for(fullscreen)
    if items not in content and "</style>" in content:
        content = content.replace("</style>", f"{items}</style>", 1)
    return content


def kotlin_resolution_block(kotlin_version: str) -> str:
    return f"""
/* {KOTLIN_RESOLUTION_MARKER} and avoid duplicate-class errors */
configurations.all {{
    resolutionStrategy {{
        force(
            'org.jetbrains.kotlin:kotlin-stdlib:{kotlin_version}',
            'org.jetbrains.kotlin:kotlin-stdlib-jdk7:{kotlin_version}',
            'org.jetbrains.kotlin:kotlin-stdlib-jdk8:{kotlin_version}'
        )
    }}
}}
"""


def patch_kotlin_resolution_text(content: str, kotlin_version: str) -> str:
    if KOTLIN_RESOLUTION_MARKER in content:
        return content
    return f"{content}\n{kotlin_resolution_block(kotlin_version)}\n"


# ============================================================================
# File wrappers
# ============================================================================

def _patch_file(path: Path, transform: Callable[[str], str]) -> PatchResult:
    if not path.exists():
        return PatchResult(skipped=True, reason=f"{path.name} not found")
    content = path.read_text(encoding="utf-8")
    patched = transform(content)
    if patched == content:
        return PatchResult(changed=False, reason="already patched")
    path.write_text(patched, encoding="utf-8")
    return PatchResult(changed=True)


def patch_version(android_dir: Path, version_code: str, version_name: str) -> PatchResult:
    return _patch_file(
        Path(android_dir) / APP_BUILD_GRADLE_PATH,
        lambda text: patch_version_text(text, version_code, version_name)
    )


def patch_orientation(android_dir: Path, orientation: str) -> PatchResult:
    if orientation == UNCONSTRAINED_ORIENTATION:
        return PatchResult(skipped=True, reason="orientation set to user")
    return _patch_file(
        Path(android_dir) / MANIFEST_PATH,
        lambda text: patch_orientation_text(text, orientation)
    )


def patch_styles(android_dir: Path, fullscreen: bool) -> PatchResult:
    return _patch_file(
        Path(android_dir) / STYLES_PATH,
        lambda text: patch_styles_text(text, fullscreen)
    )


def ensure_kotlin_resolution(android_dir: Path, kotlin_version: str) -> PatchResult:
    """
    Append the kotlin-stdlib force block to the first existing Gradle script

    If none of the candidate scripts exist, a top-level build.gradle carrying
    only the block is created.
    """
    android_dir = Path(android_dir)
    for candidate in KOTLIN_RESOLUTION_CANDIDATES:
        path = android_dir / candidate
        if not path.exists():
            continue
        result = _patch_file(path, lambda text: patch_kotlin_resolution_text(text, kotlin_version))
        result.reason = result.reason or f"patched {candidate.as_posix()}"
        return result

    created = android_dir / "build.gradle"
    created.parent.mkdir(parents=True, exist_ok=True)
    created.write_text(
        f"// Auto-generated by APK Builder\n{kotlin_resolution_block(kotlin_version)}\n",
        encoding="utf-8"
    )
    return PatchResult(changed=True, reason="created build.gradle")


# ============================================================================
# Entry point
# ============================================================================

def patch_android_project(
    android_dir: Path,
    options: BuildOptions,
    kotlin_version: str,
    log: Optional[PatchLog] = None
) -> Dict[str, PatchResult]:
    """
    Apply all Android customizations (best-effort)

    A patch that fails with an I/O or decoding error is logged and reported in its
    PatchResult; it never aborts the build.

    Args:
        android_dir: Generated android/ directory
        options: Build options (orientation, fullscreen, versions)
        kotlin_version: Version forced for kotlin-stdlib artifacts
        log: Optional callback (message, log type)

    Returns:
        Mapping of patch name to PatchResult
    """
    def emit(msg: str, level: str = "info"):
        logger.info(f"[AndroidPatch] {msg}")
        if log:
            log(msg, level)

    patches: List[tuple] = [
        ("version", "build.gradle versionCode/versionName",
         lambda: patch_version(android_dir, options.version_code, options.version_name)),
        ("orientation", "AndroidManifest screenOrientation",
         lambda: patch_orientation(android_dir, options.orientation)),
        ("styles", "styles.xml display mode",
         lambda: patch_styles(android_dir, options.fullscreen)),
        ("kotlin", "Kotlin stdlib resolutionStrategy",
         lambda: ensure_kotlin_resolution(android_dir, kotlin_version)),
    ]

    results: Dict[str, PatchResult] = {}
    for name, label, apply in patches:
        try:
            result = apply()
        except (OSError, ValueError) as e:
            result = PatchResult(changed=False, reason=str(e))
            emit(f"Warning: failed to apply {label}: {e}", "error")
        else:
            if result.skipped:
                emit(f"Skipping {label}: {result.reason}.")
            elif result.changed:
                emit(f"Applied {label}.")
            else:
                emit(f"{label} already applied.")
        results[name] = result
    return results


__all__ = [
    "patch_android_project",
    "patch_version",
    "patch_orientation",
    "patch_styles",
    "ensure_kotlin_resolution",
    "patch_version_text",
    "patch_orientation_text",
    "patch_styles_text",
    "patch_kotlin_resolution_text",
    "style_items_for",
    "KOTLIN_RESOLUTION_MARKER",
    "SAFE_AREA_STYLE_ITEMS",
    "FULLSCREEN_STYLE_ITEMS",
    "MANIFEST_PATH",
    "STYLES_PATH",
    "APP_BUILD_GRADLE_PATH",
]
