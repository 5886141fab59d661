"""
Staging Tool - Collects web assets into the canonical web root

Capacitor is always configured with --web-dir web, so whatever the
repository produced (dist/, build/, out/, public/, plain HTML) ends up in
<project>/web. When nothing recognizable exists the repository itself is
copied, minus directories that are never web assets.
"""
import logging
import re
import shutil
from pathlib import Path
from typing import Callable, Optional

from builder.schemas import ProjectLayout
from builder.tools.structure_tool import ENTRY_PAGE, FRONTEND_DIR

logger = logging.getLogger(__name__)

WEB_DIR_NAME = "web"
EXCLUDED_ENTRIES = {".git", "node_modules", "android", "workspace", WEB_DIR_NAME}

REDIRECT_PAGE = '<!doctype html><meta http-equiv="refresh" content="0; url={target}">'

VIEWPORT_FIT = "viewport-fit=cover"
VIEWPORT_META = '<meta name="viewport" content="width=device-width, initial-scale=1.0, viewport-fit=cover">'
SAFE_AREA_CSS = """
<style>
:root { --sat: env(safe-area-inset-top, 35px); }
body { padding-top: var(--sat) !important; background-color: #000000; min-height:100vh; box-sizing:border-box; }
#root, #app, #__next { padding-top: 0px !important; min-height:100vh; }
header, nav, .fixed-top { margin-top: var(--sat) !important; }
</style>
"""

# Attributes may appear in any order
_VIEWPORT_TAG_RE = re.compile(r"""<meta\b[^>]*\bname\s*=\s*["']viewport["'][^>]*>""", re.IGNORECASE)
_CONTENT_ATTR_RE = re.compile(r"""\bcontent\s*=\s*["']""", re.IGNORECASE)
_HEAD_OPEN_RE = re.compile(r"<head(\s[^>]*)?>", re.IGNORECASE)

# Callback receives (message, log type)
StageLog = Callable[[str, str], None]


def _copy_entry(src: Path, dest: Path):
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True, symlinks=True)
    else:
        shutil.copy2(src, dest)


def _copy_project_root(project_dir: Path, web_dir: Path):
    for entry in sorted(project_dir.iterdir()):
        if entry.name in EXCLUDED_ENTRIES:
            continue
        _copy_entry(entry, web_dir / entry.name)


def stage_assets(layout: ProjectLayout, project_dir: Path, log: Optional[StageLog] = None) -> Path:
    """
    Populate <project_dir>/web from the detected build output

    Args:
        layout: Structure detector output (after the project's own build step)
        project_dir: Cloned repository root
        log: Optional progress callback

    Returns:
        Path to the canonical web root
    """
    def emit(msg: str):
        logger.info(f"[Staging] {msg}")
        if log:
            log(msg, "info")

    project_dir = Path(project_dir)
    web_dir = project_dir / WEB_DIR_NAME
    web_dir.mkdir(parents=True, exist_ok=True)

    output = layout.build_output_dir
    if output and output.is_dir() and output.resolve() != project_dir.resolve():
        emit(f"Copying build output from {output.relative_to(project_dir)} to ./{WEB_DIR_NAME} ...")
        if output.resolve() != web_dir.resolve():
            shutil.copytree(output, web_dir, dirs_exist_ok=True, symlinks=True)
    else:
        emit(f"No build output folder detected; copying repo root files into ./{WEB_DIR_NAME} as fallback.")
        _copy_project_root(project_dir, web_dir)

    if not (web_dir / ENTRY_PAGE).exists() and (project_dir / FRONTEND_DIR / ENTRY_PAGE).exists():
        target = f"./{FRONTEND_DIR}/{ENTRY_PAGE}"
        (web_dir / ENTRY_PAGE).write_text(REDIRECT_PAGE.format(target=target), encoding="utf-8")
        emit("Created index.html redirect to nested frontend index.")

    return web_dir


def inject_safe_area_html(html: str) -> str:
    """Add viewport-fit=cover and the safe-area padding style to an entry page (idempotent)"""
    if VIEWPORT_FIT not in html:
        tag = _VIEWPORT_TAG_RE.search(html)
        if tag:
            content = _CONTENT_ATTR_RE.search(tag.group(0))
            if content:
                patched = f"{tag.group(0)[:content.end()]}{VIEWPORT_FIT}, {tag.group(0)[content.end():]}"
            else:
                patched = VIEWPORT_META
            html = f"{html[:tag.start()]}{patched}{html[tag.end():]}"
        else:
            html = _HEAD_OPEN_RE.sub(lambda m: f"{m.group(0)}{VIEWPORT_META}", html, count=1)

    if SAFE_AREA_CSS not in html and "</head>" in html:
        html = html.replace("</head>", f"{SAFE_AREA_CSS}</head>", 1)
    return html


def inject_safe_area(web_dir: Path, fullscreen: bool, log: Optional[StageLog] = None) -> bool:
    """
    Best-effort safe-area injection into web/index.html

    Skipped for fullscreen builds, missing entry pages and pages without head markers.

    Returns:
        True if the entry page was modified
    """
    def emit(msg: str, level: str = "info"):
        logger.info(f"[Staging] {msg}")
        if log:
            log(msg, level)

    if fullscreen:
        return False

    index_path = Path(web_dir) / ENTRY_PAGE
    if not index_path.exists():
        emit("index.html not found in web, skipping safe-area injection.")
        return False

    try:
        emit("Injecting Safe-Area Logic (Meta + CSS)...")
        html = index_path.read_text(encoding="utf-8", errors="replace")
        patched = inject_safe_area_html(html)
        if patched == html:
            return False
        index_path.write_text(patched, encoding="utf-8")
        emit("Safe-Area Logic Injected Successfully!", "success")
        return True
    except OSError as e:
        emit(f"Safe-Area injection failed: {e}", "error")
        return False


__all__ = [
    "stage_assets",
    "inject_safe_area",
    "inject_safe_area_html",
    "WEB_DIR_NAME",
    "SAFE_AREA_CSS",
    "VIEWPORT_FIT",
]
