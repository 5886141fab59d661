"""
Structure Tool - Classifies a cloned repository

Decision order (first match wins):
1. frontend/ directory          → nested-frontend, search root = frontend/
2. package.json at project root → root-project, search root = project root
3. otherwise                    → static, search root = project root

Install/build runs in frontend/ when it carries its own package.json,
otherwise at the project root when a root package.json exists.

This tool never raises. A missing build output directory just means the
stager falls back to copying the repository itself.
"""
from pathlib import Path
from typing import Optional

from builder.schemas import BuildMode, ProjectLayout

MANIFEST_NAME = "package.json"
FRONTEND_DIR = "frontend"
ENTRY_PAGE = "index.html"

BUILD_OUTPUT_CANDIDATES = ["dist", "build", "out"]
STATIC_OUTPUT_CANDIDATES = ["public", "web"]


def _first_existing_dir(root: Path, names) -> Optional[Path]:
    for name in names:
        candidate = root / name
        if candidate.is_dir():
            return candidate
    return None


def _has_entry_page(directory: Path) -> bool:
    try:
        return any(
            entry.is_file() and entry.name.lower() == ENTRY_PAGE
            for entry in directory.iterdir()
        )
    except OSError:
        return False


def find_build_output(layout: ProjectLayout) -> Optional[Path]:
    """Locate the directory holding final web assets for a layout"""
    found = _first_existing_dir(layout.search_root, BUILD_OUTPUT_CANDIDATES)
    if found is None and layout.manifest_dir and layout.manifest_dir != layout.search_root:
        # frontend/ without its own package.json: the root build writes its output at the root
        found = _first_existing_dir(layout.manifest_dir, BUILD_OUTPUT_CANDIDATES)
    if found or layout.mode != BuildMode.STATIC:
        return found

    found = _first_existing_dir(layout.search_root, STATIC_OUTPUT_CANDIDATES)
    if found:
        return found
    if _has_entry_page(layout.search_root):
        return layout.search_root
    return None


def detect_structure(project_dir: Path) -> ProjectLayout:
    """
    Inspect a cloned tree and classify its build mode

    Args:
        project_dir: Root of the cloned repository

    Returns:
        ProjectLayout (build_output_dir is None when nothing recognizable exists yet)
    """
    root = Path(project_dir)
    frontend = root / FRONTEND_DIR
    has_frontend = frontend.is_dir()
    has_root_manifest = (root / MANIFEST_NAME).is_file()
    has_frontend_manifest = has_frontend and (frontend / MANIFEST_NAME).is_file()

    if has_frontend:
        mode, search_root = BuildMode.NESTED_FRONTEND, frontend
    elif has_root_manifest:
        mode, search_root = BuildMode.ROOT_PROJECT, root
    else:
        mode, search_root = BuildMode.STATIC, root

    if has_frontend_manifest:
        manifest_dir = frontend
    elif has_root_manifest:
        manifest_dir = root
    else:
        manifest_dir = None

    layout = ProjectLayout(
        mode=mode,
        search_root=search_root,
        manifest_dir=manifest_dir,
        has_root_manifest=has_root_manifest,
        has_frontend=has_frontend,
    )
    layout.build_output_dir = find_build_output(layout)
    return layout


def refresh_build_output(layout: ProjectLayout) -> ProjectLayout:
    """Re-resolve the build output directory after the project's build step ran"""
    return layout.model_copy(update={"build_output_dir": find_build_output(layout)})


__all__ = [
    "detect_structure",
    "refresh_build_output",
    "find_build_output",
    "MANIFEST_NAME",
    "FRONTEND_DIR",
    "ENTRY_PAGE",
]
