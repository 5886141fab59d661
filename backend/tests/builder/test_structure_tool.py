"""
Tests for the Structure Detector

Covers every supported layout with a synthetic directory tree.
"""
import pytest

from builder.schemas import BuildMode
from builder.tools.structure_tool import detect_structure, refresh_build_output
from conftest import write_files


class TestDetectStructure:
    """Layout classification"""

    def test_nested_frontend(self, temp_dir):
        write_files(temp_dir, {
            "frontend/package.json": "{}",
            "frontend/dist/index.html": "<html></html>",
            "package.json": "{}",
        })

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.NESTED_FRONTEND
        assert layout.search_root == temp_dir / "frontend"
        assert layout.build_output_dir == temp_dir / "frontend" / "dist"
        assert layout.has_frontend is True
        assert layout.has_root_manifest is True
        assert layout.manifest_dir == temp_dir / "frontend"

    def test_frontend_without_manifest_uses_root_manifest(self, temp_dir):
        write_files(temp_dir, {"package.json": "{}", "frontend/index.html": "<html></html>"})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.NESTED_FRONTEND
        assert layout.manifest_dir == temp_dir

        write_files(temp_dir, {"dist/index.html": ""})
        assert refresh_build_output(layout).build_output_dir == temp_dir / "dist"

    def test_frontend_without_any_manifest(self, temp_dir):
        write_files(temp_dir, {"frontend/index.html": "<html></html>"})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.NESTED_FRONTEND
        assert layout.manifest_dir is None

    def test_frontend_file_is_not_nested_mode(self, temp_dir):
        write_files(temp_dir, {"frontend": "not a directory", "package.json": "{}"})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.ROOT_PROJECT
        assert layout.has_frontend is False

    def test_root_project_prefers_dist_over_build_and_out(self, temp_dir):
        write_files(temp_dir, {
            "package.json": "{}",
            "out/index.html": "out",
            "build/index.html": "build",
            "dist/index.html": "dist",
        })

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.ROOT_PROJECT
        assert layout.build_output_dir == temp_dir / "dist"

    def test_root_project_without_output_yet(self, temp_dir):
        write_files(temp_dir, {"package.json": "{}", "src/main.js": ""})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.ROOT_PROJECT
        assert layout.build_output_dir is None

    def test_root_project_ignores_public_dir(self, temp_dir):
        write_files(temp_dir, {"package.json": "{}", "public/favicon.ico": ""})

        layout = detect_structure(temp_dir)

        assert layout.build_output_dir is None

    def test_static_with_entry_page(self, temp_dir):
        write_files(temp_dir, {"Index.HTML": "<html></html>", "style.css": ""})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.STATIC
        assert layout.build_output_dir == temp_dir
        assert layout.manifest_dir is None

    def test_static_prefers_public_then_web(self, temp_dir):
        write_files(temp_dir, {"web/index.html": "", "public/index.html": "", "index.html": ""})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.STATIC
        assert layout.build_output_dir == temp_dir / "public"

    def test_static_without_recognizable_assets(self, temp_dir):
        write_files(temp_dir, {"README.md": "# hello", "docs/page.html": ""})

        layout = detect_structure(temp_dir)

        assert layout.mode == BuildMode.STATIC
        assert layout.build_output_dir is None

    def test_missing_directory_never_raises(self, temp_dir):
        layout = detect_structure(temp_dir / "does-not-exist")

        assert layout.mode == BuildMode.STATIC
        assert layout.build_output_dir is None


class TestRefreshBuildOutput:
    """Build output appears only after the build step"""

    def test_refresh_picks_up_new_output(self, temp_dir):
        write_files(temp_dir, {"package.json": "{}"})
        layout = detect_structure(temp_dir)
        assert layout.build_output_dir is None

        write_files(temp_dir, {"build/index.html": ""})
        refreshed = refresh_build_output(layout)

        assert refreshed.build_output_dir == temp_dir / "build"
        assert refreshed.mode == layout.mode


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
