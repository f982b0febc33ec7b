"""Tests for sliceguard.workspace: manifest discovery, app project choice, config."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from sliceguard.workspace import (
    GuardConfig,
    WorkspaceError,
    collect_files,
    default_app_project_name,
    find_workspace_root,
    get_workspace_context,
    list_feature_names,
    load_config,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_manifest(root: Path, manifest: object) -> None:
    (root / "angular.json").write_text(json.dumps(manifest), encoding="utf-8")


# ---------------------------------------------------------------------------
# Manifest discovery
# ---------------------------------------------------------------------------


class TestFindWorkspaceRoot:
    """Test the upward search for angular.json."""

    def test_finds_manifest_in_ancestor(self, workspace: Path) -> None:
        nested = workspace / "src" / "app" / "features"
        assert find_workspace_root(nested) == workspace.resolve()

    def test_missing_manifest_raises(self, tmp_path: Path) -> None:
        with pytest.raises(WorkspaceError, match="Unable to locate angular.json"):
            find_workspace_root(tmp_path)

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        (tmp_path / "angular.json").write_text("{ not json", encoding="utf-8")
        with pytest.raises(WorkspaceError, match="Invalid JSON"):
            get_workspace_context(tmp_path)


# ---------------------------------------------------------------------------
# Application project selection
# ---------------------------------------------------------------------------


class TestAppProject:
    """Test which project is treated as the application."""

    def test_default_project_wins_when_application(self) -> None:
        manifest = {
            "defaultProject": "admin",
            "projects": {
                "web": {"projectType": "application"},
                "admin": {"projectType": "application"},
            },
        }
        assert default_app_project_name(manifest) == "admin"

    def test_default_project_ignored_when_library(self) -> None:
        manifest = {
            "defaultProject": "ui-kit",
            "projects": {
                "ui-kit": {"projectType": "library"},
                "web": {"projectType": "application"},
            },
        }
        assert default_app_project_name(manifest) == "web"

    def test_no_application_raises(self) -> None:
        manifest = {"projects": {"ui-kit": {"projectType": "library"}}}
        with pytest.raises(WorkspaceError, match="No application project"):
            default_app_project_name(manifest)

    def test_explicit_name_must_exist(self, workspace: Path) -> None:
        with pytest.raises(WorkspaceError, match='Project "nope" not found'):
            get_workspace_context(workspace, app_project_name="nope")

    def test_config_selects_project(self, tmp_path: Path) -> None:
        _write_manifest(
            tmp_path,
            {
                "projects": {
                    "web": {"projectType": "application", "sourceRoot": "apps/web/src"},
                    "admin": {"projectType": "application", "sourceRoot": "apps/admin/src"},
                }
            },
        )
        (tmp_path / ".sliceguard").mkdir()
        (tmp_path / ".sliceguard" / "config.yml").write_text("app_project: admin\n")
        ctx = get_workspace_context(tmp_path)
        assert ctx.app_project_name == "admin"
        assert ctx.relative(ctx.app_root) == "apps/admin/src/app"

    def test_explicit_name_overrides_config(self, tmp_path: Path) -> None:
        _write_manifest(
            tmp_path,
            {
                "projects": {
                    "web": {"projectType": "application"},
                    "admin": {"projectType": "application"},
                }
            },
        )
        (tmp_path / ".sliceguard").mkdir()
        (tmp_path / ".sliceguard" / "config.yml").write_text("app_project: admin\n")
        ctx = get_workspace_context(tmp_path, app_project_name="web")
        assert ctx.app_project_name == "web"


# ---------------------------------------------------------------------------
# Derived paths
# ---------------------------------------------------------------------------


class TestContextPaths:
    """Test canonical path derivation."""

    def test_paths_from_default_layout(self, workspace: Path) -> None:
        ctx = get_workspace_context(workspace)
        assert ctx.app_project_name == "web"
        assert ctx.relative(ctx.source_root) == "src"
        assert ctx.relative(ctx.features_dir) == "src/app/features"
        assert ctx.relative(ctx.app_routes_file) == "src/app/app.routes.ts"

    def test_source_root_defaults_to_src(self, tmp_path: Path) -> None:
        _write_manifest(tmp_path, {"projects": {"web": {"projectType": "application"}}})
        ctx = get_workspace_context(tmp_path)
        assert ctx.relative(ctx.app_root) == "src/app"


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """Test .sliceguard/config.yml loading."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == GuardConfig()

    def test_reads_lists(self, tmp_path: Path) -> None:
        (tmp_path / ".sliceguard").mkdir()
        (tmp_path / ".sliceguard" / "config.yml").write_text(
            "ignore_dirs: [node_modules, generated]\ncolor_token_files:\n  - src/tokens.css\n"
        )
        config = load_config(tmp_path)
        assert config.ignore_dirs == ("node_modules", "generated")
        assert config.color_token_files == ("src/tokens.css",)

    def test_broken_yaml_falls_back(self, tmp_path: Path) -> None:
        (tmp_path / ".sliceguard").mkdir()
        (tmp_path / ".sliceguard" / "config.yml").write_text("ignore_dirs: [unclosed\n")
        assert load_config(tmp_path) == GuardConfig()

    def test_wrong_types_fall_back(self, tmp_path: Path) -> None:
        (tmp_path / ".sliceguard").mkdir()
        (tmp_path / ".sliceguard" / "config.yml").write_text("app_project: 3\nignore_dirs: x\n")
        config = load_config(tmp_path)
        assert config.app_project is None
        assert config.ignore_dirs == GuardConfig().ignore_dirs


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class TestListings:
    """Test feature and file listings."""

    def test_feature_names_sorted(self, workspace: Path) -> None:
        features = workspace / "src" / "app" / "features"
        for name in ("orders", "billing", "auth"):
            (features / name).mkdir()
        (features / "index.ts").write_text("")
        assert list_feature_names(features) == ["auth", "billing", "orders"]

    def test_feature_names_absent_dir(self, tmp_path: Path) -> None:
        assert list_feature_names(tmp_path / "nope") == []

    def test_collect_files_skips_ignored_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "x.ts").write_text("")
        (tmp_path / "a" / "x.html").write_text("")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "y.ts").write_text("")
        files = collect_files(tmp_path, (".ts",), ("node_modules",))
        assert files == [tmp_path / "a" / "x.ts"]
