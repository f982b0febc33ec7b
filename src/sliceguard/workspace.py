"""Workspace resolver: locate angular.json, pick the app project, derive canonical paths."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MANIFEST_NAME = "angular.json"
CONFIG_PATH = Path(".sliceguard") / "config.yml"

_DEFAULT_IGNORE_DIRS = ("node_modules", "dist", ".angular")
_DEFAULT_COLOR_TOKEN_FILES = ("src/tailwind.css", "src/styles.scss", "src/styles.css")


class WorkspaceError(Exception):
    """Raised when the workspace cannot be located or its manifest is unusable."""


@dataclass(frozen=True)
class GuardConfig:
    """Tool settings from ``.sliceguard/config.yml``."""

    app_project: str | None = None
    ignore_dirs: tuple[str, ...] = _DEFAULT_IGNORE_DIRS
    color_token_files: tuple[str, ...] = _DEFAULT_COLOR_TOKEN_FILES


@dataclass(frozen=True)
class WorkspaceContext:
    """Canonical paths for one verification run."""

    workspace_root: Path
    manifest: dict[str, Any]
    app_project_name: str
    app_project: dict[str, Any]
    source_root: Path
    app_root: Path
    features_dir: Path
    app_routes_file: Path
    config: GuardConfig = field(default_factory=GuardConfig)

    def relative(self, path: Path) -> str:
        """Return *path* relative to the workspace root, with POSIX separators."""
        try:
            return path.relative_to(self.workspace_root).as_posix()
        except ValueError:
            return path.as_posix()


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


def find_workspace_root(start_dir: Path | None = None) -> Path:
    """Walk up from *start_dir* (default: cwd) to the directory holding ``angular.json``."""
    start = (start_dir or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / MANIFEST_NAME).is_file():
            logger.debug("Workspace root: %s", candidate)
            return candidate
    msg = f"Unable to locate {MANIFEST_NAME} by walking up from: {start}"
    raise WorkspaceError(msg)


def read_manifest(workspace_root: Path) -> dict[str, Any]:
    """Load and parse ``angular.json`` from *workspace_root*."""
    path = workspace_root / MANIFEST_NAME
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read {path}: {exc}"
        raise WorkspaceError(msg) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON in {MANIFEST_NAME}: {exc}"
        raise WorkspaceError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Invalid {MANIFEST_NAME}: top level must be an object"
        raise WorkspaceError(msg)
    return data


def _projects(manifest: dict[str, Any]) -> dict[str, Any]:
    projects = manifest.get("projects")
    return projects if isinstance(projects, dict) else {}


def _is_application(project: object) -> bool:
    return isinstance(project, dict) and project.get("projectType") == "application"


def default_app_project_name(manifest: dict[str, Any]) -> str:
    """Pick the application project: ``defaultProject`` if it is an app, else the first app."""
    projects = _projects(manifest)
    default = manifest.get("defaultProject")
    if isinstance(default, str) and _is_application(projects.get(default)):
        return default

    for name, project in projects.items():
        if _is_application(project):
            return str(name)

    msg = f"No application project found in {MANIFEST_NAME}"
    raise WorkspaceError(msg)


def get_project(manifest: dict[str, Any], name: str) -> dict[str, Any]:
    """Return the manifest entry for project *name*."""
    project = _projects(manifest).get(name)
    if not isinstance(project, dict):
        msg = f'Project "{name}" not found in {MANIFEST_NAME}'
        raise WorkspaceError(msg)
    return project


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def _str_tuple(value: object) -> tuple[str, ...] | None:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    return None


def load_config(workspace_root: Path) -> GuardConfig:
    """Load ``.sliceguard/config.yml``.

    Falls back to defaults for a missing file, unreadable YAML, or keys of
    the wrong type.
    """
    config_path = workspace_root / CONFIG_PATH
    if not config_path.is_file():
        return GuardConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using defaults", CONFIG_PATH)
        return GuardConfig()

    if not isinstance(data, dict):
        return GuardConfig()

    defaults = GuardConfig()
    app_project = data.get("app_project")
    if app_project is not None and not isinstance(app_project, str):
        logger.warning("Ignoring non-string app_project in %s", CONFIG_PATH)
        app_project = None

    return GuardConfig(
        app_project=app_project,
        ignore_dirs=_str_tuple(data.get("ignore_dirs")) or defaults.ignore_dirs,
        color_token_files=(
            _str_tuple(data.get("color_token_files")) or defaults.color_token_files
        ),
    )


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def get_workspace_context(
    start_dir: Path | None = None,
    *,
    app_project_name: str | None = None,
) -> WorkspaceContext:
    """Resolve the workspace and return its canonical paths.

    Parameters
    ----------
    start_dir:
        Directory to start the upward search from (default: cwd).
    app_project_name:
        Explicit application project.  Overrides ``app_project`` from the
        config file, which in turn overrides manifest discovery.

    Raises
    ------
    WorkspaceError
        When no manifest is found, it is not valid JSON, or no usable
        application project exists.
    """
    workspace_root = find_workspace_root(start_dir)
    manifest = read_manifest(workspace_root)
    config = load_config(workspace_root)

    name = app_project_name or config.app_project or default_app_project_name(manifest)
    project = get_project(manifest, name)

    source_root_rel = project.get("sourceRoot") or "src"
    source_root = workspace_root / str(source_root_rel)
    app_root = source_root / "app"

    return WorkspaceContext(
        workspace_root=workspace_root,
        manifest=manifest,
        app_project_name=name,
        app_project=project,
        source_root=source_root,
        app_root=app_root,
        features_dir=app_root / "features",
        app_routes_file=app_root / "app.routes.ts",
        config=config,
    )


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def list_feature_names(features_dir: Path) -> list[str]:
    """Return the feature folder names under *features_dir* (empty if it is absent)."""
    if not features_dir.is_dir():
        return []
    return sorted(p.name for p in features_dir.iterdir() if p.is_dir())


def collect_files(
    base: Path,
    suffixes: tuple[str, ...],
    ignore_dirs: tuple[str, ...] = _DEFAULT_IGNORE_DIRS,
) -> list[Path]:
    """Recursively collect files under *base* ending in one of *suffixes*.

    Directories named in *ignore_dirs* are not descended into.
    """
    if not base.is_dir():
        return []

    files: list[Path] = []
    for entry in sorted(base.iterdir()):
        if entry.is_dir():
            if entry.name in ignore_dirs:
                continue
            files.extend(collect_files(entry, suffixes, ignore_dirs))
        elif entry.is_file() and entry.name.endswith(suffixes):
            files.append(entry)
    return files
