"""Rule checkers: structure, app routes, feature routes, import boundaries, colors."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sliceguard.checks.app_routes import check_app_routes
from sliceguard.checks.cross_feature import (
    check_cross_feature_imports,
    feature_of,
    resolve_relative,
)
from sliceguard.checks.feature_routes import check_feature_routes, check_routes_file
from sliceguard.checks.raw_colors import check_raw_colors, find_colors
from sliceguard.checks.structure import REQUIRED_KINDS, check_structure, required_files

if TYPE_CHECKING:
    from collections.abc import Callable

    from sliceguard.report import CheckResult
    from sliceguard.workspace import WorkspaceContext

# Name -> checker, in the order ``sliceguard verify`` runs them.
CHECKERS: dict[str, Callable[[WorkspaceContext], CheckResult]] = {
    "structure": check_structure,
    "app-routes": check_app_routes,
    "feature-routes": check_feature_routes,
    "cross-feature-imports": check_cross_feature_imports,
    "raw-colors": check_raw_colors,
}

__all__ = [
    "CHECKERS",
    "REQUIRED_KINDS",
    "check_app_routes",
    "check_cross_feature_imports",
    "check_feature_routes",
    "check_raw_colors",
    "check_routes_file",
    "check_structure",
    "feature_of",
    "find_colors",
    "required_files",
    "resolve_relative",
]
