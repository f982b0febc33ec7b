"""Structure checker: required feature files and DI/HTTP placement rules."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sliceguard.report import CheckResult
from sliceguard.syntax import (
    contains_identifier,
    contains_string_literal,
    parse_source,
    static_imports,
)
from sliceguard.workspace import collect_files, list_feature_names

if TYPE_CHECKING:
    from pathlib import Path

    from sliceguard.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

CHECK_NAME = "structure"

# Per-feature file kinds; each feature needs ``<name>.<kind>.ts``.
REQUIRED_KINDS: tuple[str, ...] = ("routes", "page", "data", "state")

# Files that must reach the backend through ``*.data.ts`` instead.
_NO_HTTP_SUFFIXES: tuple[str, ...] = (".page.ts", ".state.ts", ".guard.ts", ".guards.ts")

_HTTP_MODULE = "@angular/common/http"


def required_files(feature_name: str) -> list[str]:
    """Return the file names every feature folder must contain."""
    return [f"{feature_name}.{kind}.ts" for kind in REQUIRED_KINDS]


def _check_feature_folder(ctx: WorkspaceContext, result: CheckResult, name: str) -> None:
    feature_dir = ctx.features_dir / name
    for file_name in required_files(name):
        path = feature_dir / file_name
        if not path.exists():
            rel = ctx.relative(path)
            result.add(rel, f'Feature "{name}" missing required file: {rel}')


def _check_placement(ctx: WorkspaceContext, result: CheckResult, files: list[Path]) -> None:
    """HttpClient stays in data files; features provide services via routes, not root."""
    for path in files:
        restricted = path.name.endswith(_NO_HTTP_SUFFIXES)
        in_features = path.is_relative_to(ctx.features_dir)
        if not restricted and not in_features:
            continue

        rel = ctx.relative(path)
        try:
            source = parse_source(path)
        except (OSError, UnicodeDecodeError) as exc:
            result.add(rel, f"Cannot read file: {exc}")
            continue

        if restricted:
            imports_http = any(s.specifier == _HTTP_MODULE for s in static_imports(source.root))
            if imports_http and contains_identifier(source.root, "HttpClient"):
                result.add(
                    rel,
                    "HttpClient is not allowed here (use *.data.ts or core/api).",
                )

        if in_features and contains_identifier(source.root, "providedIn"):
            if contains_string_literal(source.root, "root"):
                result.add(
                    rel,
                    "Avoid providedIn: 'root' in features. Provide via route-level providers.",
                )


def check_structure(ctx: WorkspaceContext) -> CheckResult:
    """Verify the feature folder layout and placement rules.

    An absent app root or features directory is a single violation; nothing
    else is checked in that case.
    """
    features_rel = ctx.relative(ctx.features_dir)
    feature_names = list_feature_names(ctx.features_dir)
    result = CheckResult(
        check=CHECK_NAME,
        title="Structure",
        summary=(
            f"OK: structure verified for appRoot={ctx.relative(ctx.app_root)} "
            f"({len(feature_names)} feature(s))."
        ),
        features_checked=len(feature_names),
    )

    if not ctx.app_root.is_dir():
        result.add(None, f"App root not found: {ctx.relative(ctx.app_root)}")
        return result
    if not ctx.features_dir.is_dir():
        result.add(None, f"Features dir not found: {features_rel}")
        return result

    if not feature_names:
        result.add(
            None,
            f"No feature folders found in {features_rel}. "
            "Create at least one feature via `sliceguard gen-feature`.",
        )

    for name in feature_names:
        _check_feature_folder(ctx, result, name)

    app_files = collect_files(ctx.app_root, (".ts",), ctx.config.ignore_dirs)
    logger.debug("Structure: %d feature(s), %d source file(s)", len(feature_names), len(app_files))
    _check_placement(ctx, result, app_files)

    return result
