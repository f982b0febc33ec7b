"""Cross-feature import checker: features never reach into each other via relative paths."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from sliceguard.report import CheckResult
from sliceguard.syntax import iter_import_specifiers, parse_source
from sliceguard.workspace import collect_files

if TYPE_CHECKING:
    from sliceguard.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

CHECK_NAME = "cross-feature-imports"


def feature_of(path: Path, features_dir: Path) -> str | None:
    """Return the feature that owns *path*: the first segment below *features_dir*.

    A file sitting directly in *features_dir* (an index barrel, say) owns
    itself, so its imports into any feature folder cross a boundary.
    """
    try:
        parts = path.relative_to(features_dir).parts
    except ValueError:
        return None
    return parts[0] if parts else None


def resolve_relative(from_file: Path, specifier: str) -> Path | None:
    """Resolve a ``.``-prefixed specifier against the importing file's directory.

    Resolution is purely lexical; the target does not have to exist.  Returns
    ``None`` for package and alias specifiers.
    """
    if not specifier.startswith("."):
        return None
    return Path(os.path.normpath(from_file.parent / specifier))


def check_cross_feature_imports(ctx: WorkspaceContext) -> CheckResult:
    """Flag relative imports that resolve into a different feature folder.

    An absent features directory is a clean pass.
    """
    features_rel = ctx.relative(ctx.features_dir)

    if not ctx.features_dir.is_dir():
        return CheckResult(
            check=CHECK_NAME,
            title="Cross-feature import",
            summary=f"OK: no features directory found at {features_rel} (nothing to check).",
        )

    result = CheckResult(
        check=CHECK_NAME,
        title="Cross-feature import",
        summary=f"OK: no cross-feature relative imports detected in {features_rel}.",
    )

    files = collect_files(ctx.features_dir, (".ts",), ctx.config.ignore_dirs)
    logger.debug("Cross-feature imports: scanning %d file(s)", len(files))

    for path in files:
        from_feature = feature_of(path, ctx.features_dir)
        if from_feature is None:
            continue

        rel = ctx.relative(path)
        try:
            source = parse_source(path)
        except (OSError, UnicodeDecodeError) as exc:
            result.add(rel, f"Cannot read file: {exc}")
            continue

        for imp in iter_import_specifiers(source.root):
            resolved = resolve_relative(path, imp.specifier)
            if resolved is None:
                continue
            to_feature = feature_of(resolved, ctx.features_dir)
            if to_feature is None or to_feature == from_feature:
                continue
            result.add(
                rel,
                f"Cross-feature import is not allowed: '{imp.specifier}' "
                f"(feature={from_feature} -> feature={to_feature})",
                line_number=imp.line,
                from_feature=from_feature,
                to_feature=to_feature,
            )

    return result
