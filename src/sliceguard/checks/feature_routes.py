"""Feature-route provider checker: route-scoped providers and lazy page loaders."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sliceguard.report import CheckResult
from sliceguard.syntax import (
    NodeKind,
    array_elements,
    find_exported_arrays,
    get_property,
    has_deferred_import,
    has_property,
    iter_nodes,
    line_of,
    parse_source,
    string_value,
)
from sliceguard.workspace import list_feature_names

if TYPE_CHECKING:
    from pathlib import Path

    from tree_sitter import Node as TSNode

    from sliceguard.syntax import ExportedArray
    from sliceguard.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

CHECK_NAME = "feature-routes"


def routes_file_for(ctx: WorkspaceContext, feature_name: str) -> Path:
    return ctx.features_dir / feature_name / f"{feature_name}.routes.ts"


def _imports_page(target: str) -> bool:
    return target.endswith(".page")


def _check_first_route(el: TSNode, ex: ExportedArray, rel: str, result: CheckResult) -> None:
    line = line_of(el)
    prefix = f'export "{ex.name}" first route'

    if string_value(get_property(el, "path")) != "":
        result.add(rel, f"{prefix} must have path: ''", line_number=line)

    providers = get_property(el, "providers")
    if providers is None:
        result.add(rel, f"{prefix} must declare providers: [ ... ]", line_number=line)
    elif providers.type == NodeKind.ARRAY and not array_elements(providers):
        result.add(rel, f"{prefix} must declare a non-empty providers list", line_number=line)

    if not has_property(el, "loadComponent") and not has_property(el, "loadChildren"):
        result.add(rel, f"{prefix} must use loadComponent or loadChildren", line_number=line)


def _check_page_loaders(ex: ExportedArray, rel: str, result: CheckResult) -> None:
    """Every ``loadComponent`` in the array, nested children included, targets a *.page file."""
    for node in iter_nodes(ex.node):
        if node.type != NodeKind.OBJECT:
            continue
        loader = get_property(node, "loadComponent")
        if loader is not None and not has_deferred_import(loader, _imports_page):
            result.add(
                rel,
                f'export "{ex.name}" has loadComponent not importing a *.page file',
                line_number=line_of(node),
            )


def _check_exported_array(ex: ExportedArray, rel: str, result: CheckResult) -> None:
    elements = array_elements(ex.node)
    if not elements:
        result.add(rel, f'export "{ex.name}" must not be empty.', line_number=ex.line)
        return

    for idx, el in enumerate(elements):
        if el.type != NodeKind.OBJECT:
            result.add(
                rel,
                f'export "{ex.name}" has a non-object route at index {idx}.',
                line_number=line_of(el),
            )
            continue

        if has_property(el, "component"):
            result.add(
                rel,
                f'export "{ex.name}" must not use "component:". Use loadComponent/loadChildren.',
                line_number=line_of(el),
            )

        if idx == 0:
            _check_first_route(el, ex, rel, result)

    _check_page_loaders(ex, rel, result)


def check_routes_file(path: Path, rel: str, result: CheckResult) -> None:
    """Validate one ``<feature>.routes.ts`` file, appending to *result*."""
    try:
        source = parse_source(path)
    except (OSError, UnicodeDecodeError) as exc:
        result.add(rel, f"Cannot read file: {exc}")
        return

    exported = find_exported_arrays(source.root)
    if not exported:
        result.add(rel, "must export at least one Routes array: export const X = [ ... ]")
        return

    for ex in exported:
        _check_exported_array(ex, rel, result)


def check_feature_routes(ctx: WorkspaceContext) -> CheckResult:
    """Verify every feature's route table.

    An absent features directory is a clean pass with zero features checked.
    """
    features = list_feature_names(ctx.features_dir)
    result = CheckResult(
        check=CHECK_NAME,
        title="Feature routes",
        summary=(
            f"OK: feature routes verified ({len(features)} feature(s)) "
            f"for {ctx.relative(ctx.features_dir)}."
        ),
        features_checked=len(features),
    )

    for name in features:
        path = routes_file_for(ctx, name)
        rel = ctx.relative(path)
        if not path.is_file():
            result.add(rel, f"Missing feature routes file: {rel}")
            continue
        check_routes_file(path, rel, result)

    logger.debug("Feature routes: %d feature(s) checked", len(features))
    return result
