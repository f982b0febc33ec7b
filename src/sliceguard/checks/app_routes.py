"""App-route composition checker: lazy feature routes plus a single not-found wildcard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sliceguard.report import CheckError, CheckResult
from sliceguard.syntax import (
    NodeKind,
    array_elements,
    find_exported_array,
    get_property,
    has_deferred_import,
    has_property,
    line_of,
    parse_source,
    static_imports,
    string_value,
)

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from sliceguard.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

CHECK_NAME = "app-routes"

ROUTES_EXPORT = "routes"
WILDCARD_PATH = "**"
NOT_FOUND_PAGE = "./shared/pages/not-found.page"
FEATURES_PREFIX = "./features/"

# Static imports of these pull a routed component into the main bundle.
_STATIC_COMPONENT_MARKERS: tuple[str, ...] = (".page", ".component")


def _is_feature_routes_import(target: str) -> bool:
    return target.startswith(FEATURES_PREFIX) and target.endswith(".routes")


def _is_not_found_import(target: str) -> bool:
    return target == NOT_FOUND_PAGE


def _check_static_imports(root: TSNode, rel: str, result: CheckResult) -> None:
    for imp in static_imports(root):
        if any(marker in imp.specifier for marker in _STATIC_COMPONENT_MARKERS):
            result.add(
                rel,
                f"app.routes.ts must not statically import pages or components: '{imp.specifier}'",
                line_number=imp.line,
            )


def _check_route(element: TSNode, rel: str, result: CheckResult) -> bool:
    """Check one route element; return True if it is a wildcard route."""
    line = line_of(element)

    if has_property(element, "component"):
        result.add(
            rel,
            'app.routes.ts must not use "component:"; use loadChildren/loadComponent only.',
            line_number=line,
        )

    path_value = string_value(get_property(element, "path"))
    if path_value is None:
        result.add(rel, 'Every app route must have a literal string "path".', line_number=line)
        return False

    if path_value == "":
        if not has_property(element, "redirectTo") or not has_property(element, "pathMatch"):
            result.add(
                rel,
                "Empty path route must be a redirect with redirectTo + pathMatch.",
                line_number=line,
            )
        return False

    if path_value == WILDCARD_PATH:
        loader = get_property(element, "loadComponent")
        if loader is None or not has_deferred_import(loader, _is_not_found_import):
            result.add(
                rel,
                f"Wildcard route must loadComponent from '{NOT_FOUND_PAGE}'.",
                line_number=line,
            )
        return True

    loader = get_property(element, "loadChildren")
    if loader is None:
        result.add(
            rel,
            f'Route "{path_value}" must use loadChildren for feature routes.',
            line_number=line,
        )
    elif not has_deferred_import(loader, _is_feature_routes_import):
        result.add(
            rel,
            f"Route \"{path_value}\" loadChildren must import "
            "'./features/<feature>/<feature>.routes'.",
            line_number=line,
        )
    return False


def check_app_routes(ctx: WorkspaceContext) -> CheckResult:
    """Verify the composition of the top-level route table.

    Raises
    ------
    CheckError
        When ``app.routes.ts`` is missing or unreadable, or does not export
        ``routes`` as an array literal.
    """
    rel = ctx.relative(ctx.app_routes_file)
    if not ctx.app_routes_file.is_file():
        msg = f"Missing app.routes.ts at: {rel}"
        raise CheckError(msg)

    try:
        source = parse_source(ctx.app_routes_file)
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {rel}: {exc}"
        raise CheckError(msg) from exc

    routes = find_exported_array(source.root, ROUTES_EXPORT)
    if routes is None:
        msg = "app.routes.ts must export const routes = [ ... ] (Angular CLI convention)"
        raise CheckError(msg)

    result = CheckResult(
        check=CHECK_NAME,
        title="App routes",
        summary=f"OK: app.routes.ts verified ({rel}).",
    )

    _check_static_imports(source.root, rel, result)

    wildcard_count = 0
    for element in array_elements(routes.node):
        if element.type != NodeKind.OBJECT:
            result.add(
                rel, "APP_ROUTES must contain only route objects.", line_number=line_of(element)
            )
            continue
        if _check_route(element, rel, result):
            wildcard_count += 1

    if wildcard_count != 1:
        result.add(
            rel,
            f"APP_ROUTES must contain exactly one wildcard '**' route (found {wildcard_count}).",
        )

    logger.debug("App routes: %d wildcard route(s) in %s", wildcard_count, rel)
    return result
