"""Feature scaffold generator: write a vertical slice and register its route."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sliceguard.syntax import NodeKind, get_property, iter_nodes, parse_text, string_value

if TYPE_CHECKING:
    from pathlib import Path

    from sliceguard.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

_VALID_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_\s-]*$")


class ScaffoldError(Exception):
    """Raised when a feature cannot be generated or registered."""


@dataclass(frozen=True)
class FeatureNames:
    """The spellings of one feature name used across the generated files."""

    kebab: str  # user-profile
    pascal: str  # UserProfile
    const: str  # USER_PROFILE


@dataclass
class ScaffoldResult:
    """Summary of a gen-feature run."""

    feature: FeatureNames
    feature_dir: Path
    files_written: list[Path] = field(default_factory=list)
    registered_route: str | None = None
    route_already_present: bool = False


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def to_kebab(value: str) -> str:
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", value.strip())
    return re.sub(r"[\s_]+", "-", value).lower()


def to_pascal(value: str) -> str:
    return "".join(part[0].upper() + part[1:] for part in to_kebab(value).split("-") if part)


def to_const(value: str) -> str:
    return to_kebab(value).upper().replace("-", "_")


def feature_names(raw: str) -> FeatureNames:
    """Derive kebab/Pascal/CONST names, rejecting names that make bad file stems."""
    if not _VALID_NAME_RE.match(raw.strip()):
        msg = f"Invalid feature name: {raw!r} (start with a letter; letters, digits, -, _ only)"
        raise ScaffoldError(msg)
    return FeatureNames(kebab=to_kebab(raw), pascal=to_pascal(raw), const=to_const(raw))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def _render_routes(n: FeatureNames) -> str:
    return (
        "import { Routes } from '@angular/router';\n"
        f"import {{ provideFeatureState }} from './{n.kebab}.state';\n"
        f"import {{ provideFeatureData }} from './{n.kebab}.data';\n"
        "\n"
        f"export const {n.const}_ROUTES: Routes = [\n"
        "  {\n"
        "    path: '',\n"
        "    providers: [provideFeatureData(), provideFeatureState()],\n"
        f"    loadComponent: () => import('./{n.kebab}.page').then((m) => m.{n.pascal}Page),\n"
        f"    title: '{n.pascal}',\n"
        "  },\n"
        "];\n"
    )


def _render_page(n: FeatureNames) -> str:
    return (
        "import { Component, inject } from '@angular/core';\n"
        "import { CommonModule } from '@angular/common';\n"
        "\n"
        f"import {{ {n.pascal}Store }} from './{n.kebab}.state';\n"
        "\n"
        "@Component({\n"
        "  standalone: true,\n"
        "  imports: [CommonModule],\n"
        "  template: `\n"
        '    <section class="bg-background text-on-background">\n'
        f'      <h1 class="text-xl font-semibold text-on-surface">{n.pascal}</h1>\n'
        "\n"
        '      <div class="mt-4">\n'
        '        <p class="text-sm text-on-surface-variant">Status: {{ store.status() }}</p>\n'
        "      </div>\n"
        "    </section>\n"
        "  `,\n"
        "})\n"
        f"export class {n.pascal}Page {{\n"
        f"  readonly store = inject({n.pascal}Store);\n"
        "\n"
        "  constructor() {\n"
        "    void this.store.init();\n"
        "  }\n"
        "}\n"
    )


def _render_models(n: FeatureNames) -> str:
    return f"export interface {n.pascal}Summary {{\n  updatedAt: string;\n}}\n"


def _render_data(n: FeatureNames) -> str:
    return (
        "import { Injectable, Provider } from '@angular/core';\n"
        "import { of, delay } from 'rxjs';\n"
        "import type { Observable } from 'rxjs';\n"
        "\n"
        f"import type {{ {n.pascal}Summary }} from './{n.kebab}.models';\n"
        "\n"
        "@Injectable()\n"
        f"export class {n.pascal}Data {{\n"
        f"  getSummary(): Observable<{n.pascal}Summary> {{\n"
        f"    // Example: return this.http.get<{n.pascal}Summary>('/api/{n.kebab}/summary');\n"
        "    return of({ updatedAt: new Date().toISOString() }).pipe(delay(300));\n"
        "  }\n"
        "}\n"
        "\n"
        "export function provideFeatureData(): Provider {\n"
        f"  return {n.pascal}Data;\n"
        "}\n"
    )


def _render_state(n: FeatureNames) -> str:
    return (
        "import { inject, Injectable, Provider, signal } from '@angular/core';\n"
        "import { firstValueFrom } from 'rxjs';\n"
        "\n"
        f"import {{ {n.pascal}Data }} from './{n.kebab}.data';\n"
        "\n"
        f"export type {n.pascal}Status = 'idle' | 'loading' | 'ready' | 'error';\n"
        "\n"
        "@Injectable()\n"
        f"export class {n.pascal}Store {{\n"
        f"  private readonly data = inject({n.pascal}Data);\n"
        "\n"
        f"  readonly status = signal<{n.pascal}Status>('idle');\n"
        "\n"
        "  async init() {\n"
        "    if (this.status() !== 'idle') return;\n"
        "    this.status.set('loading');\n"
        "    try {\n"
        "      await firstValueFrom(this.data.getSummary());\n"
        "      this.status.set('ready');\n"
        "    } catch {\n"
        "      this.status.set('error');\n"
        "    }\n"
        "  }\n"
        "}\n"
        "\n"
        "export function provideFeatureState(): Provider {\n"
        f"  return {n.pascal}Store;\n"
        "}\n"
    )


def _render_readme(n: FeatureNames) -> str:
    parts = [
        f"# {n.pascal} Feature\n",
        "Conventions:",
        f"- Route definition: `{n.kebab}.routes.ts`",
        f"- Routed component: `{n.kebab}.page.ts`",
        f"- Data access: `{n.kebab}.data.ts`",
        f"- Feature state/store: `{n.kebab}.state.ts`\n",
        "This folder is a vertical slice and must not be imported from other feature folders.\n",
    ]
    return "\n".join(parts)


def render_feature(n: FeatureNames) -> dict[str, str]:
    """Return ``{file_name: content}`` for every file of a new feature."""
    return {
        f"{n.kebab}.routes.ts": _render_routes(n),
        f"{n.kebab}.page.ts": _render_page(n),
        f"{n.kebab}.data.ts": _render_data(n),
        f"{n.kebab}.state.ts": _render_state(n),
        f"{n.kebab}.models.ts": _render_models(n),
        "README.md": _render_readme(n),
    }


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


def _route_entry(route_path: str, n: FeatureNames) -> str:
    return (
        "  {\n"
        f"    path: '{route_path}',\n"
        "    loadChildren: () =>\n"
        f"      import('./features/{n.kebab}/{n.kebab}.routes').then((m) => m.{n.const}_ROUTES),\n"
        "  },\n"
    )


def _wildcard_offset(src: str) -> int | None:
    """Character offset of the ``{`` that opens the ``path: '**'`` route, if any."""
    root = parse_text(src).root
    for node in iter_nodes(root):
        if node.type == NodeKind.OBJECT and string_value(get_property(node, "path")) == "**":
            # tree-sitter offsets are in bytes.
            return len(src.encode("utf-8")[: node.start_byte].decode("utf-8"))
    return None


def register_route(app_routes_file: Path, route_path: str, n: FeatureNames) -> bool:
    """Insert a lazy ``loadChildren`` entry into ``app.routes.ts``.

    The entry goes right before the wildcard route, or before the closing
    ``];`` when there is none.  Returns False (and writes nothing) if a route
    with the same path is already present.
    """
    if not app_routes_file.is_file():
        msg = f"Cannot find app.routes.ts at {app_routes_file}"
        raise ScaffoldError(msg)
    src = app_routes_file.read_text(encoding="utf-8")

    if f"path: '{route_path}'" in src:
        logger.info("app.routes.ts already contains route %r, skipping insertion", route_path)
        return False

    entry = _route_entry(route_path, n)
    brace = _wildcard_offset(src)
    if brace is not None:
        line_start = src.rfind("\n", 0, brace) + 1
        # Keep the wildcard's indentation when it opens its own line.
        insert_pos = line_start if not src[line_start:brace].strip() else brace
    else:
        insert_pos = src.rfind("];")
        if insert_pos == -1:
            msg = "Could not locate end of the routes array in app.routes.ts"
            raise ScaffoldError(msg)

    app_routes_file.write_text(src[:insert_pos] + entry + src[insert_pos:], encoding="utf-8")
    return True


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def generate_feature(
    ctx: WorkspaceContext,
    name: str,
    *,
    route: str | None = None,
    register: bool = False,
    overwrite: bool = False,
) -> ScaffoldResult:
    """Create ``features/<kebab>/`` with the files every feature must have.

    Parameters
    ----------
    ctx:
        Resolved workspace.
    name:
        Feature name in any casing (``UserProfile``, ``user_profile``, ...).
    route:
        URL path to register (default: the kebab-case name).  Only used with
        *register*.
    register:
        When *True*, add a lazy route for the feature to ``app.routes.ts``.
    overwrite:
        When *True*, replace existing files instead of refusing.

    Raises
    ------
    ScaffoldError
        On an invalid name, an existing file without *overwrite*, or an
        ``app.routes.ts`` that cannot be patched.
    """
    n = feature_names(name)
    feature_dir = ctx.features_dir / n.kebab
    files = render_feature(n)

    if not overwrite:
        existing = [feature_dir / f for f in files if (feature_dir / f).exists()]
        if existing:
            msg = (
                f"Refusing to overwrite existing file: {ctx.relative(existing[0])}\n"
                "Use --overwrite to force."
            )
            raise ScaffoldError(msg)

    feature_dir.mkdir(parents=True, exist_ok=True)
    result = ScaffoldResult(feature=n, feature_dir=feature_dir)
    for file_name, content in files.items():
        path = feature_dir / file_name
        path.write_text(content, encoding="utf-8")
        result.files_written.append(path)
    logger.info("Created feature %s (%d files)", n.kebab, len(result.files_written))

    if register:
        route_path = route if route is not None else n.kebab
        result.registered_route = route_path
        result.route_already_present = not register_route(ctx.app_routes_file, route_path, n)

    return result
