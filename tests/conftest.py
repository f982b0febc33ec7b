"""Shared test fixtures for Sliceguard."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


ANGULAR_JSON = {
    "version": 1,
    "projects": {
        "web": {"projectType": "application", "sourceRoot": "src"},
    },
}

APP_ROUTES_TS = """\
import { Routes } from '@angular/router';

export const routes: Routes = [
  { path: '', pathMatch: 'full', redirectTo: 'home' },
  {
    path: '**',
    loadComponent: () =>
      import('./shared/pages/not-found.page').then((m) => m.NotFoundPage),
  },
];
"""

NOT_FOUND_PAGE_TS = """\
import { Component } from '@angular/core';

@Component({
  standalone: true,
  template: `<p class="text-on-surface">Page not found</p>`,
})
export class NotFoundPage {}
"""


def feature_routes_ts(name: str) -> str:
    """A valid ``<name>.routes.ts`` for a feature called *name*."""
    const = name.upper().replace("-", "_")
    return (
        "import { Routes } from '@angular/router';\n"
        f"import {{ provideFeatureData }} from './{name}.data';\n"
        f"import {{ provideFeatureState }} from './{name}.state';\n"
        "\n"
        f"export const {const}_ROUTES: Routes = [\n"
        "  {\n"
        "    path: '',\n"
        "    providers: [provideFeatureData(), provideFeatureState()],\n"
        f"    loadComponent: () => import('./{name}.page').then((m) => m.Page),\n"
        "  },\n"
        "];\n"
    )


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    """Create a minimal Angular workspace: manifest, app routes, not-found page, features/."""
    (tmp_path / "angular.json").write_text(json.dumps(ANGULAR_JSON))
    app_root = tmp_path / "src" / "app"
    (app_root / "features").mkdir(parents=True)
    (app_root / "shared" / "pages").mkdir(parents=True)
    (app_root / "app.routes.ts").write_text(APP_ROUTES_TS)
    (app_root / "shared" / "pages" / "not-found.page.ts").write_text(NOT_FOUND_PAGE_TS)
    return tmp_path


@pytest.fixture()
def add_feature(workspace: Path) -> Callable[..., Path]:
    """Return a builder that writes a complete, valid feature folder.

    ``add_feature("home", skip=("data",))`` omits ``home.data.ts``;
    ``files={"home.page.ts": "..."}`` overrides or adds individual files.
    """

    def _add(
        name: str,
        *,
        skip: tuple[str, ...] = (),
        files: dict[str, str] | None = None,
    ) -> Path:
        feature_dir = workspace / "src" / "app" / "features" / name
        feature_dir.mkdir(parents=True, exist_ok=True)
        pascal = "".join(part.capitalize() for part in name.split("-"))
        defaults = {
            "routes": feature_routes_ts(name),
            "page": f"export class {pascal}Page {{}}\n",
            "data": f"export class {pascal}Data {{}}\n",
            "state": f"export class {pascal}Store {{}}\n",
        }
        for kind, content in defaults.items():
            if kind not in skip:
                (feature_dir / f"{name}.{kind}.ts").write_text(content)
        for file_name, content in (files or {}).items():
            path = feature_dir / file_name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return feature_dir

    return _add
