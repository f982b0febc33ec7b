"""Sliceguard CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from sliceguard import __version__
from sliceguard.checks import (
    CHECKERS,
    check_app_routes,
    check_cross_feature_imports,
    check_feature_routes,
    check_raw_colors,
    check_structure,
)
from sliceguard.report import CheckError, exit_code, format_report
from sliceguard.workspace import WorkspaceError, get_workspace_context

if TYPE_CHECKING:
    from collections.abc import Callable

    from sliceguard.report import CheckResult
    from sliceguard.workspace import WorkspaceContext

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_project_option = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to start the angular.json search from (default: cwd).",
)
_app_project_option = click.option(
    "--app-project",
    default=None,
    help="Application project in angular.json (default: auto-detect).",
)


@click.group()
@click.version_option(version=__version__, prog_name="sliceguard")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Sliceguard - structural verification for vertical-slice Angular apps."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("sliceguard").setLevel(level)


# ---------------------------------------------------------------------------
# Shared plumbing
# ---------------------------------------------------------------------------


def _resolve_context(project: Path | None, app_project: str | None) -> WorkspaceContext:
    try:
        return get_workspace_context(project, app_project_name=app_project)
    except WorkspaceError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _emit(result: CheckResult) -> None:
    """Print a report: success line to stdout, failure report to stderr."""
    click.echo(format_report(result), err=not result.passed)


def _run_check(
    checker: Callable[[WorkspaceContext], CheckResult],
    project: Path | None,
    app_project: str | None,
) -> None:
    ctx = _resolve_context(project, app_project)
    try:
        result = checker(ctx)
    except CheckError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    _emit(result)
    sys.exit(exit_code(result))


# ---------------------------------------------------------------------------
# Checker commands
# ---------------------------------------------------------------------------


@main.command("verify-structure")
@_project_option
@_app_project_option
def verify_structure(*, project: Path | None, app_project: str | None) -> None:
    """Check that every feature folder has its routes, page, data and state files."""
    _run_check(check_structure, project, app_project)


@main.command("verify-app-routes")
@_project_option
@_app_project_option
def verify_app_routes(*, project: Path | None, app_project: str | None) -> None:
    """Check that app.routes.ts only lazy-loads features and has one wildcard route."""
    _run_check(check_app_routes, project, app_project)


@main.command("verify-feature-routes")
@_project_option
@_app_project_option
def verify_feature_routes(*, project: Path | None, app_project: str | None) -> None:
    """Check route-scoped providers and lazy page loaders in every feature's routes."""
    _run_check(check_feature_routes, project, app_project)


@main.command("verify-no-cross-feature-imports")
@_project_option
@_app_project_option
def verify_no_cross_feature_imports(*, project: Path | None, app_project: str | None) -> None:
    """Check that no feature imports another feature through a relative path."""
    _run_check(check_cross_feature_imports, project, app_project)


@main.command("verify-no-raw-colors")
@_project_option
@_app_project_option
def verify_no_raw_colors(*, project: Path | None, app_project: str | None) -> None:
    """Check that app code uses design tokens instead of raw color literals."""
    _run_check(check_raw_colors, project, app_project)


# ---------------------------------------------------------------------------
# Aggregate gate
# ---------------------------------------------------------------------------


@main.command()
@_project_option
@_app_project_option
def verify(*, project: Path | None, app_project: str | None) -> None:
    """Run every check and print a summary table.

    A fatal error in one check marks that gate failed; the others still run.
    Exits 1 if any gate failed.
    """
    from rich.console import Console
    from rich.table import Table

    ctx = _resolve_context(project, app_project)

    rows: list[tuple[str, bool, str]] = []
    for name, checker in CHECKERS.items():
        try:
            result = checker(ctx)
        except CheckError as exc:
            click.echo(f"Error: {exc}", err=True)
            rows.append((name, False, "error"))
            continue
        _emit(result)
        rows.append((name, result.passed, str(len(result.violations))))

    table = Table(title="Verification summary")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Issues", justify="right")
    for name, passed, issues in rows:
        status = "[green]PASS[/green]" if passed else "[red]FAIL[/red]"
        table.add_row(name, status, issues)

    console = Console()
    console.print()
    console.print(table)

    failed = [name for name, passed, _ in rows if not passed]
    if failed:
        click.echo(f"{len(failed)} of {len(rows)} check(s) failed: {', '.join(failed)}", err=True)
        sys.exit(1)
    click.echo(f"All {len(rows)} checks passed.")


# ---------------------------------------------------------------------------
# Scaffold
# ---------------------------------------------------------------------------


@main.command("gen-feature")
@click.argument("name")
@click.option("--route", default=None, help="Route path to register (default: kebab-case name).")
@click.option("--register", is_flag=True, help="Add a lazy route for the feature to app.routes.ts.")
@click.option("--overwrite", is_flag=True, help="Replace existing feature files.")
@_project_option
@_app_project_option
def gen_feature(
    name: str,
    *,
    route: str | None,
    register: bool,
    overwrite: bool,
    project: Path | None,
    app_project: str | None,
) -> None:
    """Generate a new feature folder NAME with routes, page, data and state files."""
    from sliceguard.scaffold import ScaffoldError, generate_feature

    ctx = _resolve_context(project, app_project)
    try:
        result = generate_feature(
            ctx, name, route=route, register=register, overwrite=overwrite
        )
    except (ScaffoldError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Created feature: {ctx.relative(result.feature_dir)}")
    for path in result.files_written:
        click.echo(f"  {ctx.relative(path)}")

    if result.registered_route is not None:
        if result.route_already_present:
            click.echo(
                f"app.routes.ts already contains path: '{result.registered_route}'. "
                "Skipping route insertion."
            )
        else:
            click.echo(
                f"Registered route '{result.registered_route}' "
                f"in {ctx.relative(ctx.app_routes_file)}"
            )
    else:
        click.echo("Route not registered (use --register to add it to app.routes.ts).")
