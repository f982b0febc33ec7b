"""Reporter: violation records, check results, and text formatting."""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CheckError(Exception):
    """Raised when a checker's required input is missing and nothing can be verified."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single structural rule breach."""

    check: str  # "structure" | "app-routes" | "feature-routes" | ...
    file_path: str | None  # workspace-relative, POSIX separators
    message: str
    line_number: int | None = None
    from_feature: str | None = None  # cross-feature imports only
    to_feature: str | None = None

    @property
    def location(self) -> str | None:
        if self.file_path is None:
            return None
        if self.line_number is not None:
            return f"{self.file_path}:{self.line_number}"
        return self.file_path


@dataclass
class CheckResult:
    """Outcome of one checker run."""

    check: str
    title: str  # used in the failure header, e.g. "Structure"
    summary: str  # one-line success message
    violations: list[Violation] = field(default_factory=list)
    features_checked: int = 0

    @property
    def passed(self) -> bool:
        return not self.violations

    def add(
        self,
        file_path: str | None,
        message: str,
        *,
        line_number: int | None = None,
        from_feature: str | None = None,
        to_feature: str | None = None,
    ) -> None:
        """Record a violation for this check."""
        self.violations.append(
            Violation(
                check=self.check,
                file_path=file_path,
                message=message,
                line_number=line_number,
                from_feature=from_feature,
                to_feature=to_feature,
            )
        )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_violation(violation: Violation) -> str:
    """Render one violation as a bulleted line."""
    loc = violation.location
    if loc is None:
        return f"- {violation.message}"
    return f"- {loc}: {violation.message}"


def format_report(result: CheckResult) -> str:
    """Format a CheckResult as plain text.

    Example output with violations::

        App routes verification failed (2 issue(s)):

        - src/app/app.routes.ts:9: Route "home" must use loadChildren for feature routes.
        - src/app/app.routes.ts: APP_ROUTES must contain exactly one wildcard '**' route (found 0).

    Example output without violations::

        OK: app.routes.ts verified (src/app/app.routes.ts).
    """
    if result.passed:
        return result.summary

    lines = [f"{result.title} verification failed ({len(result.violations)} issue(s)):", ""]
    lines.extend(format_violation(v) for v in result.violations)
    return "\n".join(lines)


def exit_code(result: CheckResult) -> int:
    """Process exit status for a result: 0 when clean, 1 on any violation."""
    return 0 if result.passed else 1
