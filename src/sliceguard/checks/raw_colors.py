"""Raw color checker: colors in app code must come from the design-token files."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sliceguard.report import CheckResult
from sliceguard.syntax import iter_literal_contents, parse_source
from sliceguard.workspace import collect_files

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sliceguard.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

CHECK_NAME = "raw-colors"

_SCANNED_SUFFIXES: tuple[str, ...] = (".ts", ".html", ".css", ".scss")

# ---------------------------------------------------------------------------
# Regex patterns (compiled once)
# ---------------------------------------------------------------------------

_HEX_COLOR_RE = re.compile(
    r"(?<![&\w])(?<!url\()(?<!url\(\")(?<!url\(')"
    r"#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6}|[0-9a-fA-F]{3,4})(?![\w-])"
)
_FUNC_COLOR_RE = re.compile(r"\b(?:rgba?|hsla?)\([^()]*\)", re.IGNORECASE)
_WHOLE_COLOR_RE = re.compile(
    rf"\s*(?:{_HEX_COLOR_RE.pattern}|{_FUNC_COLOR_RE.pattern})\s*", re.IGNORECASE
)

# Runs of text between ``{``, ``}`` and ``;``.  A run closed by ``{`` is a
# selector or at-rule prelude; anything else may hold a declaration.
_CSS_SEGMENT_RE = re.compile(r"[^{};]+")
# ``color: #fff`` -> group 1 is the value.
_CSS_DECLARATION_RE = re.compile(r"[\w-]+\s*:\s*(.+)", re.DOTALL)

# Tailwind arbitrary values: ``bg-[#ff0000]``, ``text-[rgb(0,0,0)]``.
_TAILWIND_ARBITRARY_RE = re.compile(r"-\[([^\]\s]+)\]")

# -- HTML --
_HTML_STYLE_ATTR_RE = re.compile(r"""\bstyle\s*=\s*(["'])(.*?)\1""", re.DOTALL)
_HTML_CLASS_ATTR_RE = re.compile(r"""\bclass\s*=\s*(["'])(.*?)\1""", re.DOTALL)
_HTML_STYLE_BLOCK_RE = re.compile(r"<style[^>]*>(.*?)</style>", re.DOTALL | re.IGNORECASE)

# -- CSS comments --
_CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def normalize_color(color: str) -> str:
    """Canonical spelling for comparison: lowercase, no whitespace."""
    return re.sub(r"\s+", "", color).lower()


def _color_matches(text: str) -> list[tuple[int, str]]:
    found: list[tuple[int, str]] = []
    for regex in (_HEX_COLOR_RE, _FUNC_COLOR_RE):
        found.extend((m.start(), m.group(0)) for m in regex.finditer(text))
    return sorted(found)


def find_colors(text: str) -> list[str]:
    """Return every hex or functional color literal in *text*, in order."""
    return [color for _, color in _color_matches(text)]


def _line_at(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def _strip_css_comments(text: str) -> str:
    # Keep newlines so offsets still map to the right line.
    return _CSS_COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), text)


def _css_colors(text: str, base_line: int = 1) -> Iterator[tuple[str, int]]:
    """Yield ``(color, line)`` for colors in CSS declaration values and Tailwind classes."""
    text = _strip_css_comments(text)
    for seg in _CSS_SEGMENT_RE.finditer(text):
        if text.startswith("{", seg.end()):
            continue
        decl = _CSS_DECLARATION_RE.search(seg.group(0))
        if decl is None:
            continue
        value_start = seg.start() + decl.start(1)
        for offset, color in _color_matches(decl.group(1)):
            yield color, base_line + _line_at(text, value_start + offset) - 1
    yield from _tailwind_colors(text, base_line)


def _tailwind_colors(text: str, base_line: int = 1) -> Iterator[tuple[str, int]]:
    for m in _TAILWIND_ARBITRARY_RE.finditer(text):
        for offset, color in _color_matches(m.group(1)):
            yield color, base_line + _line_at(text, m.start(1) + offset) - 1


def _html_colors(text: str) -> Iterator[tuple[str, int]]:
    for m in _HTML_STYLE_ATTR_RE.finditer(text):
        yield from _css_colors(m.group(2), _line_at(text, m.start(2)))
    for m in _HTML_STYLE_BLOCK_RE.finditer(text):
        yield from _css_colors(m.group(1), _line_at(text, m.start(1)))
    for m in _HTML_CLASS_ATTR_RE.finditer(text):
        yield from _tailwind_colors(m.group(2), _line_at(text, m.start(2)))


def _ts_colors(path: Path) -> Iterator[tuple[str, int]]:
    """Colors inside string and template literals (inline styles, templates, class lists)."""
    source = parse_source(path)
    for contents, line in iter_literal_contents(source.root):
        if _WHOLE_COLOR_RE.fullmatch(contents):
            yield contents.strip(), line
            continue
        if "<" in contents:
            # Inline template: ``{{ }}`` bindings would hide style attributes.
            for color, offset_line in _html_colors(contents):
                yield color, line + offset_line - 1
        yield from _css_colors(contents, line)


def scan_file(path: Path) -> list[tuple[str, int]]:
    """Return ``(color, line)`` pairs found in one app source file.

    Raises
    ------
    OSError, UnicodeDecodeError
        When the file cannot be read.
    """
    if path.suffix == ".ts":
        found = _ts_colors(path)
    else:
        text = path.read_text(encoding="utf-8")
        found = _html_colors(text) if path.suffix == ".html" else _css_colors(text)
    # A value can match both as a declaration and as a Tailwind class.
    return list(dict.fromkeys(found))


def load_approved_colors(ctx: WorkspaceContext) -> set[str]:
    """Collect every color spelled out in the configured token files."""
    approved: set[str] = set()
    for rel in ctx.config.color_token_files:
        path = ctx.workspace_root / rel
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Cannot read token file: %s", rel)
            continue
        approved.update(normalize_color(c) for c in find_colors(text))
    logger.debug("Approved colors: %d from token files", len(approved))
    return approved


def check_raw_colors(ctx: WorkspaceContext) -> CheckResult:
    """Flag hex/rgb/hsl color literals in app code that no token file defines."""
    app_rel = ctx.relative(ctx.app_root)
    result = CheckResult(
        check=CHECK_NAME,
        title="Raw colors",
        summary=f"OK: no raw colors detected in {app_rel}.",
    )

    approved = load_approved_colors(ctx)
    token_paths = {(ctx.workspace_root / rel).resolve() for rel in ctx.config.color_token_files}

    for path in collect_files(ctx.app_root, _SCANNED_SUFFIXES, ctx.config.ignore_dirs):
        if path.resolve() in token_paths:
            continue
        rel = ctx.relative(path)
        try:
            colors = scan_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            result.add(rel, f"Cannot read file: {exc}")
            continue

        for color, line in colors:
            if normalize_color(color) in approved:
                continue
            result.add(
                rel,
                f"Raw color {color} is not allowed; use a design token instead.",
                line_number=line,
            )

    return result
