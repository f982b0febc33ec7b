"""Tests for sliceguard.checks.raw_colors: color literals outside the token files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sliceguard.checks.raw_colors import (
    check_raw_colors,
    find_colors,
    normalize_color,
    scan_file,
)
from sliceguard.workspace import get_workspace_context

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Color literal matching
# ---------------------------------------------------------------------------


class TestFindColors:
    """Test hex and functional color detection."""

    def test_hex_lengths(self) -> None:
        assert find_colors("#fff #ffff #ff00aa #ff00aa80") == [
            "#fff",
            "#ffff",
            "#ff00aa",
            "#ff00aa80",
        ]

    def test_functional_notations(self) -> None:
        text = "rgb(0, 0, 0) rgba(0,0,0,.5) hsl(120 50% 50%) HSLA(0, 0%, 0%, 1)"
        assert len(find_colors(text)) == 4

    def test_non_colors_ignored(self) -> None:
        assert find_colors("&#123; #main-nav #abcdefg issue#123") == []

    def test_normalize(self) -> None:
        assert normalize_color("RGB(0, 0, 0)") == "rgb(0,0,0)"
        assert normalize_color("#FFF") == "#fff"


# ---------------------------------------------------------------------------
# Per-file scanning
# ---------------------------------------------------------------------------


class TestScanFile:
    """Test which parts of each file type are scanned."""

    def test_css_declarations_with_lines(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "x.scss",
            "/* #000000 in a comment */\n"
            ".btn {\n"
            "  color: #ff0000;\n"
            "  background: var(--surface);\n"
            "  border: 1px solid rgba(0, 0, 0, 0.1);\n"
            "}\n",
        )
        assert scan_file(path) == [("#ff0000", 3), ("rgba(0, 0, 0, 0.1)", 5)]

    def test_id_selector_is_not_a_color(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "x.css", "#abc { display: block; }\n")
        assert scan_file(path) == []

    def test_id_selector_after_pseudo_class_is_not_a_color(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "x.css", "a:hover #add { color: var(--c); }\n")
        assert scan_file(path) == []

    def test_nested_selector_is_not_a_color(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "x.scss",
            ".a {\n  color: var(--c);\n  &:focus #fab {\n    color: #fab;\n  }\n}\n",
        )
        assert scan_file(path) == [("#fab", 4)]

    def test_url_fragment_is_not_a_color(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "x.css",
            ".icon { filter: url(#fade); mask: url('#bad'); fill: url(\"#cab\"); }\n",
        )
        assert scan_file(path) == []

    def test_ts_template_with_binding(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "x.ts",
            "const tpl = `<p style=\"color: #abc\">{{ title }}</p>`;\n",
        )
        assert scan_file(path) == [("#abc", 1)]

    def test_html_style_and_class(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "x.html",
            '<a href="#top">top</a>\n'
            '<div style="color: #abc">x</div>\n'
            '<p class="text-sm bg-[#123456]">y</p>\n',
        )
        assert scan_file(path) == [("#abc", 2), ("#123456", 3)]

    def test_ts_literals(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "x.ts",
            "// #ffffff in a comment\n"
            "const accent = '#0f0';\n"
            "const route = '#/home';\n"
            "const tpl = `\n"
            '  <p style="color: rgb(1, 2, 3)">x</p>\n'
            "`;\n",
        )
        assert scan_file(path) == [("#0f0", 2), ("rgb(1, 2, 3)", 5)]


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------


class TestCheckRawColors:
    """Test the workspace-level checker."""

    def test_clean_workspace_passes(self, workspace: Path) -> None:
        result = check_raw_colors(get_workspace_context(workspace))
        assert result.passed
        assert result.summary == "OK: no raw colors detected in src/app."

    def test_raw_color_is_flagged(self, workspace: Path) -> None:
        badge = workspace / "src" / "app" / "shared" / "ui" / "badge.css"
        _write(badge, ".b { color: #e11d48; }\n")
        result = check_raw_colors(get_workspace_context(workspace))
        assert [(v.location, v.message) for v in result.violations] == [
            (
                "src/app/shared/ui/badge.css:1",
                "Raw color #e11d48 is not allowed; use a design token instead.",
            )
        ]

    def test_token_colors_are_approved(self, workspace: Path) -> None:
        _write(workspace / "src" / "styles.css", ":root {\n  --danger: #E11D48;\n}\n")
        badge = workspace / "src" / "app" / "shared" / "ui" / "badge.css"
        _write(badge, ".b { color: #e11d48; }\n")
        assert check_raw_colors(get_workspace_context(workspace)).passed

    def test_configured_token_files(self, workspace: Path) -> None:
        _write(
            workspace / ".sliceguard" / "config.yml",
            "color_token_files:\n  - design/tokens.css\n",
        )
        _write(workspace / "design" / "tokens.css", ":root { --ok: rgb(0, 128, 0); }\n")
        _write(workspace / "src" / "app" / "x.scss", ".x { color: rgb(0,128,0); }\n")
        assert check_raw_colors(get_workspace_context(workspace)).passed

    def test_ignored_dirs_are_skipped(self, workspace: Path) -> None:
        _write(workspace / "src" / "app" / "node_modules" / "lib.css", ".x { color: #000; }\n")
        assert check_raw_colors(get_workspace_context(workspace)).passed
