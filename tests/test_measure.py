"""Tests for measure.py — text boxes, wrapping and the two measurers."""

from __future__ import annotations

import math

import pytest
from PIL import ImageFont

from mindmap_layout.measure import (
    FALLBACK_FONT,
    LINE_HEIGHT,
    MonospaceMeasurer,
    PillowMeasurer,
    TextSize,
    display_columns,
    font_stack,
    greedy_wrap,
    text_box,
)

FAMILY = "'Inter', sans-serif"


# ─── Helpers ──────────────────────────────────────────────────────────────────


class TestDisplayColumns:
    def test_ascii(self):
        """ASCII characters take one column each."""
        assert display_columns("abc") == 3

    def test_wide(self):
        """East Asian wide characters take two columns."""
        assert display_columns("日本") == 4

    def test_control_counts_one(self):
        """Zero-width or non-printable characters still count as one column."""
        assert display_columns("\t") == 1

    def test_empty(self):
        assert display_columns("") == 0


class TestTextBox:
    def test_widest_line_wins(self):
        """Width is the widest line, height one line box per line."""
        size = text_box("ab\nabcd", 10, lambda line: 5 * len(line))
        assert size == TextSize(width=20, height=math.ceil(10 * LINE_HEIGHT * 2))

    def test_rounds_up(self):
        """Fractional widths round up to whole units."""
        assert text_box("a", 10, lambda line: 7.2).width == 8


class TestGreedyWrap:
    def width(self, line: str) -> float:
        return 10 * len(line)

    def test_packs_words(self):
        """Words are packed until the next one would overflow."""
        assert greedy_wrap("aa bb cc", 50, self.width) == ["aa bb", "cc"]

    def test_long_word_gets_own_line(self):
        """A word wider than the limit is not split."""
        assert greedy_wrap("a abcdefgh b", 30, self.width) == ["a", "abcdefgh", "b"]

    def test_empty_text(self):
        """Empty input gives no lines."""
        assert greedy_wrap("", 50, self.width) == []


# ─── MonospaceMeasurer ────────────────────────────────────────────────────────


class TestMonospaceMeasurer:
    def test_width_scales_with_font_size(self):
        """Width = columns × char_width × font_size."""
        m = MonospaceMeasurer(char_width=0.5)
        assert m.measure("abcd", 10, FAMILY).width == 20
        assert m.measure("abcd", 20, FAMILY).width == 40

    def test_height_per_line(self):
        """Height = font_size × LINE_HEIGHT × line count."""
        m = MonospaceMeasurer()
        assert m.measure("a", 10, FAMILY).height == math.ceil(10 * LINE_HEIGHT)
        assert m.measure("a\nb\nc", 10, FAMILY).height == math.ceil(10 * LINE_HEIGHT * 3)

    def test_bold_is_wider(self):
        """Bold text is widened by bold_factor."""
        m = MonospaceMeasurer()
        assert m.measure("Label", 16, FAMILY, "bold").width > m.measure("Label", 16, FAMILY).width

    def test_wide_characters(self):
        """Wide characters measure twice as wide as ASCII."""
        m = MonospaceMeasurer(char_width=0.5)
        assert m.measure("日本", 10, FAMILY).width == m.measure("abcd", 10, FAMILY).width

    def test_wrap(self):
        """wrap uses the same per-line width estimate."""
        m = MonospaceMeasurer(char_width=1.0)
        assert m.wrap("aa bb cc", 50, 10, FAMILY) == ["aa bb", "cc"]


# ─── PillowMeasurer ───────────────────────────────────────────────────────────


class TestFontStack:
    def test_strips_quotes(self):
        """Quotes and whitespace are removed, order kept."""
        assert font_stack("'Inter', \"Segoe UI\", sans-serif") == ["Inter", "Segoe UI", "sans-serif"]

    def test_skips_empty_entries(self):
        assert font_stack("Arial,, ") == ["Arial"]


class TestPillowMeasurer:
    def test_bold_candidates_first(self):
        """Bold weights try the -Bold file before the regular one."""
        candidates = PillowMeasurer()._candidates("Inter", "bold")
        assert candidates[:2] == ["Inter-Bold.ttf", "Inter.ttf"]

    def test_generic_family_mapping(self):
        """Generic CSS families map to concrete font files."""
        candidates = PillowMeasurer()._candidates("sans-serif", "normal")
        assert candidates[0] == "DejaVuSans.ttf"
        assert candidates[-1] == f"{FALLBACK_FONT}.ttf"

    def test_explicit_paths_first(self):
        """Configured font files are tried before file-name guesses."""
        m = PillowMeasurer(font_paths={"Inter": "/fonts/inter.ttf"})
        assert m._candidates("Inter", "normal")[:2] == ["/fonts/inter.ttf", "Inter.ttf"]

    def test_fonts_cached_per_instance(self):
        """The same (family, weight, size) loads once per measurer."""
        m = PillowMeasurer()
        assert m.font(14, "NoSuchFont") is m.font(14, "NoSuchFont")
        assert PillowMeasurer().font(14, "NoSuchFont") is not m.font(14, "NoSuchFont")

    def test_font_has_glyph_metrics(self):
        """Loaded fonts, fallback included, expose getlength for measuring."""
        font = PillowMeasurer().font(14, "NoSuchFont", "bold")
        assert isinstance(font, (ImageFont.FreeTypeFont, ImageFont.ImageFont))
        assert font.getlength("abc") > 0

    def test_measure_unknown_family_falls_back(self):
        """Unknown families still produce a usable, positive box."""
        size = PillowMeasurer().measure("Hello", 16, "NoSuchFont")
        assert size.width > 0
        assert size.height == math.ceil(16 * LINE_HEIGHT)

    def test_longer_text_is_wider(self):
        m = PillowMeasurer()
        assert m.measure("Hello world", 16, FAMILY).width > m.measure("Hello", 16, FAMILY).width

    @pytest.mark.parametrize("text", ["one two three four five six", "alpha beta"])
    def test_wrap_respects_width(self, text: str):
        """Every wrapped line fits unless it is a single word."""
        m = PillowMeasurer()
        font = m.font(16, FAMILY)
        for line in m.wrap(text, 80, 16, FAMILY):
            assert font.getlength(line) <= 80 or " " not in line
