"""Text measurement oracles.

The layout engine never measures text itself: it asks a ``TextMeasurer``
for the box a label occupies. Callers own the measurer and its caches; the
engine keeps no process-wide measurement state.

Two implementations ship with the package:

- ``MonospaceMeasurer``: deterministic column-count estimate (wcwidth aware),
  used by default and in tests.
- ``PillowMeasurer``: real glyph advances from TrueType fonts via Pillow.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

from PIL import ImageFont
from wcwidth import wcwidth

# Line box height as a multiple of the font size.
LINE_HEIGHT: float = 1.4


@dataclass(frozen=True)
class TextSize:
    width: int
    height: int


class TextMeasurer(Protocol):
    """Protocol that every text measurement oracle must implement."""

    def measure(self, text: str, font_size: float, font_family: str, font_weight: str = "normal") -> TextSize:
        """Return the box of a possibly multi-line label."""
        ...

    def wrap(
        self,
        text: str,
        max_width: float,
        font_size: float,
        font_family: str,
        font_weight: str = "normal",
    ) -> list[str]:
        """Greedy word-wrap ``text`` so no line exceeds ``max_width`` where possible."""
        ...


# ─── Shared Helpers ───────────────────────────────────────────────────────────


def text_box(text: str, font_size: float, line_width: Callable[[str], float]) -> TextSize:
    """Measure ``text`` line by line: widest line × (LINE_HEIGHT · size · lines)."""
    lines = text.split("\n")
    max_w = max(line_width(line) for line in lines)
    height = font_size * LINE_HEIGHT * len(lines)
    return TextSize(width=math.ceil(max_w), height=math.ceil(height))


def greedy_wrap(text: str, max_width: float, line_width: Callable[[str], float]) -> list[str]:
    """Split ``text`` on spaces and pack words greedily into lines.

    A word that does not fit starts a new line. A single word wider than
    ``max_width`` still gets a line of its own. Empty input gives no lines.
    """
    lines: list[str] = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if line_width(candidate) > max_width and current:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def display_columns(line: str) -> int:
    """Terminal column width of ``line``; wide glyphs count 2, others at least 1."""
    return sum(max(wcwidth(ch), 1) for ch in line)


# ─── Monospace Estimate ───────────────────────────────────────────────────────


class MonospaceMeasurer:
    """Estimate text width from display columns.

    Each column is ``char_width × font_size`` wide; bold text is widened by
    ``bold_factor``. East Asian wide characters and emoji take two columns.
    """

    def __init__(self, char_width: float = 0.6, bold_factor: float = 1.1) -> None:
        self.char_width = char_width
        self.bold_factor = bold_factor

    def _line_width(self, line: str, font_size: float, font_weight: str) -> float:
        width = display_columns(line) * self.char_width * font_size
        if font_weight == "bold":
            width *= self.bold_factor
        return width

    def measure(self, text: str, font_size: float, font_family: str, font_weight: str = "normal") -> TextSize:
        return text_box(text, font_size, lambda line: self._line_width(line, font_size, font_weight))

    def wrap(
        self,
        text: str,
        max_width: float,
        font_size: float,
        font_family: str,
        font_weight: str = "normal",
    ) -> list[str]:
        return greedy_wrap(text, max_width, lambda line: self._line_width(line, font_size, font_weight))


# ─── Pillow Fonts ─────────────────────────────────────────────────────────────

GENERIC_FONT_FALLBACKS: dict[str, list[str]] = {
    "sans-serif": ["DejaVuSans", "Arial", "Helvetica"],
    "serif": ["DejaVuSerif", "Times New Roman"],
    "monospace": ["DejaVuSansMono", "Courier New"],
    "system-ui": ["DejaVuSans", "Segoe UI"],
}

FALLBACK_FONT = "DejaVuSans"


def font_stack(font_family: str) -> list[str]:
    """Split a CSS font-family list into bare family names, in order."""
    names = []
    for part in font_family.split(","):
        name = part.strip().strip("'\"")
        if name:
            names.append(name)
    return names


class PillowMeasurer:
    """Measure labels with Pillow's TrueType renderer.

    Families of a CSS font stack are tried in order (generic families map to
    common files), then ``DejaVuSans``, then Pillow's built-in font. Loaded
    fonts are cached per instance, keyed by (family stack, weight, size).

    Args:
        font_paths: Optional explicit ``family name → font file`` mapping,
            consulted before the file-name guesses.
    """

    def __init__(self, font_paths: Mapping[str, str] | None = None) -> None:
        self._font_paths = {k.lower(): v for k, v in (font_paths or {}).items()}
        self._fonts: dict[tuple[str, str, int], ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}

    def _candidates(self, font_family: str, font_weight: str) -> list[str]:
        families: list[str] = []
        for name in font_stack(font_family):
            families.extend(GENERIC_FONT_FALLBACKS.get(name.lower(), [name]))
        families.append(FALLBACK_FONT)

        candidates: list[str] = []
        for family in families:
            explicit = self._font_paths.get(family.lower())
            if explicit:
                candidates.append(explicit)
            stem = family.replace(" ", "")
            if font_weight == "bold":
                candidates.append(f"{stem}-Bold.ttf")
            candidates.append(f"{stem}.ttf")
        return candidates

    def font(
        self, font_size: float, font_family: str, font_weight: str = "normal"
    ) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        key_size = max(1, int(round(font_size)))
        cache_key = (font_family.lower(), font_weight, key_size)
        cached = self._fonts.get(cache_key)
        if cached is not None:
            return cached

        font = None
        for candidate in self._candidates(font_family, font_weight):
            try:
                font = ImageFont.truetype(candidate, key_size)
                break
            except OSError:
                continue
        if font is None:
            font = ImageFont.load_default(size=key_size)

        self._fonts[cache_key] = font
        return font

    def measure(self, text: str, font_size: float, font_family: str, font_weight: str = "normal") -> TextSize:
        font = self.font(font_size, font_family, font_weight)
        return text_box(text, font_size, font.getlength)

    def wrap(
        self,
        text: str,
        max_width: float,
        font_size: float,
        font_family: str,
        font_weight: str = "normal",
    ) -> list[str]:
        font = self.font(font_size, font_family, font_weight)
        return greedy_wrap(text, max_width, font.getlength)
