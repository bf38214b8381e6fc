"""Text utilities for wrapping, measuring and anchoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from PIL import ImageFont

if TYPE_CHECKING:
    from autodraw.config import TextField
    from autodraw.types import Anchor

MeasureFn = Callable[[str], float]
"""Returns the advance width of a string in pixels for the current font."""

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont

# Fallback ascent ratio when the font reports no glyph extent for "M"
ASCENT_RATIO = 0.8


def measure_with_spacing(text: str, letter_spacing: float, measure: MeasureFn) -> float:
    """
    Measure text width including extra letter spacing.

    Args:
        text: Text to measure.
        letter_spacing: Extra pixels between adjacent glyphs.
        measure: Base width measurement for the current font.

    Returns:
        Width in pixels: base width plus (len - 1) * letter_spacing.
    """
    if not text:
        return 0.0
    width = measure(text)
    if letter_spacing != 0:
        width += (len(text) - 1) * letter_spacing
    return width


def wrap_text(
    text: str, max_width: float | None, letter_spacing: float, measure: MeasureFn
) -> list[str]:
    """
    Break text into lines.

    Text is split on newlines first; an empty paragraph stays as an empty line.
    With a max_width, each paragraph is wrapped greedily one character at a
    time, which works for scripts without spaces between words. A single
    character wider than max_width still gets its own line.

    Args:
        text: Text to wrap.
        max_width: Maximum line width in pixels, or None for no wrapping.
        letter_spacing: Extra pixels between adjacent glyphs.
        measure: Base width measurement for the current font.

    Returns:
        Lines in display order.
    """
    paragraphs = text.split("\n")
    if max_width is None or max_width <= 0:
        return paragraphs

    lines: list[str] = []
    for paragraph in paragraphs:
        if not paragraph:
            lines.append("")
            continue

        current_line = ""
        for char in paragraph:
            test_line = current_line + char
            test_width = measure_with_spacing(test_line, letter_spacing, measure)

            if test_width > max_width and current_line:
                lines.append(current_line)
                current_line = char
            else:
                current_line = test_line

        if current_line:
            lines.append(current_line)

    return lines


def horizontal_offset(anchor: Anchor, width: float) -> float:
    """Offset from the anchor x to the left edge of a box of the given width."""
    if anchor[0] == "m":
        return -width / 2
    if anchor[0] == "r":
        return -width
    return 0.0


def vertical_offset(anchor: Anchor, height: float, ascent: float) -> float:
    """Offset from the anchor y to the top edge of a box of the given height."""
    vertical = anchor[1]
    if vertical == "a":
        return -ascent
    if vertical == "m":
        return -height / 2
    if vertical == "b":
        return -height
    return 0.0


def anchor_offset(anchor: Anchor, box_width: float, box_height: float, ascent: float) -> tuple[float, float]:
    """
    Calculate the offset from a field position to its box's top-left corner.

    Args:
        anchor: Two-letter anchor code (horizontal l/m/r, vertical a/t/m/b).
        box_width: Width of the text block.
        box_height: Height of the text block.
        ascent: Distance from the top of the first line to its baseline.

    Returns:
        (dx, dy) to add to the position.
    """
    return horizontal_offset(anchor, box_width), vertical_offset(anchor, box_height, ascent)


def block_height(line_count: int, font_size: float, line_spacing: float) -> float:
    """Height of a block of lines: every line is font_size tall, gaps are line_spacing."""
    return line_count * (font_size + line_spacing) - line_spacing


def font_ascent(font: Font, font_size: float) -> float:
    """
    Measure the ascent used to place the first baseline.

    Uses the height of "M" above the baseline, which tracks the visible cap
    height better than the font's nominal ascender.

    Args:
        font: Loaded Pillow font.
        font_size: Nominal font size in pixels.

    Returns:
        Ascent in pixels (0.8 * font_size if the font reports nothing).
    """
    if isinstance(font, ImageFont.FreeTypeFont):
        _, top, _, _ = font.getbbox("M", anchor="ls")
        if top < 0:
            return float(-top)
    return font_size * ASCENT_RATIO


def font_measure(font: Font) -> MeasureFn:
    """Return a width measurement function bound to a font."""
    return lambda text: float(font.getlength(text))


@dataclass(frozen=True)
class TextLayout:
    """
    Canonical geometry of a text field.

    Rendering, bounds calculation and hit testing all read from this one
    object, so they cannot disagree.

    Attributes:
        lines: Wrapped lines in display order.
        line_widths: Width of each line including letter spacing.
        width: Width of the widest line.
        height: Height of the block.
        ascent: Distance from the block top to the first baseline.
        line_height: Baseline-to-baseline advance (font_size + line_spacing).
        anchor: Anchor the block was positioned with.
        x: Position x the anchor refers to.
        y: Position y the anchor refers to.
        dx: Horizontal offset from position to block left edge.
        dy: Vertical offset from position to block top edge.
    """

    lines: tuple[str, ...]
    line_widths: tuple[float, ...]
    width: float
    height: float
    ascent: float
    line_height: float
    anchor: Anchor
    x: float
    y: float
    dx: float
    dy: float

    @property
    def left(self) -> float:
        return self.x + self.dx

    @property
    def top(self) -> float:
        return self.y + self.dy

    @property
    def box(self) -> tuple[float, float, float, float]:
        """Block rectangle as (x, y, width, height)."""
        return (self.left, self.top, self.width, self.height)

    def line_origins(self) -> list[tuple[float, float]]:
        """
        Baseline-left drawing origin of each line.

        Each line is anchored horizontally on its own, so a centered block
        keeps every line centered, not just the block as a whole.
        """
        origins: list[tuple[float, float]] = []
        baseline = self.top + self.ascent
        for line_width in self.line_widths:
            line_x = self.x + horizontal_offset(self.anchor, line_width)
            origins.append((line_x, baseline))
            baseline += self.line_height
        return origins


def layout_text(
    text: str,
    field: TextField,
    measure: MeasureFn,
    ascent: float,
) -> TextLayout:
    """
    Compute the full geometry of a resolved text field.

    Args:
        text: Resolved (placeholder-free) text.
        field: Field supplying position, anchor, size and spacing.
        measure: Base width measurement for the field's font.
        ascent: First-line ascent for the field's font (see font_ascent).

    Returns:
        TextLayout with lines, sizes and anchor offsets.
    """
    letter_spacing = field.effective_letter_spacing
    line_spacing = field.effective_line_spacing

    lines = wrap_text(text, field.effective_wrap_width, letter_spacing, measure)
    line_widths = tuple(measure_with_spacing(line, letter_spacing, measure) for line in lines)

    width = max(line_widths, default=0.0)
    height = block_height(len(lines), field.font_size, line_spacing)
    dx, dy = anchor_offset(field.anchor, width, height, ascent)

    return TextLayout(
        lines=tuple(lines),
        line_widths=line_widths,
        width=width,
        height=height,
        ascent=ascent,
        line_height=field.font_size + line_spacing,
        anchor=field.anchor,
        x=field.position.x,
        y=field.position.y,
        dx=dx,
        dy=dy,
    )
