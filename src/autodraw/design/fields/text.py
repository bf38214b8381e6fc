"""Text field renderer."""

import logging

from PIL import ImageDraw

from autodraw.config import TextField
from autodraw.design.base import FieldBounds, FieldRenderer, RendererContext
from autodraw.render.surface import parse_color
from autodraw.types import RGBAColor
from autodraw.utils.text import Font, TextLayout, font_ascent, font_measure, layout_text

logger = logging.getLogger(__name__)

FALLBACK_COLOR: RGBAColor = (0, 0, 0, 255)


def draw_text_with_spacing(
    draw: ImageDraw.ImageDraw,
    text: str,
    x: float,
    y: float,
    font: Font,
    fill: RGBAColor,
    letter_spacing: float = 0,
) -> float:
    """
    Draw one line of text with its baseline-left corner at (x, y).

    With letter spacing the line is drawn glyph by glyph, each advanced by
    its own width plus the spacing.

    Returns:
        Advance width of what was drawn.
    """
    if letter_spacing == 0:
        draw.text((x, y), text, font=font, fill=fill, anchor="ls")
        return float(font.getlength(text))

    current_x = x
    for char in text:
        draw.text((current_x, y), char, font=font, fill=fill, anchor="ls")
        current_x += font.getlength(char) + letter_spacing
    return current_x - x


class TextFieldRenderer(FieldRenderer[TextField]):
    """Draws a possibly multi-line, anchored text field."""

    def get_font(self, context: RendererContext) -> Font:
        return context.fonts.get_font(
            self.field.font_family,
            self.field.font_size,
            weight=self.field.font_weight,
            style=self.field.font_style,
            warnings=context.warnings,
        )

    def measure(self, context: RendererContext) -> tuple[TextLayout, Font] | None:
        """
        Resolve the text and compute its layout.

        This is the single source of geometry for both drawing and bounds.

        Returns:
            (layout, font), or None when the text is unresolved or empty.
        """
        text = context.resolve(self.field.text)
        if not text:
            return None

        font = self.get_font(context)
        layout = layout_text(
            text,
            self.field,
            measure=font_measure(font),
            ascent=font_ascent(font, self.field.font_size),
        )
        return layout, font

    def _fill(self, context: RendererContext) -> RGBAColor:
        try:
            return parse_color(self.field.color)
        except ValueError:
            context.warnings.warn(
                "invalid_color",
                f"Field {self.field_index}: invalid color '{self.field.color}', using black",
                source=self.field.color,
            )
            return FALLBACK_COLOR

    async def render(self, context: RendererContext) -> None:
        """Render text lines, each anchored horizontally on its own."""
        if context.surface is None:
            raise ValueError("TextFieldRenderer.render requires a surface")

        measured = self.measure(context)
        if measured is None:
            return
        layout, font = measured

        fill = self._fill(context)
        letter_spacing = self.field.effective_letter_spacing

        for line, (line_x, baseline_y) in zip(layout.lines, layout.line_origins()):
            # Empty lines only advance the baseline
            if not line:
                continue
            draw_text_with_spacing(context.surface.draw, line, line_x, baseline_y, font, fill, letter_spacing)

    def bounds(self, context: RendererContext) -> FieldBounds | None:
        measured = self.measure(context)
        if measured is None:
            return None
        layout, _ = measured
        x, y, width, height = layout.box
        return FieldBounds(field_index=self.field_index, x=x, y=y, width=width, height=height)
