"""Field renderer implementations."""

from autodraw.config import ImageField, TextField
from autodraw.design.base import FieldRenderer
from autodraw.design.fields.image import ImageFieldRenderer
from autodraw.design.fields.text import TextFieldRenderer, draw_text_with_spacing


def renderer_for(field: TextField | ImageField, field_index: int) -> FieldRenderer:
    """Build the renderer matching a field's type."""
    if isinstance(field, TextField):
        return TextFieldRenderer(field, field_index)
    return ImageFieldRenderer(field, field_index)


__all__ = [
    "ImageFieldRenderer",
    "TextFieldRenderer",
    "draw_text_with_spacing",
    "renderer_for",
]
