"""Utility modules."""

from autodraw.utils.template import find_placeholders, format_cell, resolve_template
from autodraw.utils.text import TextLayout, anchor_offset, layout_text, wrap_text

__all__ = [
    "TextLayout",
    "anchor_offset",
    "find_placeholders",
    "format_cell",
    "layout_text",
    "resolve_template",
    "wrap_text",
]
