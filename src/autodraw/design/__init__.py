"""Field rendering and hit testing."""

from autodraw.design.base import FieldBounds, FieldRenderer, RendererContext
from autodraw.design.bounds import compute_bounds, find_field_at

__all__ = [
    "FieldBounds",
    "FieldRenderer",
    "RendererContext",
    "compute_bounds",
    "find_field_at",
]
