"""Field bounds for hit testing and selection highlights."""

from autodraw.config import CardConfig
from autodraw.design.base import FieldBounds, RendererContext
from autodraw.design.fields import renderer_for
from autodraw.fonts import FontRegistry
from autodraw.render.image import ImageLoader
from autodraw.reporting import WarningCollector
from autodraw.types import Row, SubstitutionPolicy, UploadLookup


def compute_bounds(
    config: CardConfig,
    row: Row,
    index: int,
    fonts: FontRegistry,
    images: ImageLoader | None = None,
    lookup: UploadLookup | None = None,
    policy: SubstitutionPolicy = "strict",
    warnings: WarningCollector | None = None,
) -> list[FieldBounds]:
    """
    Compute the box of every field that would render for a row.

    Uses the same layout functions as rendering, so a highlight drawn from
    these boxes always matches the drawn text. Fields that are unresolved or
    empty for this row get no entry; field_index keeps the position in config.fields.

    Args:
        config: Card template.
        row: Row values.
        index: 1-based row counter.
        fonts: Font registry used for text metrics.
        images: Image loader whose cache supplies intrinsic sizes (never loads).
        lookup: Upload key -> source mapping.
        policy: Missing-column policy ("strict" or "lenient").
        warnings: Collector for font fallbacks and similar.

    Returns:
        Bounds in field order.
    """
    context = RendererContext(
        row=row,
        index=index,
        fonts=fonts,
        images=images or ImageLoader(),
        lookup=lookup,
        policy=policy,
        warnings=warnings if warnings is not None else WarningCollector(),
    )

    bounds: list[FieldBounds] = []
    for field_index, field in enumerate(config.fields):
        field_bounds = renderer_for(field, field_index).bounds(context)
        if field_bounds is not None:
            bounds.append(field_bounds)
    return bounds


def find_field_at(bounds: list[FieldBounds], x: float, y: float) -> int | None:
    """
    Find the top-most field at a point.

    Scans from last to first because later fields are drawn on top.

    Args:
        bounds: Bounds from compute_bounds.
        x: Point x in canvas coordinates.
        y: Point y in canvas coordinates.

    Returns:
        field_index of the hit field, or None.
    """
    for field_bounds in reversed(bounds):
        if field_bounds.contains(x, y):
            return field_bounds.field_index
    return None
