"""Base abstractions for field renderers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from autodraw.reporting import WarningCollector
from autodraw.types import Row, SubstitutionPolicy, UploadLookup
from autodraw.utils.template import resolve_template

if TYPE_CHECKING:
    from autodraw.fonts import FontRegistry
    from autodraw.render.image import ImageLoader
    from autodraw.render.surface import Surface


@dataclass(frozen=True)
class FieldBounds:
    """Axis-aligned box a rendered field occupies, in canvas coordinates."""

    field_index: int
    x: float
    y: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        """Inclusive point-in-box test."""
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height

    def padded(self, padding: float) -> tuple[float, float, float, float]:
        """Box grown by padding on every side, as (x, y, width, height)."""
        return (
            self.x - padding,
            self.y - padding,
            self.width + padding * 2,
            self.height + padding * 2,
        )


@dataclass
class RendererContext:
    """Everything a field renderer needs for one (row, index) evaluation."""

    row: Row
    index: int  # 1-based row counter
    fonts: "FontRegistry"
    images: "ImageLoader"
    lookup: UploadLookup | None = None
    policy: SubstitutionPolicy = "strict"
    warnings: WarningCollector = field(default_factory=WarningCollector)
    surface: "Surface | None" = None  # None when only measuring

    def resolve(self, template: str) -> str | None:
        """Resolve a template for this row, or None when the field must not render."""
        return resolve_template(template, self.row, self.index, self.policy)


FieldT = TypeVar("FieldT")


class FieldRenderer(ABC, Generic[FieldT]):
    """Base class for field renderers."""

    def __init__(self, field: FieldT, field_index: int) -> None:
        """
        Initialize field renderer.

        Args:
            field: Field configuration.
            field_index: Position of the field in the template's field list.
        """
        self.field = field
        self.field_index = field_index

    @abstractmethod
    async def render(self, context: RendererContext) -> None:
        """
        Draw this field onto context.surface.

        Args:
            context: Rendering context with surface, row and collaborators.
        """
        pass

    @abstractmethod
    def bounds(self, context: RendererContext) -> FieldBounds | None:
        """
        Compute the box this field occupies without drawing.

        Args:
            context: Rendering context (surface is not used).

        Returns:
            FieldBounds, or None if the field doesn't render for this row.
        """
        pass
