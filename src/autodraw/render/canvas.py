"""Card rendering onto raster surfaces."""

import logging

from PIL import Image

from autodraw.config import CanvasConfig, CardConfig, Settings
from autodraw.design.base import FieldBounds, RendererContext
from autodraw.design.bounds import compute_bounds
from autodraw.design.fields import renderer_for
from autodraw.fonts import FontRegistry
from autodraw.render.image import ImageCache, ImageLoader, resolve_source
from autodraw.render.surface import Surface, parse_color
from autodraw.reporting import ImageLoadError, WarningCollector
from autodraw.types import RGBAColor, Row, UploadLookup

logger = logging.getLogger(__name__)

WHITE: RGBAColor = (255, 255, 255, 255)


class CardRenderer:
    """
    Renders cards from a template and one data row.

    Each render runs: size canvas, draw background, draw fields in declared
    order (later fields on top), then the optional selection highlight.

    One instance owns one offscreen surface for double-buffered rendering, so
    an instance must not run overlapping renders.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fonts: FontRegistry | None = None,
        images: ImageLoader | None = None,
        cache: ImageCache | None = None,
    ) -> None:
        """
        Initialize card renderer.

        Args:
            settings: Runtime settings (defaults if None).
            fonts: Font registry (built from settings if None).
            images: Image loader (built from settings if None).
            cache: Decode cache for a loader built from settings.
        """
        self.settings = settings or Settings()
        self.fonts = fonts or FontRegistry(
            directories=[self.settings.fonts_dir] if self.settings.fonts_dir else [],
            fallback_font=self.settings.fallback_font,
            google_fonts=self.settings.google_fonts,
        )
        self.images = images or ImageLoader.from_settings(self.settings, cache=cache)
        self._offscreen: Surface | None = None

    def _context(
        self,
        surface: Surface | None,
        row: Row,
        index: int,
        lookup: UploadLookup | None,
        warnings: WarningCollector | None,
    ) -> RendererContext:
        return RendererContext(
            row=row,
            index=index,
            fonts=self.fonts,
            images=self.images,
            lookup=lookup,
            policy=self.settings.substitution_policy,
            warnings=warnings if warnings is not None else WarningCollector(),
            surface=surface,
        )

    async def render(
        self,
        surface: Surface,
        config: CardConfig,
        row: Row,
        index: int,
        lookup: UploadLookup | None = None,
        highlight_index: int | None = None,
        warnings: WarningCollector | None = None,
    ) -> None:
        """
        Render one card directly onto a surface.

        Args:
            surface: Target surface; resized to the canvas size (content discarded).
            config: Card template.
            row: Row values.
            index: 1-based row counter.
            lookup: Upload key -> source mapping.
            highlight_index: Field to outline as selected, if any.
            warnings: Collector for recovered problems.

        Raises:
            SurfaceError: If the surface can't be sized for this canvas.
        """
        surface.resize(config.canvas.width, config.canvas.height)
        context = self._context(surface, row, index, lookup, warnings)
        await self._draw_frame(config, context, highlight_index)

    async def render_double_buffered(
        self,
        surface: Surface,
        config: CardConfig,
        row: Row,
        index: int,
        lookup: UploadLookup | None = None,
        highlight_index: int | None = None,
        warnings: WarningCollector | None = None,
    ) -> None:
        """
        Render one card offscreen, then copy the finished frame to the surface.

        The visible surface never holds a partially drawn frame. The offscreen
        surface is reused between calls and reallocated only when the canvas
        size changes.
        """
        size = (config.canvas.width, config.canvas.height)
        if self._offscreen is None or self._offscreen.size != size:
            logger.debug(f"Allocating offscreen surface {size[0]}x{size[1]}")
            self._offscreen = Surface(*size)
        else:
            self._offscreen.clear()

        context = self._context(self._offscreen, row, index, lookup, warnings)
        await self._draw_frame(config, context, highlight_index)

        surface.blit(self._offscreen)

    async def render_image(
        self,
        config: CardConfig,
        row: Row,
        index: int,
        lookup: UploadLookup | None = None,
        highlight_index: int | None = None,
        warnings: WarningCollector | None = None,
    ) -> Image.Image:
        """Render one card onto a fresh surface and return its image."""
        surface = Surface(config.canvas.width, config.canvas.height)
        await self.render(surface, config, row, index, lookup, highlight_index, warnings)
        return surface.image

    def bounds(
        self,
        config: CardConfig,
        row: Row,
        index: int,
        lookup: UploadLookup | None = None,
        warnings: WarningCollector | None = None,
    ) -> list[FieldBounds]:
        """Field bounds for hit testing, using this renderer's fonts and cache."""
        return compute_bounds(
            config,
            row,
            index,
            fonts=self.fonts,
            images=self.images,
            lookup=lookup,
            policy=self.settings.substitution_policy,
            warnings=warnings,
        )

    async def _draw_frame(self, config: CardConfig, context: RendererContext, highlight_index: int | None) -> None:
        await self._draw_background(config.canvas, context)

        # Sequential on purpose: drawing order is z-order
        for field_index, field in enumerate(config.fields):
            await renderer_for(field, field_index).render(context)

        if highlight_index is not None and highlight_index >= 0:
            self._draw_highlight(config, context, highlight_index)

    async def _draw_background(self, canvas: CanvasConfig, context: RendererContext) -> None:
        """Draw the background image stretched to the canvas, or a solid fill."""
        surface = context.surface
        assert surface is not None

        if canvas.background_image:
            source = resolve_source(canvas.background_image, context.lookup)
            try:
                img = await context.images.load(source)
                surface.draw_image(img, 0, 0, canvas.width, canvas.height)
                return
            except ImageLoadError as e:
                context.warnings.warn(
                    "background_load",
                    f"Failed to load background {canvas.background_image}: {e.reason}; using background color",
                    source=canvas.background_image,
                )

        surface.fill(self._background_color(canvas, context))

    def _background_color(self, canvas: CanvasConfig, context: RendererContext) -> RGBAColor:
        try:
            return parse_color(canvas.background_color) if canvas.background_color else WHITE
        except ValueError:
            context.warnings.warn(
                "invalid_color",
                f"Invalid background color '{canvas.background_color}', using white",
                source=canvas.background_color,
            )
            return WHITE

    def _draw_highlight(self, config: CardConfig, context: RendererContext, highlight_index: int) -> None:
        """Outline the selected field with a padded dashed rectangle."""
        surface = context.surface
        assert surface is not None

        bounds = compute_bounds(
            config,
            context.row,
            context.index,
            fonts=context.fonts,
            images=context.images,
            lookup=context.lookup,
            policy=context.policy,
            warnings=context.warnings,
        )
        selected = next((b for b in bounds if b.field_index == highlight_index), None)
        if selected is None:
            return

        surface.stroke_dashed_rect(
            selected.padded(self.settings.highlight_padding),
            parse_color(self.settings.highlight_color),
            width=self.settings.highlight_width,
            dash=self.settings.highlight_dash,
        )
