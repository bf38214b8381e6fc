"""Image field renderer."""

from autodraw.config import ImageField
from autodraw.design.base import FieldBounds, FieldRenderer, RendererContext
from autodraw.render.image import resolve_source, scale_to_fit, source_key
from autodraw.reporting import ImageLoadError

# Box size used for hit testing when neither a max size nor a decoded image is known
DEFAULT_IMAGE_BOX = 100.0


class ImageFieldRenderer(FieldRenderer[ImageField]):
    """Draws an image scaled down to the field's maximum size."""

    async def render(self, context: RendererContext) -> None:
        """
        Load and draw the image at the field position.

        A load failure is reported as a warning and the field is skipped;
        the rest of the card still renders.
        """
        if context.surface is None:
            raise ValueError("ImageFieldRenderer.render requires a surface")

        path = context.resolve(self.field.path)
        if not path:
            return

        source = resolve_source(path, context.lookup)
        try:
            img = await context.images.load(source)
        except ImageLoadError as e:
            context.warnings.warn("image_load", f"Failed to draw image {path}: {e.reason}", source=path)
            return

        width, height = scale_to_fit(img.width, img.height, self.field.max_width, self.field.max_height)
        context.surface.draw_image(img, self.field.position.x, self.field.position.y, width, height)

    def bounds(self, context: RendererContext) -> FieldBounds | None:
        """
        Box at the field position sized by the declared maximums.

        Never loads the image: a missing maximum falls back to the intrinsic
        size only if the image is already in the decode cache.
        """
        path = context.resolve(self.field.path)
        if not path:
            return None

        intrinsic = context.images.cache.size_of(source_key(resolve_source(path, context.lookup)))
        width = self.field.max_width or (intrinsic[0] if intrinsic else DEFAULT_IMAGE_BOX)
        height = self.field.max_height or (intrinsic[1] if intrinsic else DEFAULT_IMAGE_BOX)

        return FieldBounds(
            field_index=self.field_index,
            x=self.field.position.x,
            y=self.field.position.y,
            width=width,
            height=height,
        )
