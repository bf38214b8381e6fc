"""Raster drawing surface backed by a Pillow image."""

from PIL import Image, ImageColor, ImageDraw

from autodraw.reporting import SurfaceError
from autodraw.types import RGBAColor

TRANSPARENT: RGBAColor = (0, 0, 0, 0)


def parse_color(color: str) -> RGBAColor:
    """
    Parse a CSS-style color ("#RRGGBB", "#RGB", "rgb(...)", "white").

    Raises:
        ValueError: If the color string is not recognized.
    """
    return ImageColor.getcolor(color, "RGBA")  # type: ignore[return-value]


class Surface:
    """
    A resizable RGBA canvas.

    Resizing discards the previous content, the way setting a browser
    canvas's width does.
    """

    def __init__(self, width: int = 1, height: int = 1) -> None:
        self.image: Image.Image
        self.draw: ImageDraw.ImageDraw
        self.resize(width, height)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def resize(self, width: int, height: int) -> None:
        """
        Reallocate the surface at a new size, cleared to transparent.

        Raises:
            SurfaceError: If the dimensions are invalid or allocation fails.
        """
        if width <= 0 or height <= 0:
            raise SurfaceError(f"Invalid surface size {width}x{height}")
        try:
            self.image = Image.new("RGBA", (int(width), int(height)), TRANSPARENT)
        except (ValueError, MemoryError) as e:
            raise SurfaceError(f"Could not allocate {width}x{height} surface: {e}") from e
        self.draw = ImageDraw.Draw(self.image)

    def clear(self) -> None:
        """Reset every pixel to transparent."""
        self.image.paste(TRANSPARENT, (0, 0, self.width, self.height))

    def fill(self, color: RGBAColor) -> None:
        """Fill the whole surface with a solid color."""
        self.image.paste(color, (0, 0, self.width, self.height))

    def draw_image(self, img: Image.Image, x: float, y: float, width: float, height: float) -> None:
        """
        Composite an image scaled to (width, height) with its top-left at (x, y).

        Alpha is respected; parts outside the surface are clipped.
        """
        target = (max(1, round(width)), max(1, round(height)))
        if img.size != target:
            img = img.resize(target, Image.Resampling.LANCZOS)
        if img.mode != "RGBA":
            img = img.convert("RGBA")

        layer = Image.new("RGBA", self.size, TRANSPARENT)
        layer.paste(img, (round(x), round(y)))
        self.image.alpha_composite(layer)

    def stroke_dashed_rect(
        self,
        box: tuple[float, float, float, float],
        color: RGBAColor,
        width: int = 2,
        dash: tuple[int, int] = (5, 3),
    ) -> None:
        """
        Stroke a dashed rectangle outline.

        Args:
            box: (x, y, width, height).
            color: Stroke color.
            width: Line width in pixels.
            dash: (on, off) dash lengths in pixels.
        """
        x, y, w, h = box
        corners = [(x, y), (x + w, y), (x + w, y + h), (x, y + h), (x, y)]
        on, off = dash
        step = max(on + off, 1)
        for (x0, y0), (x1, y1) in zip(corners, corners[1:]):
            length = abs(x1 - x0) + abs(y1 - y0)
            if length == 0:
                continue
            ux, uy = (x1 - x0) / length, (y1 - y0) / length
            pos = 0.0
            while pos < length:
                end = min(pos + on, length)
                self.draw.line(
                    [(x0 + ux * pos, y0 + uy * pos), (x0 + ux * end, y0 + uy * end)],
                    fill=color,
                    width=width,
                )
                pos += step

    def blit(self, other: "Surface") -> None:
        """Replace this surface's content with another surface's, in one copy."""
        if self.size != other.size:
            self.resize(*other.size)
        self.image.paste(other.image, (0, 0))
