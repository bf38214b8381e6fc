"""Shared fixtures for the autodraw test modules."""

import base64
from io import BytesIO

import pytest
from PIL import Image, ImageChops

from autodraw.config import Settings
from autodraw.fonts import FontRegistry
from autodraw.render.canvas import CardRenderer
from autodraw.render.image import ImageCache

WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def png_bytes(color: tuple[int, int, int, int], size: tuple[int, int]) -> bytes:
    """Encode a solid-color PNG."""
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def data_url(color: tuple[int, int, int, int], size: tuple[int, int]) -> str:
    """A base64 data: URL of a solid-color PNG."""
    return "data:image/png;base64," + base64.b64encode(png_bytes(color, size)).decode("ascii")


def ink_bbox(img: Image.Image, background: tuple[int, int, int, int] = WHITE) -> tuple[int, int, int, int] | None:
    """Bounding box of every pixel that differs from a solid background."""
    plain = Image.new("RGB", img.size, background[:3])
    return ImageChops.difference(img.convert("RGB"), plain).getbbox()


@pytest.fixture
def fonts() -> FontRegistry:
    """Registry with no font files, so every family resolves to Pillow's built-in font."""
    return FontRegistry()


@pytest.fixture
def cache() -> ImageCache:
    return ImageCache()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def renderer(settings: Settings, fonts: FontRegistry, cache: ImageCache) -> CardRenderer:
    return CardRenderer(settings=settings, fonts=fonts, cache=cache)
