"""Rendering modules for raster surfaces and image processing."""

from autodraw.render.image import (
    ImageCache,
    ImageLoader,
    encode_image,
    load_image_from_bytes,
    load_uploads,
    scale_to_fit,
)
from autodraw.render.surface import Surface, parse_color

__all__ = [
    "ImageCache",
    "ImageLoader",
    "Surface",
    "encode_image",
    "load_image_from_bytes",
    "load_uploads",
    "parse_color",
    "scale_to_fit",
]
