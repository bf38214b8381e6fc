"""Type aliases used across the autodraw package."""

from typing import Literal, Mapping, Tuple, Union, get_args

# Color types
RGBAColor = Tuple[int, int, int, int]  # RGBA color in 0-255 range

# Measurements
Pixel = float

# Anchor grid: horizontal axis (l/m/r) followed by vertical axis (a/t/m/b)
Anchor = Literal["la", "lt", "lm", "lb", "ma", "mt", "mm", "mb", "ra", "rt", "rm", "rb"]
ANCHORS: tuple[str, ...] = get_args(Anchor)

HorizontalAlign = Literal["l", "m", "r"]
VerticalAlign = Literal["a", "t", "m", "b"]

# Output encodings
ImageFormat = Literal["PNG", "JPEG"]

# Missing-key handling for templates
SubstitutionPolicy = Literal["strict", "lenient"]

# One data row: column name -> cell value
CellValue = Union[str, int, float, bool, None]
Row = Mapping[str, CellValue]

# Upload lookup: logical key -> source string or raw image bytes
ImageSource = Union[str, bytes]
UploadLookup = Mapping[str, ImageSource]
