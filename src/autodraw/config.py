"""Template data model and settings loading."""

import tomllib
from pathlib import Path
from typing import Annotated, Literal, Union

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from autodraw.types import Anchor, HorizontalAlign, ImageFormat, SubstitutionPolicy, VerticalAlign

DEFAULT_FONT_FAMILY = "Microsoft YaHei"
DEFAULT_FONT_SIZE = 32
DEFAULT_FONT_WEIGHT = 400
DEFAULT_LINE_SPACING = 4
DEFAULT_LETTER_SPACING = 0
DEFAULT_BACKGROUND_COLOR = "#F7F8FA"
DEFAULT_FILENAME_TEMPLATE = "{姓名}_{公司}_{index:03d}"


class _Model(BaseModel):
    """Base model: snake_case attributes, camelCase keys accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(_Model):
    """Top-left origin coordinates in unscaled canvas pixels."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    x: float = 0.0
    y: float = 0.0


class TextField(_Model):
    """A positioned, styled text template."""

    type: Literal["text"] = "text"
    text: str = "{姓名}"
    """Template string; may contain {column} and {index} placeholders."""

    position: Position = Field(default_factory=lambda: Position(x=100, y=100))
    font_family: str = DEFAULT_FONT_FAMILY
    font_style: str = "Regular"
    font_size: float = Field(default=DEFAULT_FONT_SIZE, gt=0)
    font_weight: int = Field(default=DEFAULT_FONT_WEIGHT, ge=1, le=1000)
    color: str = "#000000"
    anchor: Anchor = "la"

    wrap_width: float | None = None
    """Maximum line width in pixels. None (or <= 0) disables wrapping."""

    line_spacing: float | None = None
    """Extra space between lines in pixels. None means 4."""

    letter_spacing: float | None = None
    """Extra space between glyphs in pixels. None means 0."""

    @property
    def effective_line_spacing(self) -> float:
        return DEFAULT_LINE_SPACING if self.line_spacing is None else self.line_spacing

    @property
    def effective_letter_spacing(self) -> float:
        return DEFAULT_LETTER_SPACING if self.letter_spacing is None else self.letter_spacing

    @property
    def effective_wrap_width(self) -> float | None:
        if self.wrap_width is None or self.wrap_width <= 0:
            return None
        return self.wrap_width

    @property
    def horizontal_align(self) -> HorizontalAlign:
        return self.anchor[0]  # type: ignore[return-value]

    @property
    def vertical_align(self) -> VerticalAlign:
        return self.anchor[1]  # type: ignore[return-value]


class ImageField(_Model):
    """A positioned image whose path is a template."""

    type: Literal["image"] = "image"
    path: str = ""
    """Template resolving to a URL, file path or upload key."""

    position: Position = Field(default_factory=lambda: Position(x=100, y=100))
    max_width: float | None = Field(default=None, gt=0)
    max_height: float | None = Field(default=None, gt=0)


CardField = Annotated[Union[TextField, ImageField], Field(discriminator="type")]


class CanvasConfig(_Model):
    """Fixed raster dimensions and background of every generated card."""

    width: int = 1050
    height: int = 600
    background_color: str = DEFAULT_BACKGROUND_COLOR
    background_image: str | None = None


class OutputConfig(_Model):
    """Where and how generated cards are written."""

    directory: str = "output"
    format: ImageFormat = "PNG"
    filename: str = DEFAULT_FILENAME_TEMPLATE
    """Template for each card's file name (without extension)."""


class CardConfig(_Model):
    """Complete card template."""

    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    fields: list[CardField] = Field(default_factory=list)


def default_config() -> CardConfig:
    """Return the starting template of a new project."""
    return CardConfig()


def default_text_field() -> TextField:
    """Return the text field added by the editor's "add text" action."""
    return TextField()


def default_image_field() -> ImageField:
    """Return the image field added by the editor's "add image" action."""
    return ImageField(max_width=200, max_height=200)


class Settings(BaseModel):
    """
    Runtime settings shared by every render.

    All parameters have defaults; a settings file only needs to override what
    differs:

        [autodraw]
        fonts_dir = "fonts"
        substitution_policy = "lenient"
    """

    # ========================================================================
    # Fonts
    # ========================================================================
    fonts_dir: Path | None = None
    """Extra directory scanned for .ttf/.otf files (in addition to the bundled fonts directory)."""

    fallback_font: str | None = None
    """Font file used when a family cannot be resolved. None uses Pillow's built-in font."""

    google_fonts: bool = False
    """Try downloading unknown families from Google Fonts."""

    # ========================================================================
    # Templates
    # ========================================================================
    substitution_policy: SubstitutionPolicy = "strict"
    """"strict": any missing column suppresses the field. "lenient": missing columns become ""."""

    # ========================================================================
    # Images
    # ========================================================================
    image_timeout: float = 15.0
    """Timeout in seconds for fetching remote images."""

    user_agent: str = "autodraw/0.1"

    base_dir: Path | None = None
    """Directory relative image paths are resolved against. None uses the current directory."""

    # ========================================================================
    # Selection highlight
    # ========================================================================
    highlight_color: str = "#3b82f6"
    highlight_width: int = 2
    highlight_padding: float = 5.0
    highlight_dash: tuple[int, int] = (5, 3)

    # ========================================================================
    # Export
    # ========================================================================
    jpeg_quality: int = Field(default=95, ge=1, le=100)
    archive_name: str = "cards.zip"

    @field_validator("highlight_color")
    @classmethod
    def _check_highlight_color(cls, value: str) -> str:
        """Reject colors Pillow can't parse before any render starts."""
        ImageColor.getrgb(value)
        return value


def load_settings(settings_path: Path | None = None) -> Settings:
    """
    Load settings from a TOML file.

    Args:
        settings_path: Path to settings file. If None, looks for autodraw.toml in
            the current directory and falls back to defaults when it is absent.

    Returns:
        Validated Settings object.

    Raises:
        FileNotFoundError: If an explicitly given settings file doesn't exist.
        ValueError: If settings are invalid.
    """
    if settings_path is None:
        settings_path = Path.cwd() / "autodraw.toml"
        if not settings_path.exists():
            return Settings()

    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with open(settings_path, "rb") as f:
        settings_dict = tomllib.load(f)

    # Accept both a dedicated [autodraw] table and top-level keys
    settings_dict = settings_dict.get("autodraw", settings_dict)

    return Settings(**settings_dict)


def sanitize_filename(name: str) -> str:
    """
    Sanitize string for use in filename.

    Args:
        name: String to sanitize.

    Returns:
        Sanitized string safe for filenames.
    """
    # Replace invalid filename characters
    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        name = name.replace(char, "_")

    # Control characters (including embedded newlines from multi-line cells)
    name = "".join(char if char.isprintable() else "_" for char in name)

    # Remove leading/trailing whitespace and dots
    name = name.strip(". ")

    return name
