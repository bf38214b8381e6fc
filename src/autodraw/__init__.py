"""Batch card generator: one image per spreadsheet row from a card template."""

__version__ = "0.1.0"

# High-level Python API
from autodraw.config import (
    CanvasConfig,
    CardConfig,
    ImageField,
    OutputConfig,
    Position,
    Settings,
    TextField,
    default_config,
    load_settings,
)
from autodraw.design.bounds import compute_bounds, find_field_at
from autodraw.export import ExportResult, export_cards, write_archive
from autodraw.fonts import FontRegistry
from autodraw.render.canvas import CardRenderer
from autodraw.render.image import ImageCache, ImageLoader
from autodraw.render.surface import Surface
from autodraw.reporting import AutodrawError, ConfigError, ImageLoadError, RenderWarning, SurfaceError
from autodraw.rows import read_rows
from autodraw.storage import export_config, import_config, load_config_file, save_config_file
from autodraw.utils.template import resolve_template

__all__ = [
    "AutodrawError",
    "CanvasConfig",
    "CardConfig",
    "CardRenderer",
    "ConfigError",
    "ExportResult",
    "FontRegistry",
    "ImageCache",
    "ImageField",
    "ImageLoadError",
    "ImageLoader",
    "OutputConfig",
    "Position",
    "RenderWarning",
    "Settings",
    "Surface",
    "SurfaceError",
    "TextField",
    "compute_bounds",
    "default_config",
    "export_cards",
    "export_config",
    "find_field_at",
    "import_config",
    "load_config_file",
    "load_settings",
    "read_rows",
    "resolve_template",
    "save_config_file",
    "write_archive",
]
