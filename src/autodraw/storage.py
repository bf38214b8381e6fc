"""JSON import/export of card templates."""

import json
import logging
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from autodraw.config import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONT_WEIGHT,
    CanvasConfig,
    CardConfig,
    ImageField,
    OutputConfig,
    TextField,
)
from autodraw.reporting import ConfigError

logger = logging.getLogger(__name__)

# Filename template used when an imported file has none
IMPORT_FILENAME_TEMPLATE = "{姓名}_{index:03d}"

ModelT = TypeVar("ModelT", bound=BaseModel)


# ============================================================================
# Export
# ============================================================================


def export_config(config: CardConfig) -> dict[str, Any]:
    """
    Convert a template to the snake_case JSON schema.

    Unset optional attributes are written as null.

    Args:
        config: Card template.

    Returns:
        JSON-ready dictionary.
    """
    fields: list[dict[str, Any]] = []
    for field in config.fields:
        position = {"x": field.position.x, "y": field.position.y}
        if isinstance(field, TextField):
            fields.append({
                "type": "text",
                "text": field.text,
                "position": position,
                "font_family": field.font_family,
                "font_style": field.font_style,
                "font_size": field.font_size,
                "font_weight": field.font_weight,
                "color": field.color,
                "anchor": field.anchor,
                "wrap_width": field.wrap_width,
                "line_spacing": field.line_spacing,
                "letter_spacing": field.letter_spacing,
            })
        else:
            fields.append({
                "type": "image",
                "path": field.path,
                "position": position,
                "max_width": field.max_width,
                "max_height": field.max_height,
            })

    return {
        "canvas": {
            "width": config.canvas.width,
            "height": config.canvas.height,
            "background_color": config.canvas.background_color,
            "background": config.canvas.background_image or None,
        },
        "output": {
            "directory": config.output.directory,
            "format": config.output.format,
            "filename": config.output.filename,
        },
        "fields": fields,
    }


def dumps_config(config: CardConfig) -> str:
    """Serialize a template to indented JSON text."""
    return json.dumps(export_config(config), ensure_ascii=False, indent=2)


def save_config_file(config: CardConfig, path: Path) -> None:
    """Write a template to a JSON file."""
    path.write_text(dumps_config(config), encoding="utf-8")
    logger.info(f"Saved template to {path}")


# ============================================================================
# Import
# ============================================================================


def _get(data: dict[str, Any], key: str, default: Any = None, keep_falsy: bool = False) -> Any:
    """
    Read a key in snake_case or camelCase form.

    Falsy values fall back to the default unless keep_falsy is set (for
    attributes where 0 is meaningful, such as spacing).
    """
    value = data.get(key)
    if value is None:
        value = data.get(to_camel(key))
    if value is None:
        return default
    if not value and not keep_falsy:
        return default
    return value


def _validated(model: type[ModelT], data: dict[str, Any], label: str, defaults: dict[str, Any]) -> ModelT:
    """
    Validate data into a model, replacing attributes that fail.

    A failing attribute takes its import default from defaults, so a partly
    broken entry still loads with the same values a missing attribute gets.
    An attribute whose default also fails is dropped to the model default.
    """
    data = dict(data)
    replaced: set[str] = set()
    while True:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            changed = False
            # Error locations may use the camelCase alias
            names = {to_camel(name): name for name in data}
            for error in e.errors():
                key = error["loc"][0] if error["loc"] else None
                if isinstance(key, str):
                    key = key if key in data else names.get(key, key)
                if not isinstance(key, str) or key not in data:
                    continue
                logger.warning(f"{label}: invalid {key} ({error['msg']}), using default")
                if key in defaults and key not in replaced:
                    data[key] = defaults[key]
                    replaced.add(key)
                else:
                    del data[key]
                changed = True
            if not changed:
                raise ConfigError(f"{label}: {e}") from e


def _position(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        return {"x": 0, "y": 0}
    return {"x": value.get("x") or 0, "y": value.get("y") or 0}


def _text(value: Any) -> Any:
    # Numbers typed into a text cell of the editor still draw as written
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(f"{key}: not an object, using defaults")
        return {}
    return value


def _read_attributes(
    data: dict[str, Any], defaults: dict[str, Any], keep_falsy: tuple[str, ...] = ()
) -> dict[str, Any]:
    return {key: _get(data, key, default, keep_falsy=key in keep_falsy) for key, default in defaults.items()}


TEXT_FIELD_DEFAULTS: dict[str, Any] = {
    "text": "",
    "font_family": DEFAULT_FONT_FAMILY,
    "font_style": "Regular",
    "font_size": DEFAULT_FONT_SIZE,
    "font_weight": DEFAULT_FONT_WEIGHT,
    "color": "#000000",
    "anchor": "la",
    "wrap_width": None,
    "line_spacing": None,
    "letter_spacing": None,
}

IMAGE_FIELD_DEFAULTS: dict[str, Any] = {
    "path": "",
    "max_width": None,
    "max_height": None,
}


def _import_field(data: dict[str, Any], label: str) -> TextField | ImageField | None:
    field_type = data.get("type")
    origin = {"x": 0, "y": 0}

    if field_type == "text":
        values = _read_attributes(data, TEXT_FIELD_DEFAULTS, keep_falsy=("line_spacing", "letter_spacing"))
        values["text"] = _text(values["text"])
        values.update(type="text", position=_position(data.get("position")))
        return _validated(TextField, values, label, {**TEXT_FIELD_DEFAULTS, "position": origin})

    if field_type == "image":
        values = _read_attributes(data, IMAGE_FIELD_DEFAULTS)
        values.update(type="image", position=_position(data.get("position")))
        return _validated(ImageField, values, label, {**IMAGE_FIELD_DEFAULTS, "position": origin})

    logger.warning(f"{label}: unknown field type {field_type!r}, skipping")
    return None


def import_config(data: dict[str, Any]) -> CardConfig:
    """
    Build a template from the JSON schema, filling defaults.

    Missing or empty attributes take the import defaults, attributes with
    invalid values are replaced by the same defaults (with a warning), and
    fields of an unknown type are skipped. A canvas, output or fields entry
    of the wrong JSON type is treated as missing. camelCase keys are accepted
    too.

    Args:
        data: Parsed JSON object.

    Returns:
        CardConfig.
    """
    canvas = _section(data, "canvas")
    output = _section(data, "output")

    canvas_defaults = {
        "width": 1050,
        "height": 600,
        "background_color": DEFAULT_BACKGROUND_COLOR,
        "background_image": None,
    }
    canvas_values = _read_attributes(canvas, canvas_defaults)
    canvas_values["background_image"] = _get(canvas, "background") or canvas_values["background_image"]
    canvas_config = _validated(CanvasConfig, canvas_values, "canvas", canvas_defaults)

    output_defaults = {"directory": "output", "format": "PNG", "filename": IMPORT_FILENAME_TEMPLATE}
    output_config = _validated(OutputConfig, _read_attributes(output, output_defaults), "output", output_defaults)

    raw_fields = data.get("fields") or []
    if not isinstance(raw_fields, list):
        logger.warning("fields: not a list, ignoring")
        raw_fields = []

    fields: list[TextField | ImageField] = []
    for position, raw in enumerate(raw_fields):
        if not isinstance(raw, dict):
            logger.warning(f"fields[{position}]: not an object, skipping")
            continue
        field = _import_field(raw, f"fields[{position}]")
        if field is not None:
            fields.append(field)

    return CardConfig(canvas=canvas_config, output=output_config, fields=fields)


def loads_config(text: str) -> CardConfig:
    """
    Parse a template from JSON text.

    Raises:
        ConfigError: If the text isn't a JSON object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Template is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Template must be a JSON object")
    return import_config(data)


def load_config_file(path: Path) -> CardConfig:
    """
    Load a template from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigError: If the file isn't a JSON object.
    """
    if not path.exists():
        raise FileNotFoundError(f"Template file not found: {path}")
    return loads_config(path.read_text(encoding="utf-8-sig"))
