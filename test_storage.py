"""Tests for template JSON import/export."""

import json
from pathlib import Path

import pytest

from autodraw.config import (
    DEFAULT_BACKGROUND_COLOR,
    CanvasConfig,
    CardConfig,
    ImageField,
    OutputConfig,
    Position,
    TextField,
    default_config,
)
from autodraw.reporting import ConfigError
from autodraw.storage import (
    IMPORT_FILENAME_TEMPLATE,
    export_config,
    import_config,
    load_config_file,
    loads_config,
    save_config_file,
)


def populated_config() -> CardConfig:
    return CardConfig(
        canvas=CanvasConfig(width=800, height=500, background_color="#112233", background_image="bg.png"),
        output=OutputConfig(directory="out", format="JPEG", filename="{name}_{index:03d}"),
        fields=[
            TextField(
                text="{name}\n{title}",
                position=Position(x=12.5, y=40),
                font_family="Noto Sans SC",
                font_style="Bold",
                font_size=28,
                font_weight=700,
                color="#333333",
                anchor="mm",
                wrap_width=300,
                line_spacing=6,
                letter_spacing=0,
            ),
            ImageField(path="{photo}", position=Position(x=600, y=50), max_width=150, max_height=150),
        ],
    )


def test_export_uses_snake_case_schema() -> None:
    data = export_config(populated_config())

    assert data["canvas"]["background_color"] == "#112233"
    assert data["canvas"]["background"] == "bg.png"
    text, image = data["fields"]
    assert text["font_family"] == "Noto Sans SC"
    assert text["wrap_width"] == 300
    assert image["max_width"] == 150
    assert image["type"] == "image"


def test_export_writes_unset_values_as_null() -> None:
    data = export_config(CardConfig(fields=[TextField(), ImageField()]))

    assert data["canvas"]["background"] is None
    assert data["fields"][0]["wrap_width"] is None
    assert data["fields"][0]["line_spacing"] is None
    assert data["fields"][1]["max_height"] is None


def test_round_trip_is_idempotent() -> None:
    config = populated_config()

    restored = import_config(json.loads(json.dumps(export_config(config))))

    assert restored.model_dump() == config.model_dump()
    assert export_config(restored) == export_config(config)


def test_import_empty_object_uses_defaults() -> None:
    config = import_config({})

    assert (config.canvas.width, config.canvas.height) == (1050, 600)
    assert config.canvas.background_color == DEFAULT_BACKGROUND_COLOR
    assert config.output.filename == IMPORT_FILENAME_TEMPLATE
    assert config.output.format == "PNG"
    assert config.fields == []


def test_import_falsy_values_fall_back_to_defaults() -> None:
    config = import_config({
        "canvas": {"width": 0, "background_color": ""},
        "fields": [{"type": "text", "font_size": 0, "font_weight": 0, "color": ""}],
    })

    assert config.canvas.width == 1050
    assert config.canvas.background_color == DEFAULT_BACKGROUND_COLOR
    field = config.fields[0]
    assert field.font_size == 32
    assert field.font_weight == 400
    assert field.color == "#000000"


def test_import_keeps_zero_spacing() -> None:
    config = import_config({"fields": [{"type": "text", "line_spacing": 0, "letter_spacing": 0}]})

    assert config.fields[0].line_spacing == 0
    assert config.fields[0].letter_spacing == 0


def test_import_accepts_camel_case_keys() -> None:
    config = import_config({
        "canvas": {"backgroundColor": "#000000"},
        "fields": [{"type": "text", "fontSize": 48, "fontFamily": "Inter", "position": {"x": 5, "y": 6}}],
    })

    assert config.canvas.background_color == "#000000"
    assert config.fields[0].font_size == 48
    assert config.fields[0].font_family == "Inter"
    assert config.fields[0].position == Position(x=5, y=6)


def test_invalid_attributes_replaced_by_defaults() -> None:
    config = import_config({
        "fields": [
            {"type": "text", "text": "{name}", "font_size": -5, "anchor": "zz"},
            {"type": "image", "path": "a.png", "max_width": -1},
        ],
    })

    text, image = config.fields
    assert text.text == "{name}"
    assert text.font_size == 32
    assert text.anchor == "la"
    assert image.path == "a.png"
    assert image.max_width is None


def test_unknown_field_types_are_skipped() -> None:
    config = import_config({"fields": [{"type": "shape"}, "junk", {"type": "text", "text": "hi"}]})

    assert len(config.fields) == 1
    assert config.fields[0].text == "hi"


def test_missing_position_defaults_to_origin() -> None:
    config = import_config({"fields": [{"type": "image", "path": "x.png"}]})
    assert config.fields[0].position == Position(x=0, y=0)


def test_loads_rejects_invalid_json() -> None:
    with pytest.raises(ConfigError):
        loads_config("{not json")
    with pytest.raises(ConfigError):
        loads_config("[1, 2]")


def test_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "template.json"

    save_config_file(default_config(), path)
    restored = load_config_file(path)

    assert restored.canvas.width == 1050
    assert "{姓名}" in path.read_text(encoding="utf-8")


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config_file(tmp_path / "nope.json")


@pytest.mark.parametrize("section", ["canvas", "output"])
def test_non_object_sections_use_defaults(section: str) -> None:
    config = import_config({section: "oops", "fields": [{"type": "text", "text": "hi"}]})

    assert (config.canvas.width, config.canvas.height) == (1050, 600)
    assert config.output.filename == IMPORT_FILENAME_TEMPLATE
    assert config.fields[0].text == "hi"


@pytest.mark.parametrize("fields", [5, "text", {"type": "text"}])
def test_non_list_fields_are_ignored(fields) -> None:
    config = import_config({"canvas": {"width": 300}, "fields": fields})

    assert config.canvas.width == 300
    assert config.fields == []


def test_numeric_text_is_kept_as_written() -> None:
    config = import_config({"fields": [{"type": "text", "text": 2024}, {"type": "text", "text": 1.5}]})

    assert [f.text for f in config.fields] == ["2024", "1.5"]


def test_invalid_attributes_take_import_defaults() -> None:
    config = import_config({
        "canvas": {"width": "wide"},
        "fields": [
            {"type": "text", "text": ["a", "b"], "position": {"x": "left", "y": 4}},
            {"type": "image", "path": 7, "position": {"x": 3, "y": "top"}},
        ],
    })

    text, image = config.fields
    assert config.canvas.width == 1050
    assert text.text == ""
    assert text.position == Position(x=0, y=0)
    assert image.path == ""
    assert image.position == Position(x=0, y=0)
