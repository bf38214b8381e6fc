"""Tests for the template model and settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from autodraw.config import (
    CardConfig,
    Settings,
    TextField,
    default_config,
    default_image_field,
    load_settings,
    sanitize_filename,
)


def test_default_config() -> None:
    config = default_config()

    assert (config.canvas.width, config.canvas.height) == (1050, 600)
    assert config.canvas.background_color == "#F7F8FA"
    assert config.output.filename == "{姓名}_{公司}_{index:03d}"
    assert config.fields == []


def test_default_fields() -> None:
    text = TextField()
    image = default_image_field()

    assert text.text == "{姓名}"
    assert (text.position.x, text.position.y) == (100, 100)
    assert text.anchor == "la"
    assert (image.max_width, image.max_height) == (200, 200)


def test_anchor_axes() -> None:
    field = TextField(anchor="rb")
    assert field.horizontal_align == "r"
    assert field.vertical_align == "b"


def test_invalid_anchor_rejected() -> None:
    with pytest.raises(ValidationError):
        TextField(anchor="xx")


def test_non_positive_wrap_width_disables_wrapping() -> None:
    assert TextField(wrap_width=0).effective_wrap_width is None
    assert TextField(wrap_width=-10).effective_wrap_width is None
    assert TextField(wrap_width=120).effective_wrap_width == 120


def test_fields_discriminated_by_type() -> None:
    config = CardConfig.model_validate({
        "fields": [{"type": "image", "path": "a.png"}, {"type": "text", "text": "hi"}],
    })
    assert [f.type for f in config.fields] == ["image", "text"]


def test_settings_defaults() -> None:
    settings = Settings()

    assert settings.substitution_policy == "strict"
    assert settings.jpeg_quality == 95
    assert settings.archive_name == "cards.zip"
    assert settings.highlight_color == "#3b82f6"
    assert settings.highlight_dash == (5, 3)


def test_load_settings_table(tmp_path: Path) -> None:
    path = tmp_path / "autodraw.toml"
    path.write_text('[autodraw]\nsubstitution_policy = "lenient"\njpeg_quality = 80\n')

    settings = load_settings(path)

    assert settings.substitution_policy == "lenient"
    assert settings.jpeg_quality == 80


def test_load_settings_top_level_keys(tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text('image_timeout = 3.5\nfonts_dir = "fonts"\n')

    settings = load_settings(path)

    assert settings.image_timeout == 3.5
    assert settings.fonts_dir == Path("fonts")


def test_load_settings_default_location(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert load_settings() == Settings()

    (tmp_path / "autodraw.toml").write_text('archive_name = "batch.zip"\n')
    assert load_settings().archive_name == "batch.zip"


def test_load_settings_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.toml")


def test_invalid_settings_rejected(tmp_path: Path) -> None:
    path = tmp_path / "autodraw.toml"
    path.write_text("jpeg_quality = 0\n")

    with pytest.raises(ValueError):
        load_settings(path)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Alice_001", "Alice_001"),
        ('a/b\\c:d*e?f"g<h>i|j', "a_b_c_d_e_f_g_h_i_j"),
        ("  .hidden. ", "hidden"),
        ("line\nbreak", "line_break"),
        ("张三_示例", "张三_示例"),
    ],
)
def test_sanitize_filename(name: str, expected: str) -> None:
    assert sanitize_filename(name) == expected


def test_invalid_highlight_color_rejected() -> None:
    assert Settings(highlight_color="rgb(255, 0, 0)").highlight_color == "rgb(255, 0, 0)"
    with pytest.raises(ValidationError):
        Settings(highlight_color="not-a-color")
