"""End-to-end rendering tests: canvas, fields, background, highlight, double buffering."""

import asyncio

import pytest
from PIL import Image

from autodraw.config import CanvasConfig, CardConfig, ImageField, Position, Settings, TextField
from autodraw.design.base import RendererContext
from autodraw.design.fields.text import TextFieldRenderer
from autodraw.render.canvas import CardRenderer
from autodraw.render.surface import Surface
from autodraw.reporting import SurfaceError, WarningCollector
from conftest import BLUE, RED, WHITE, data_url, ink_bbox

HIGHLIGHT = (59, 130, 246, 255)


def card(*fields, width: int = 300, height: int = 120, **canvas) -> CardConfig:
    return CardConfig(
        canvas=CanvasConfig(width=width, height=height, background_color="#FFFFFF", **canvas),
        fields=list(fields),
    )


def name_field(**overrides) -> TextField:
    values = dict(text="{name}", position=Position(x=10, y=10), anchor="lt", font_size=24, color="#000000")
    values.update(overrides)
    return TextField(**values)


def test_text_drawn_inside_its_bounds(renderer: CardRenderer) -> None:
    config = card(name_field())
    row = {"name": "Alice"}

    img = asyncio.run(renderer.render_image(config, row, 1))
    [bounds] = renderer.bounds(config, row, 1)

    assert img.size == (300, 120)
    assert bounds.x == 10
    assert bounds.y == 10
    assert bounds.height == 24

    ink = ink_bbox(img)
    assert ink is not None
    left, top, right, bottom = ink
    assert left >= bounds.x - 2
    assert top >= bounds.y - 3
    assert right <= bounds.x + bounds.width + 2
    assert bottom <= bounds.y + bounds.height + 2


def test_bounds_width_matches_font_measurement(renderer: CardRenderer) -> None:
    config = card(name_field())
    font = renderer.fonts.get_font("Microsoft YaHei", 24)

    [bounds] = renderer.bounds(config, {"name": "Alice"}, 1)

    assert bounds.width == pytest.approx(font.getlength("Alice"))


def test_render_and_bounds_share_layout(renderer: CardRenderer) -> None:
    field = name_field(text="{name}\n{title}", anchor="mm", position=Position(x=150, y=60), wrap_width=80)
    row = {"name": "Alice Wonderland", "title": "Engineer"}
    context = RendererContext(row=row, index=1, fonts=renderer.fonts, images=renderer.images)

    layout, _ = TextFieldRenderer(field, 0).measure(context)
    [bounds] = renderer.bounds(card(field), row, 1)

    assert (bounds.x, bounds.y, bounds.width, bounds.height) == layout.box
    assert len(layout.lines) > 2


def test_unresolved_row_renders_background_only(renderer: CardRenderer) -> None:
    config = card(name_field())

    img = asyncio.run(renderer.render_image(config, {}, 1))

    assert ink_bbox(img) is None
    assert renderer.bounds(config, {}, 1) == []


def test_lenient_policy_draws_remaining_text(fonts, cache) -> None:
    renderer = CardRenderer(settings=Settings(substitution_policy="lenient"), fonts=fonts, cache=cache)
    config = card(name_field(text="Hi {name}"))

    img = asyncio.run(renderer.render_image(config, {}, 1))

    assert ink_bbox(img) is not None


def test_image_field_scaled_to_fit(renderer: CardRenderer) -> None:
    field = ImageField(path="{photo}", position=Position(x=0, y=0), max_width=100, max_height=100)
    config = card(field, width=200, height=200)

    img = asyncio.run(renderer.render_image(config, {"photo": data_url(RED, (400, 200))}, 1))

    assert img.getpixel((50, 25)) == RED
    assert img.getpixel((50, 75)) == WHITE
    assert img.getpixel((150, 25)) == WHITE


def test_image_from_upload_lookup(renderer: CardRenderer) -> None:
    field = ImageField(path="{logo}", position=Position(x=10, y=10))
    config = card(field, width=100, height=100)
    lookup = {"acme.png": data_url(BLUE, (20, 20))}

    img = asyncio.run(renderer.render_image(config, {"logo": "acme.png"}, 1, lookup=lookup))

    assert img.getpixel((20, 20)) == BLUE
    assert img.getpixel((5, 5)) == WHITE


def test_failed_image_is_skipped_with_warning(renderer: CardRenderer, tmp_path) -> None:
    config = card(
        ImageField(path=str(tmp_path / "missing.png"), position=Position(x=0, y=0)),
        name_field(),
    )
    warnings = WarningCollector()

    img = asyncio.run(renderer.render_image(config, {"name": "Alice"}, 1, warnings=warnings))

    assert [w.kind for w in warnings if w.kind == "image_load"] == ["image_load"]
    assert ink_bbox(img) is not None


def test_later_fields_draw_on_top(renderer: CardRenderer) -> None:
    config = card(
        ImageField(path=data_url(RED, (50, 50)), position=Position(x=0, y=0)),
        ImageField(path=data_url(BLUE, (50, 50)), position=Position(x=25, y=25)),
        width=100,
        height=100,
    )

    img = asyncio.run(renderer.render_image(config, {}, 1))

    assert img.getpixel((10, 10)) == RED
    assert img.getpixel((40, 40)) == BLUE


def test_background_image_stretched(renderer: CardRenderer) -> None:
    config = card(width=60, height=40, background_image=data_url(BLUE, (3, 2)))

    img = asyncio.run(renderer.render_image(config, {}, 1))

    assert img.getpixel((30, 20)) == BLUE
    assert img.getpixel((59, 39)) == BLUE


def test_background_failure_falls_back_to_color(renderer: CardRenderer, tmp_path) -> None:
    config = CardConfig(canvas=CanvasConfig(
        width=40, height=40, background_color="#FF0000", background_image=str(tmp_path / "nope.png"),
    ))
    warnings = WarningCollector()

    img = asyncio.run(renderer.render_image(config, {}, 1, warnings=warnings))

    assert img.getpixel((20, 20)) == RED
    assert [w.kind for w in warnings] == ["background_load"]


def test_invalid_background_color_falls_back_to_white(renderer: CardRenderer) -> None:
    config = CardConfig(canvas=CanvasConfig(width=40, height=40, background_color="not-a-color"))
    warnings = WarningCollector()

    img = asyncio.run(renderer.render_image(config, {}, 1, warnings=warnings))

    assert img.getpixel((20, 20)) == WHITE
    assert [w.kind for w in warnings] == ["invalid_color"]


def test_invalid_text_color_falls_back_to_black(renderer: CardRenderer) -> None:
    config = card(name_field(color="nope"))
    warnings = WarningCollector()

    img = asyncio.run(renderer.render_image(config, {"name": "Alice"}, 1, warnings=warnings))

    assert "invalid_color" in [w.kind for w in warnings]
    assert ink_bbox(img) is not None


def test_highlight_outlines_selected_field(renderer: CardRenderer) -> None:
    config = card(name_field())
    row = {"name": "Alice"}
    [bounds] = renderer.bounds(config, row, 1)

    img = asyncio.run(renderer.render_image(config, row, 1, highlight_index=0))

    # The first dash starts at the padded top-left corner
    corner_x, corner_y = round(bounds.x - 5), round(bounds.y - 5)
    window = [
        img.getpixel((x, y))
        for x in range(corner_x, corner_x + 4)
        for y in range(corner_y - 1, corner_y + 2)
    ]
    assert HIGHLIGHT in window


def test_highlight_out_of_range_draws_nothing(renderer: CardRenderer) -> None:
    config = card(name_field())
    row = {"name": "Alice"}

    plain = asyncio.run(renderer.render_image(config, row, 1))
    highlighted = asyncio.run(renderer.render_image(config, row, 1, highlight_index=5))

    assert list(plain.getdata()) == list(highlighted.getdata())


def test_render_resizes_surface(renderer: CardRenderer) -> None:
    surface = Surface(10, 10)

    asyncio.run(renderer.render(surface, card(width=64, height=32), {}, 1))

    assert surface.size == (64, 32)
    assert surface.image.getpixel((0, 0)) == WHITE


def test_invalid_canvas_size_raises(renderer: CardRenderer) -> None:
    with pytest.raises(SurfaceError):
        asyncio.run(renderer.render(Surface(), card(width=0, height=10), {}, 1))


def test_double_buffer_matches_direct_render(renderer: CardRenderer) -> None:
    config = card(name_field())
    row = {"name": "Alice"}
    visible = Surface()

    asyncio.run(renderer.render_double_buffered(visible, config, row, 1))
    direct = asyncio.run(renderer.render_image(config, row, 1))

    assert visible.size == (300, 120)
    assert list(visible.image.getdata()) == list(direct.getdata())


def test_double_buffer_reuses_offscreen_surface(renderer: CardRenderer) -> None:
    visible = Surface()
    config = card(name_field())

    asyncio.run(renderer.render_double_buffered(visible, config, {"name": "Alice"}, 1))
    offscreen = renderer._offscreen
    asyncio.run(renderer.render_double_buffered(visible, config, {"name": "Bob"}, 2))

    assert renderer._offscreen is offscreen

    asyncio.run(renderer.render_double_buffered(visible, card(width=50, height=50), {}, 3))

    assert renderer._offscreen is not offscreen
    assert visible.size == (50, 50)


def test_double_buffer_clears_previous_frame(renderer: CardRenderer) -> None:
    visible = Surface()
    config = card(name_field())

    asyncio.run(renderer.render_double_buffered(visible, config, {"name": "Alice"}, 1))
    asyncio.run(renderer.render_double_buffered(visible, config, {}, 2))

    assert ink_bbox(visible.image) is None


def test_letter_spacing_widens_drawn_text(renderer: CardRenderer) -> None:
    row = {"name": "Alice"}

    tight = asyncio.run(renderer.render_image(card(name_field()), row, 1))
    loose = asyncio.run(renderer.render_image(card(name_field(letter_spacing=10)), row, 1))

    assert ink_bbox(loose)[2] - ink_bbox(tight)[2] >= 30


def test_render_image_mode_is_rgba(renderer: CardRenderer) -> None:
    img = asyncio.run(renderer.render_image(card(), {}, 1))
    assert isinstance(img, Image.Image)
    assert img.mode == "RGBA"
