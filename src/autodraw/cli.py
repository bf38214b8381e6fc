"""CLI interface for the batch card generator."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable

import click

from autodraw.config import CardConfig, default_config, load_settings
from autodraw.design.bounds import find_field_at
from autodraw.export import export_cards, write_archive
from autodraw.render.canvas import CardRenderer
from autodraw.render.image import ImageCache, load_uploads
from autodraw.reporting import AutodrawError, RenderWarning, WarningCollector
from autodraw.rows import get_field_names, read_rows
from autodraw.storage import load_config_file, save_config_file
from autodraw.types import Row
from autodraw.utils.template import find_placeholders


@click.group()
@click.version_option(package_name="autodraw")
@click.option("-v", "--verbose", is_flag=True, help="Show progress and debug logging.")
def main(verbose: bool) -> None:
    """Render one card image per spreadsheet row from a JSON card template."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _build_renderer(template: Path, settings_path: Path | None) -> CardRenderer:
    """Create a renderer whose relative image paths resolve next to the template."""
    settings = load_settings(settings_path)
    if settings.base_dir is None:
        settings = settings.model_copy(update={"base_dir": template.parent})
    return CardRenderer(settings=settings, cache=ImageCache())


def _pick_row(rows: list[dict], row_number: int) -> Row:
    if not rows:
        raise click.BadParameter("the data file has no rows", param_hint="DATA")
    if not 1 <= row_number <= len(rows):
        raise click.BadParameter(f"must be between 1 and {len(rows)}", param_hint="--row")
    return rows[row_number - 1]


def _report_missing_columns(config_templates: list[str], rows: list[dict]) -> None:
    """Warn about placeholders that no column of the data can satisfy."""
    columns = set(get_field_names(rows))
    missing: list[str] = []
    for template in config_templates:
        for key in find_placeholders(template):
            if key not in columns and key not in missing:
                missing.append(key)
    if missing:
        click.echo(f"Warning: columns not found in data: {', '.join(missing)}", err=True)


def _templates_of(config: CardConfig) -> list[str]:
    templates = [config.output.filename]
    for field in config.fields:
        templates.append(field.text if field.type == "text" else field.path)
    return templates


def _print_warnings(warnings: Iterable[RenderWarning]) -> None:
    for warning in warnings:
        if warning.kind != "unresolved":
            click.echo(f"  ! {warning}", err=True)


settings_option = click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=Path),
    help="Path to autodraw.toml. Defaults to ./autodraw.toml when present.",
)
uploads_option = click.option(
    "--uploads",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of uploaded images, referenced from rows by file name or stem.",
)


@main.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=Path("template.json"),
    show_default=True,
    help="Where to write the template.",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init(output: Path, force: bool) -> None:
    """Write the default card template to start editing from."""
    if output.exists() and not force:
        _fail(f"{output} already exists (use --force to overwrite)")
    save_config_file(default_config(), output)
    click.echo(f"✓ Template written to: {output}")


@main.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output ZIP path. Defaults to <output.directory>/<archive_name>.",
)
@click.option(
    "--format",
    "image_format",
    type=click.Choice(["PNG", "JPEG"], case_sensitive=False),
    help="Image encoding override. Uses the template's output format if not specified.",
)
@click.option("--sheet", type=str, help="Worksheet name (xlsx only). Defaults to the first sheet.")
@uploads_option
@settings_option
def render(
    template: Path,
    data: Path,
    output: Path | None,
    image_format: str | None,
    sheet: str | None,
    uploads: Path | None,
    settings_path: Path | None,
) -> None:
    """
    Render one card per row of DATA and bundle them into a ZIP archive.

    TEMPLATE is a JSON card template; DATA is an .xlsx or .csv file whose
    first row names the columns used by {placeholders}.
    """
    try:
        config = load_config_file(template)
        rows = read_rows(data, sheet)
        renderer = _build_renderer(template, settings_path)
        lookup = load_uploads(uploads) if uploads else None

        if not rows:
            _fail(f"{data} has no rows")
        _report_missing_columns(_templates_of(config), rows)

        fmt = image_format.upper() if image_format else None
        click.echo(f"Rendering {len(rows)} card(s) at {config.canvas.width}x{config.canvas.height}...")
        with click.progressbar(length=len(rows), label="Cards") as bar:
            result = asyncio.run(export_cards(
                config,
                rows,
                renderer=renderer,
                lookup=lookup,
                format=fmt,
                on_progress=lambda current, total: bar.update(1),
            ))

        _print_warnings(result.warnings)
        if result.failed_rows:
            click.echo(f"  Failed rows: {', '.join(str(i) for i in result.failed_rows)}", err=True)

        if output is None:
            output = Path(config.output.directory) / renderer.settings.archive_name
        write_archive(result, output)
        click.echo(f"✓ {result.count} card(s) saved to: {output}")

    except (AutodrawError, FileNotFoundError, ValueError) as e:
        _fail(str(e))


@main.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--row", "row_number", type=int, default=1, show_default=True, help="1-based row to render.")
@click.option("--highlight", type=int, help="0-based field index to outline as selected.")
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=Path("preview.png"),
    show_default=True,
    help="Output PNG path.",
)
@click.option("--sheet", type=str, help="Worksheet name (xlsx only).")
@uploads_option
@settings_option
def preview(
    template: Path,
    data: Path,
    row_number: int,
    highlight: int | None,
    output: Path,
    sheet: str | None,
    uploads: Path | None,
    settings_path: Path | None,
) -> None:
    """Render a single row to a PNG, optionally with a selection highlight."""
    try:
        config = load_config_file(template)
        row = _pick_row(read_rows(data, sheet), row_number)
        renderer = _build_renderer(template, settings_path)
        lookup = load_uploads(uploads) if uploads else None

        warnings = WarningCollector()
        img = asyncio.run(renderer.render_image(config, row, row_number, lookup, highlight, warnings))
        _print_warnings(warnings)

        output.parent.mkdir(parents=True, exist_ok=True)
        img.save(output, format="PNG")
        click.echo(f"✓ Preview of row {row_number} saved to: {output}")

    except (AutodrawError, FileNotFoundError, ValueError) as e:
        _fail(str(e))


@main.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--row", "row_number", type=int, default=1, show_default=True, help="1-based row to measure.")
@click.option("--at", "point", type=(float, float), help="Report the top-most field at canvas point X Y.")
@click.option("--sheet", type=str, help="Worksheet name (xlsx only).")
@uploads_option
@settings_option
def bounds(
    template: Path,
    data: Path,
    row_number: int,
    point: tuple[float, float] | None,
    sheet: str | None,
    uploads: Path | None,
    settings_path: Path | None,
) -> None:
    """Print the box of each field for a row, or the field hit at a point."""
    try:
        config = load_config_file(template)
        row = _pick_row(read_rows(data, sheet), row_number)
        renderer = _build_renderer(template, settings_path)
        lookup = load_uploads(uploads) if uploads else None

        # Rendering first fills the image cache, so image boxes use intrinsic sizes
        asyncio.run(renderer.render_image(config, row, row_number, lookup))
        field_bounds = renderer.bounds(config, row, row_number, lookup)

        if point is not None:
            hit = find_field_at(field_bounds, *point)
            if hit is None:
                click.echo(f"No field at ({point[0]:g}, {point[1]:g})")
            else:
                click.echo(f"Field {hit} ({config.fields[hit].type}) at ({point[0]:g}, {point[1]:g})")
            return

        for b in field_bounds:
            field = config.fields[b.field_index]
            click.echo(
                f"{b.field_index:>3}  {field.type:<5}  x={b.x:.1f} y={b.y:.1f}  "
                f"w={b.width:.1f} h={b.height:.1f}"
            )
        skipped = len(config.fields) - len(field_bounds)
        if skipped:
            click.echo(f"({skipped} field(s) not drawn for this row)")

    except (AutodrawError, FileNotFoundError, ValueError) as e:
        _fail(str(e))


@main.command()
@click.argument("data", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--sheet", type=str, help="Worksheet name (xlsx only).")
def fields(data: Path, sheet: str | None) -> None:
    """List the column names of DATA, usable as {placeholders}."""
    try:
        rows = read_rows(data, sheet)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))
        return

    names = get_field_names(rows)
    if not names:
        click.echo("No columns found.")
        return
    click.echo(f"{len(rows)} row(s), {len(names)} column(s):")
    for name in names:
        click.echo(f"  {{{name}}}")


if __name__ == "__main__":
    main()
