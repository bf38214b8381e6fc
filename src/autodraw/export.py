"""Batch export of rendered cards to a ZIP archive."""

import logging
import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence

from autodraw.config import CardConfig, sanitize_filename
from autodraw.render.canvas import CardRenderer
from autodraw.render.image import encode_image
from autodraw.render.surface import Surface
from autodraw.reporting import RenderWarning, SurfaceError, WarningCollector
from autodraw.types import ImageFormat, Row, SubstitutionPolicy, UploadLookup
from autodraw.utils.template import resolve_template

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class ExportResult:
    """Outcome of a batch export: the archive plus everything that went wrong."""

    archive: bytes
    filenames: list[str] = field(default_factory=list)
    warnings: list[RenderWarning] = field(default_factory=list)
    failed_rows: list[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of cards in the archive."""
        return len(self.filenames)


def output_filename(
    template: str,
    row: Row,
    index: int,
    format: ImageFormat = "PNG",
    policy: SubstitutionPolicy = "strict",
    warnings: WarningCollector | None = None,
) -> str:
    """
    Build the archive file name for one card.

    Args:
        template: Output filename template, e.g. "{name}_{index:03d}".
        row: Row values.
        index: 1-based row counter.
        format: Output encoding (sets the extension).
        policy: Missing-column policy.
        warnings: Collector told when the template falls back.

    Returns:
        File name with extension; "card_{index}" when the template is unresolved.
    """
    name = resolve_template(template, row, index, policy)
    if name:
        name = sanitize_filename(name)
    if not name:
        if warnings is not None:
            warnings.warn("unresolved", f"Filename template '{template}' unresolved, using card_{index}", source=template)
        name = f"card_{index}"
    return f"{name}.{format.lower()}"


def _unique(name: str, used: set[str]) -> str:
    """Suffix _2, _3, ... onto duplicate archive names."""
    if name not in used:
        used.add(name)
        return name
    stem, dot, ext = name.rpartition(".")
    counter = 2
    while f"{stem}_{counter}{dot}{ext}" in used:
        counter += 1
    unique = f"{stem}_{counter}{dot}{ext}"
    used.add(unique)
    return unique


async def export_cards(
    config: CardConfig,
    rows: Sequence[Row],
    renderer: CardRenderer | None = None,
    lookup: UploadLookup | None = None,
    format: ImageFormat | None = None,
    on_progress: ProgressCallback | None = None,
) -> ExportResult:
    """
    Render every row and bundle the images into one ZIP archive.

    Rows are rendered, encoded and archived one at a time, so only one frame
    is held in memory. Problems with one field or one row never stop the
    batch: they end up in the result's warnings and failed_rows.

    Args:
        config: Card template.
        rows: Data rows, one card each.
        renderer: Card renderer (a default one is created if None).
        lookup: Upload key -> source mapping.
        format: Output encoding override (defaults to config.output.format).
        on_progress: Called with (current, total) after each row.

    Returns:
        ExportResult with the archive bytes.
    """
    renderer = renderer or CardRenderer()
    fmt = format or config.output.format
    policy = renderer.settings.substitution_policy
    warnings = WarningCollector()
    surface = Surface()

    filenames: list[str] = []
    failed_rows: list[int] = []
    used: set[str] = set()
    total = len(rows)

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for index, row in enumerate(rows, start=1):
            warnings.set_row(index)
            try:
                await renderer.render(surface, config, row, index, lookup=lookup, warnings=warnings)
            except SurfaceError as e:
                logger.error(f"Row {index}: {e}")
                failed_rows.append(index)
            else:
                payload = encode_image(surface.image, fmt, quality=renderer.settings.jpeg_quality)
                name = _unique(output_filename(config.output.filename, row, index, fmt, policy, warnings), used)
                archive.writestr(name, payload)
                filenames.append(name)

            if on_progress is not None:
                on_progress(index, total)

    warnings.set_row(None)
    logger.info(f"Exported {len(filenames)} card(s), {len(failed_rows)} failed, {len(warnings)} warning(s)")

    return ExportResult(
        archive=buffer.getvalue(),
        filenames=filenames,
        warnings=list(warnings),
        failed_rows=failed_rows,
    )


def write_archive(result: ExportResult, path: Path) -> Path:
    """
    Save an export archive to disk, creating parent directories.

    Returns:
        The written path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(result.archive)
    logger.info(f"Wrote {result.count} card(s) to {path}")
    return path
