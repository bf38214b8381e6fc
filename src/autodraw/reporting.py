"""Non-fatal warnings raised while rendering."""

import logging
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

WarningKind = Literal["image_load", "background_load", "unresolved", "invalid_color", "font_fallback"]


class AutodrawError(Exception):
    """Base class for autodraw errors."""


class ConfigError(AutodrawError, ValueError):
    """Template data could not be parsed at all."""


class ImageLoadError(AutodrawError):
    """An image source could not be fetched or decoded."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to load image {source}: {reason}")
        self.source = source
        self.reason = reason


class SurfaceError(AutodrawError):
    """A drawing surface could not be created for a render call."""


@dataclass(frozen=True)
class RenderWarning:
    """A recovered problem reported to the caller instead of raised."""

    kind: WarningKind
    message: str
    source: str | None = None
    row_index: int | None = None

    def __str__(self) -> str:
        prefix = f"row {self.row_index}: " if self.row_index is not None else ""
        return f"{prefix}{self.message}"


class WarningCollector:
    """
    Collects render warnings and logs each one as it arrives.

    One collector is shared by every render call of a batch so the caller sees
    partial output plus the full list of what went wrong.
    """

    def __init__(self) -> None:
        self.warnings: list[RenderWarning] = []
        self._row_index: int | None = None

    def set_row(self, row_index: int | None) -> None:
        """Tag subsequent warnings with a 1-based row index."""
        self._row_index = row_index

    def warn(self, kind: WarningKind, message: str, source: str | None = None) -> RenderWarning:
        warning = RenderWarning(kind=kind, message=message, source=source, row_index=self._row_index)
        self.warnings.append(warning)
        if kind == "unresolved":
            logger.debug(str(warning))
        else:
            logger.warning(str(warning))
        return warning

    def __len__(self) -> int:
        return len(self.warnings)

    def __iter__(self):
        return iter(self.warnings)
