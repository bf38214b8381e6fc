"""Font discovery and loading."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from PIL import ImageFont

from autodraw.fonts.google import get_google_font
from autodraw.reporting import WarningCollector
from autodraw.utils.text import Font

logger = logging.getLogger(__name__)

FONTS_DIR = Path(__file__).parent
FONT_SUFFIXES = (".ttf", ".otf", ".ttc")

WEIGHT_NAMES = {
    "thin": 100,
    "extralight": 200,
    "light": 300,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "bold": 700,
    "extrabold": 800,
    "black": 900,
}

_WEIGHT_SUFFIX = re.compile(
    r"[-_ ]?(thin|extralight|light|regular|medium|semibold|bold|extrabold|black|[1-9]00)$",
    re.IGNORECASE,
)
_ITALIC = re.compile(r"[-_ ]?(italic|oblique)", re.IGNORECASE)


@dataclass(frozen=True)
class FontFace:
    """One font file and the family/weight/style it provides."""

    family: str
    weight: int
    italic: bool
    path: Path


def normalize_family(name: str) -> str:
    """
    Normalize a family name for case- and separator-insensitive lookup.

    Examples:
        "Noto Sans SC" → "notosanssc"
        "noto-sans_sc" → "notosanssc"
    """
    return re.sub(r"[\s\-_]", "", name).lower()


def parse_font_filename(path: Path) -> FontFace:
    """
    Derive family, weight and style from a font file name.

    Supported naming:
        FontName-Regular.ttf, FontName-Bold.ttf, FontName-BoldItalic.ttf,
        FontName-700.ttf, FontName.ttf (regular)

    Args:
        path: Path to the font file.

    Returns:
        FontFace describing the file.
    """
    name = path.stem
    italic = bool(_ITALIC.search(name))
    name = _ITALIC.sub("", name)

    weight = 400
    match = _WEIGHT_SUFFIX.search(name)
    if match:
        token = match.group(1).lower()
        weight = WEIGHT_NAMES.get(token) or int(token)
        name = name[: match.start()]

    return FontFace(family=name.rstrip("-_ ") or path.stem, weight=weight, italic=italic, path=path)


def is_italic_style(font_style: str) -> bool:
    """Whether a style name such as "Bold Italic" asks for a slanted face."""
    lowered = font_style.lower()
    return "italic" in lowered or "oblique" in lowered


class FontRegistry:
    """
    Resolves (family, style, weight, size) to a loaded Pillow font.

    Resolution priority:
    1. Family name that is itself a path to a font file
    2. Registered font files (bundled fonts directory plus extra directories)
    3. Google Fonts download (when enabled)
    4. Fallback font file, or Pillow's built-in scalable font
    """

    def __init__(
        self,
        directories: Iterable[Path] = (),
        fallback_font: Path | str | None = None,
        google_fonts: bool = False,
    ) -> None:
        """
        Initialize registry and scan font directories.

        Args:
            directories: Extra directories to scan for font files.
            fallback_font: Font file used when a family can't be resolved.
            google_fonts: Download unknown families from Google Fonts.
        """
        self.fallback_font = Path(fallback_font) if fallback_font else None
        self.google_fonts = google_fonts
        self._faces: dict[str, list[FontFace]] = {}
        self._loaded: dict[tuple[str, float], Font] = {}
        self._missing: set[str] = set()

        self.register_directory(FONTS_DIR)
        for directory in directories:
            self.register_directory(Path(directory))

    def register_directory(self, directory: Path) -> int:
        """
        Register every font file in a directory (recursively).

        Args:
            directory: Directory to scan.

        Returns:
            Number of font files registered.
        """
        if not directory.is_dir():
            logger.warning(f"Font directory not found: {directory}")
            return 0

        count = 0
        for path in sorted(directory.rglob("*")):
            if path.suffix.lower() in FONT_SUFFIXES:
                self.register_file(path)
                count += 1

        if count:
            logger.info(f"Registered {count} font file(s) from {directory}")
        return count

    def register_file(self, path: Path, family: str | None = None) -> FontFace:
        """
        Register one font file.

        Args:
            path: Font file path.
            family: Family name override (defaults to the name parsed from the file).

        Returns:
            The registered FontFace.
        """
        face = parse_font_filename(path)
        if family:
            face = FontFace(family=family, weight=face.weight, italic=face.italic, path=path)
        self._faces.setdefault(normalize_family(face.family), []).append(face)
        logger.debug(f"Registered font: {face.family} {face.weight}{' italic' if face.italic else ''} from {path.name}")
        return face

    def families(self) -> list[str]:
        """Registered family names, sorted."""
        return sorted({faces[0].family for faces in self._faces.values()})

    def find_face(self, family: str, weight: int = 400, italic: bool = False) -> FontFace | None:
        """
        Find the registered face closest to the requested weight and style.

        Matching style wins over matching weight; among equal distances the
        heavier face is preferred.
        """
        faces = self._faces.get(normalize_family(family))
        if not faces:
            return None
        return min(faces, key=lambda f: (f.italic != italic, abs(f.weight - weight), -f.weight))

    def get_font(
        self,
        family: str,
        size: float,
        weight: int = 400,
        style: str = "Regular",
        warnings: WarningCollector | None = None,
    ) -> Font:
        """
        Load a font for drawing and measuring.

        Args:
            family: Family name (or a path to a font file).
            size: Font size in pixels.
            weight: CSS-style weight (100-900).
            style: Style name; "Italic"/"Oblique" selects a slanted face.
            warnings: Collector told about families that fell back.

        Returns:
            Pillow font object.
        """
        italic = is_italic_style(style)
        path = self._resolve_path(family, weight, italic)

        if path is not None:
            try:
                return self._load(path, size)
            except OSError as e:
                logger.warning(f"Failed to load font {path}: {e}")

        if family not in self._missing:
            self._missing.add(family)
            if warnings is not None:
                warnings.warn("font_fallback", f"Font '{family}' not available, using fallback", source=family)
            else:
                logger.warning(f"Font '{family}' not available, using fallback")

        return self._fallback(size)

    def _resolve_path(self, family: str, weight: int, italic: bool) -> Path | None:
        """Find a file for the family, downloading from Google Fonts if enabled."""
        candidate = Path(family)
        if candidate.suffix.lower() in FONT_SUFFIXES and candidate.is_file():
            return candidate

        face = self.find_face(family, weight, italic)
        if face is not None:
            return face.path

        if self.google_fonts and family not in self._missing:
            downloaded = get_google_font(family, weight, italic)
            if downloaded is not None:
                return self.register_file(downloaded, family=family).path

        return None

    def _load(self, path: Path, size: float) -> Font:
        key = (str(path), size)
        if key not in self._loaded:
            self._loaded[key] = ImageFont.truetype(str(path), size)
        return self._loaded[key]

    def _fallback(self, size: float) -> Font:
        if self.fallback_font is not None:
            try:
                return self._load(self.fallback_font, size)
            except OSError as e:
                logger.warning(f"Failed to load fallback font {self.fallback_font}: {e}")

        key = ("<default>", size)
        if key not in self._loaded:
            self._loaded[key] = ImageFont.load_default(size=size)
        return self._loaded[key]
