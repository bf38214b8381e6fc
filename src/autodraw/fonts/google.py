"""Google Fonts downloader and cache."""

import logging
import re
from pathlib import Path
from typing import Optional

import requests

logger = logging.getLogger(__name__)

# Cache directory for downloaded Google Fonts
CACHE_DIR = Path.home() / ".cache" / "autodraw" / "fonts"


def get_google_font(
    family: str, weight: int = 400, italic: bool = False, cache_dir: Path | None = None
) -> Optional[Path]:
    """
    Download a Google Font and return the path to the cached TTF file.

    Args:
        family: Font family name (e.g., "Noto Sans SC", "Roboto").
        weight: Font weight (e.g., 400 for regular, 700 for bold).
        italic: Request the italic variant.
        cache_dir: Cache directory override (defaults to ~/.cache/autodraw/fonts).

    Returns:
        Path to the cached TTF file, or None if download failed.
    """
    cache_dir = cache_dir or CACHE_DIR
    cache_dir.mkdir(parents=True, exist_ok=True)

    variant = f"{weight}italic" if italic else str(weight)
    cache_filename = f"{family.replace(' ', '')}-{variant}.ttf"
    cache_path = cache_dir / cache_filename

    if cache_path.exists():
        logger.debug(f"Using cached Google Font: {cache_filename}")
        return cache_path

    # Google Fonts CSS API v1 returns TTF URLs:
    # https://fonts.googleapis.com/css?family=Roboto:700italic&display=swap
    font_url = f"https://fonts.googleapis.com/css?family={family.replace(' ', '+')}:{variant}&display=swap"

    try:
        logger.info(f"Downloading Google Font: {family} ({variant})")

        css_response = requests.get(font_url, timeout=10)
        css_response.raise_for_status()

        font_file_url = extract_font_url_from_css(css_response.text)
        if not font_file_url:
            logger.error(f"Failed to extract font URL from CSS for {family}")
            return None

        font_response = requests.get(font_file_url, timeout=30)
        font_response.raise_for_status()

        cache_path.write_bytes(font_response.content)
        logger.info(f"Downloaded and cached Google Font: {cache_filename}")

        return cache_path

    except requests.RequestException as e:
        logger.error(f"Failed to download Google Font {family} ({variant}): {e}")
        return None
    except OSError as e:
        logger.error(f"Failed to cache Google Font {family}: {e}")
        return None


def extract_font_url_from_css(css_content: str) -> Optional[str]:
    """
    Extract the font file URL from Google Fonts CSS.

    Args:
        css_content: CSS content from Google Fonts API.

    Returns:
        URL to the font file (TTF), or None if not found.
    """
    url_pattern = r'src:\s*url\((https://[^)]+\.ttf)\)'

    match = re.search(url_pattern, css_content)
    if match:
        return match.group(1)

    # Fallback: try to find any TTF URL
    ttf_pattern = r'(https://[^\s\'"]+\.ttf)'
    match = re.search(ttf_pattern, css_content)
    if match:
        return match.group(1)

    return None
