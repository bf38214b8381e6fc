"""Image loading, caching and encoding using Pillow."""

import asyncio
import base64
import binascii
import hashlib
import logging
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote_to_bytes, urlparse

import requests
from PIL import Image

from autodraw.reporting import ImageLoadError
from autodraw.types import ImageFormat, ImageSource, UploadLookup

if TYPE_CHECKING:
    from autodraw.config import Settings

logger = logging.getLogger(__name__)


def load_image_from_bytes(image_data: bytes) -> Image.Image:
    """
    Decode an image from raw bytes.

    Args:
        image_data: Raw image bytes (JPEG, PNG, etc.).

    Returns:
        Fully decoded RGBA PIL Image.
    """
    img = Image.open(BytesIO(image_data))
    img.load()
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return img


def encode_image(img: Image.Image, format: ImageFormat = "PNG", quality: int = 95) -> bytes:
    """
    Encode a rendered card.

    Args:
        img: PIL Image object.
        format: "PNG" (lossless) or "JPEG" (lossy).
        quality: JPEG quality (ignored for PNG).

    Returns:
        Encoded image bytes.
    """
    buffer = BytesIO()
    if format == "JPEG":
        if img.mode != "RGB":
            img = img.convert("RGB")
        img.save(buffer, format="JPEG", quality=quality)
    else:
        img.save(buffer, format="PNG")
    return buffer.getvalue()


def scale_to_fit(
    width: float, height: float, max_width: float | None = None, max_height: float | None = None
) -> tuple[float, float]:
    """
    Scale image dimensions down to fit maximum width and height.

    The clamps run one after the other: width first (height follows the
    ratio), then height (width follows the ratio). Never scales up.

    Args:
        width: Intrinsic width.
        height: Intrinsic height.
        max_width: Maximum width, or None.
        max_height: Maximum height, or None.

    Returns:
        (width, height) after scaling.
    """
    if max_width and width > max_width:
        ratio = max_width / width
        width = max_width
        height = height * ratio
    if max_height and height > max_height:
        ratio = max_height / height
        height = max_height
        width = width * ratio
    return width, height


def source_key(source: ImageSource) -> str:
    """Cache key for an image source (raw bytes are keyed by digest)."""
    if isinstance(source, bytes):
        return "sha1:" + hashlib.sha1(source).hexdigest()
    return source


def resolve_source(path: str, lookup: UploadLookup | None) -> ImageSource:
    """
    Map a resolved path template through the upload lookup.

    Args:
        path: Resolved path (URL, file path or upload key).
        lookup: Upload key -> source mapping.

    Returns:
        The mapped source, or the path itself when it isn't an upload key.
    """
    if lookup is not None and path in lookup:
        return lookup[path]
    return path


def load_uploads(directory: Path) -> dict[str, str]:
    """
    Build an upload lookup from a directory of images.

    Each file is reachable by its file name ("logo.png") and by its stem
    ("logo"), so row values don't need the extension.
    """
    lookup: dict[str, str] = {}
    for path in sorted(directory.iterdir()):
        if path.is_file():
            lookup.setdefault(path.stem, str(path))
            lookup[path.name] = str(path)
    return lookup


class ImageCache:
    """
    Decoded images keyed by source.

    Entries are only ever added, never evicted, so renders sharing a cache
    never see an image disappear mid-frame.
    """

    def __init__(self) -> None:
        self._images: dict[str, Image.Image] = {}

    def get(self, key: str) -> Image.Image | None:
        return self._images.get(key)

    def put(self, key: str, image: Image.Image) -> None:
        self._images.setdefault(key, image)

    def size_of(self, key: str) -> tuple[int, int] | None:
        """Intrinsic size of an already-decoded image, without loading anything."""
        image = self._images.get(key)
        return image.size if image is not None else None

    def __contains__(self, key: str) -> bool:
        return key in self._images

    def __len__(self) -> int:
        return len(self._images)


class ImageLoader:
    """Fetches and decodes images from URLs, data URLs, files or bytes."""

    def __init__(
        self,
        cache: ImageCache | None = None,
        base_dir: Path | None = None,
        timeout: float = 15.0,
        user_agent: str = "autodraw/0.1",
    ) -> None:
        """
        Initialize loader.

        Args:
            cache: Decode cache (a fresh one is created if None).
            base_dir: Directory relative file paths are resolved against.
            timeout: Timeout in seconds for HTTP requests.
            user_agent: User-Agent header for HTTP requests.
        """
        self.cache = cache if cache is not None else ImageCache()
        self.base_dir = base_dir
        self.timeout = timeout
        self.user_agent = user_agent

    @classmethod
    def from_settings(cls, settings: "Settings", cache: ImageCache | None = None) -> "ImageLoader":
        return cls(
            cache=cache,
            base_dir=settings.base_dir,
            timeout=settings.image_timeout,
            user_agent=settings.user_agent,
        )

    async def load(self, source: ImageSource) -> Image.Image:
        """
        Load an image, using the cache when possible.

        Fetching and decoding run in a worker thread so the event loop stays
        free while a large image downloads.

        Args:
            source: URL, data URL, file path or raw bytes.

        Returns:
            Decoded RGBA image.

        Raises:
            ImageLoadError: If the source can't be fetched or decoded.
        """
        key = source_key(source)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Image cache hit: {key[:80]}")
            return cached

        image = await asyncio.to_thread(self._read, source)
        self.cache.put(key, image)
        return self.cache.get(key) or image

    def _read(self, source: ImageSource) -> Image.Image:
        label = "<bytes>" if isinstance(source, bytes) else source[:80]
        try:
            data = source if isinstance(source, bytes) else self._read_bytes(source)
            return load_image_from_bytes(data)
        except requests.RequestException as e:
            raise ImageLoadError(label, f"request failed: {e}") from e
        except (binascii.Error, ValueError, SyntaxError) as e:
            # Pillow plugins raise SyntaxError for broken headers
            raise ImageLoadError(label, f"invalid data: {e}") from e
        except Image.DecompressionBombError as e:
            raise ImageLoadError(label, str(e)) from e
        except OSError as e:
            # Covers missing files and Pillow's UnidentifiedImageError
            raise ImageLoadError(label, str(e)) from e

    def _read_bytes(self, source: str) -> bytes:
        if source.startswith("data:"):
            return _decode_data_url(source)

        parsed = urlparse(source)
        if parsed.scheme in ("http", "https"):
            logger.info(f"Downloading image: {source}")
            response = requests.get(source, timeout=self.timeout, headers={"User-Agent": self.user_agent})
            response.raise_for_status()
            return response.content

        path = Path(parsed.path) if parsed.scheme == "file" else Path(source)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path.read_bytes()


def _decode_data_url(url: str) -> bytes:
    """Decode a data: URL (base64 or percent-encoded)."""
    header, sep, payload = url.partition(",")
    if not sep:
        raise ValueError("data URL has no payload")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=False)
    return unquote_to_bytes(payload)
