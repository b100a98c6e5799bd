"""Minimum-resolution check for captured card photos.

Rejects photos too small to contain legible card text before any
encoding work is spent on them.
"""

import io
from pathlib import Path

from PIL import Image

from cnic_ocr.utils.exceptions import UnreadableImageError
from cnic_ocr.utils.logger import get_logger

logger = get_logger(__name__)

ImageSource = Path | bytes


def open_image(source: ImageSource) -> Image.Image:
    """Open an image from a file path or raw bytes.

    Raises:
        UnreadableImageError: If the source is missing or not a decodable image.
    """
    try:
        if isinstance(source, bytes):
            return Image.open(io.BytesIO(source))
        return Image.open(Path(source))
    except (OSError, Image.DecompressionBombError) as exc:
        raise UnreadableImageError(f"Cannot read image: {exc}") from exc


def read_dimensions(source: ImageSource) -> tuple[int, int]:
    """Return the ``(width, height)`` of an image.

    Only the header is decoded, so this is cheap even for large photos.
    """
    with open_image(source) as img:
        return img.size


def check_minimum_resolution(
    source: ImageSource, min_width: int = 800, min_height: int = 500
) -> bool:
    """Check whether an image is large enough to hold legible card text.

    Args:
        source: Path or raw bytes of the photo.
        min_width: Minimum accepted width in pixels.
        min_height: Minimum accepted height in pixels.

    Returns:
        ``True`` if both dimensions meet the floor.

    Raises:
        UnreadableImageError: If the image cannot be read at all.
    """
    width, height = read_dimensions(source)
    passed = width >= min_width and height >= min_height
    if not passed:
        logger.info(
            "Resolution too low: %dx%d (minimum %dx%d)",
            width,
            height,
            min_width,
            min_height,
        )
    return passed
