"""JPEG conditioning of card photos for upload to the recognition service.

The OCR.space free tier rejects uploads above 1 MB, so photos are
re-encoded until they fit. Quality is lowered first at a given width
and the width is only reduced once quality reaches its floor.
"""

import base64
import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps

from cnic_ocr.utils.config import ImageConfig
from cnic_ocr.utils.exceptions import UnreadableImageError
from cnic_ocr.utils.logger import get_logger

from .resolution import open_image

logger = get_logger(__name__)

# base64 inflates data by 4/3
BASE64_SIZE_RATIO = 0.75


@dataclass(frozen=True)
class ConditionedImage:
    """A base64-encoded JPEG ready for transmission."""

    encoded_base64: str
    width: int
    height: int
    quality: int

    @property
    def estimated_byte_size(self) -> float:
        """Decoded size in bytes estimated from the base64 length."""
        return len(self.encoded_base64) * BASE64_SIZE_RATIO

    @property
    def data_url(self) -> str:
        """The image as a ``data:`` URL, the form the OCR.space API expects."""
        return f"data:image/jpeg;base64,{self.encoded_base64}"


class ImageConditioner:
    """Re-encodes photos under a byte-size ceiling.

    Settings are walked as a finite schedule: every quality from
    ``start_quality`` down to ``min_quality`` at ``start_width``, then the
    same qualities at each narrower width down to ``min_width``. The first
    encoding under ``max_bytes`` wins; if none fits, the last one (both
    floors reached) is returned as best effort.

    Args:
        config: Image size configuration.
    """

    def __init__(self, config: ImageConfig) -> None:
        self.config = config

    def widths(self) -> list[int]:
        """Target widths in the order they are tried, ending at the floor."""
        cfg = self.config
        return list(range(cfg.start_width, cfg.min_width, -cfg.width_step)) + [
            cfg.min_width
        ]

    def qualities(self) -> list[int]:
        """JPEG qualities tried at each width, ending at the floor."""
        cfg = self.config
        return list(range(cfg.start_quality, cfg.min_quality, -cfg.quality_step)) + [
            cfg.min_quality
        ]

    @property
    def max_attempts(self) -> int:
        """Upper bound on the number of encodes for a single photo."""
        return len(self.widths()) * len(self.qualities())

    def condition(self, source: Path | bytes) -> ConditionedImage:
        """Encode a photo as JPEG under the configured size ceiling.

        Args:
            source: Path or raw bytes of the photo.

        Returns:
            The first encoding that fits, or the floor encoding if none does.

        Raises:
            UnreadableImageError: If the photo cannot be decoded.
        """
        with open_image(source) as raw:
            try:
                photo = ImageOps.exif_transpose(raw).convert("RGB")
            except (OSError, Image.DecompressionBombError) as exc:
                raise UnreadableImageError(f"Cannot decode image: {exc}") from exc

        result: ConditionedImage | None = None
        attempts = 0
        for width in self.widths():
            resized = self._resize(photo, width)
            for quality in self.qualities():
                attempts += 1
                result = self._encode(resized, quality)
                if result.estimated_byte_size <= self.config.max_bytes:
                    logger.info(
                        "Conditioned image to %dx%d at quality %d: %dKB after %d attempt(s)",
                        result.width,
                        result.height,
                        quality,
                        round(result.estimated_byte_size / 1024),
                        attempts,
                    )
                    return result
                logger.debug(
                    "Image too large at width=%d quality=%d (%dKB)",
                    width,
                    quality,
                    round(result.estimated_byte_size / 1024),
                )

        if result is None:
            raise ValueError("Conditioning schedule is empty")
        logger.warning(
            "Image still %dKB at floor settings (width=%d, quality=%d), "
            "sending best effort",
            round(result.estimated_byte_size / 1024),
            result.width,
            result.quality,
        )
        return result

    @staticmethod
    def _resize(photo: Image.Image, width: int) -> Image.Image:
        """Scale a photo to ``width`` pixels wide, keeping its aspect ratio."""
        height = max(1, round(photo.height * width / photo.width))
        return photo.resize((width, height), Image.Resampling.LANCZOS)

    @staticmethod
    def _encode(image: Image.Image, quality: int) -> ConditionedImage:
        """Encode an image as base64 JPEG at the given quality."""
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality)
        return ConditionedImage(
            encoded_base64=base64.b64encode(buffer.getvalue()).decode("ascii"),
            width=image.width,
            height=image.height,
            quality=quality,
        )
