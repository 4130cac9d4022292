"""
Image processing service: decode, fit to a preset, encode to WebP
"""

import io
import logging
from PIL import Image, ImageOps

from services.crop_calculator import calculate_contain_size, calculate_cover_crop
from services.presets import FitMode, ResizePreset
from utils.error_handlers import DecodeFailed

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "WEBP"
OUTPUT_EXTENSION = ".webp"
DEFAULT_QUALITY = 80

# Modes WebP can store directly
_WEBP_MODES = {"RGB", "RGBA"}


class ImageProcessorService:
    """Service for image processing operations"""

    def __init__(self, quality: int = DEFAULT_QUALITY):
        self.quality = quality

    def decode(self, content: bytes) -> Image.Image:
        """
        Decode image bytes into a fully loaded, upright RGB or RGBA image.

        Raises:
            DecodeFailed: If the bytes are empty or not a readable image
        """
        if not content:
            raise DecodeFailed("Uploaded file is empty")

        try:
            image = Image.open(io.BytesIO(content))
            # Multi-frame inputs (GIF, TIFF) contribute their first frame
            image.seek(0)
            image.load()
            image = ImageOps.exif_transpose(image)
        except (Image.UnidentifiedImageError, Image.DecompressionBombError) as e:
            raise DecodeFailed(details={"error": str(e)})
        except (OSError, ValueError, SyntaxError) as e:
            # Truncated or otherwise corrupt data from a recognised format
            raise DecodeFailed(details={"error": str(e)})

        return self._to_webp_mode(image)

    def transform(self, image: Image.Image, preset: ResizePreset) -> Image.Image:
        """Resize (and crop, for cover presets) an image to the preset box"""
        if preset.fit is FitMode.COVER:
            crop = calculate_cover_crop(image, preset.output_width, preset.output_height)
            logger.debug(f"Attention crop for {preset.policy.value}: {crop.to_dict()}")
            return image.crop(crop.as_box()).resize(
                preset.dimensions, Image.Resampling.LANCZOS
            )

        size = calculate_contain_size(
            image.width, image.height, preset.output_width, preset.output_height
        )
        if size == image.size:
            return image
        return image.resize(size, Image.Resampling.LANCZOS)

    def encode(self, image: Image.Image) -> bytes:
        """Encode an image as WebP at the configured quality"""
        output = io.BytesIO()
        image.save(output, format=OUTPUT_FORMAT, quality=self.quality, method=4)
        return output.getvalue()

    @staticmethod
    def _to_webp_mode(image: Image.Image) -> Image.Image:
        if image.mode in _WEBP_MODES:
            return image
        has_alpha = (
            image.mode in ("LA", "PA", "La")
            or (image.mode == "P" and "transparency" in image.info)
        )
        return image.convert("RGBA" if has_alpha else "RGB")
