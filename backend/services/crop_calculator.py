"""
Crop and resize geometry for the resize presets.
Handles attention-based cover crops and no-enlargement contain sizing.
"""

from typing import Dict, Tuple
from dataclasses import dataclass

from PIL import Image

from services.saliency import best_window_start, saliency_map


@dataclass
class CropBox:
    """Represents a calculated crop region."""
    x: int  # Left edge
    y: int  # Top edge
    width: int
    height: int

    def validate_bounds(self, image_width: int, image_height: int) -> bool:
        """Check if crop box is within image bounds."""
        return (
            self.x >= 0 and
            self.y >= 0 and
            self.x + self.width <= image_width and
            self.y + self.height <= image_height
        )

    def adjust_to_bounds(self, image_width: int, image_height: int) -> 'CropBox':
        """Adjust crop box to fit within image bounds."""
        # Adjust position to fit within bounds
        x = max(0, min(self.x, image_width - self.width))
        y = max(0, min(self.y, image_height - self.height))

        # Adjust size if necessary
        width = min(self.width, image_width - x)
        height = min(self.height, image_height - y)

        return CropBox(x, y, width, height)

    def as_box(self) -> Tuple[int, int, int, int]:
        """Return (left, upper, right, lower) as expected by Image.crop."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height
        }


def calculate_cover_crop(image: Image.Image, target_width: int, target_height: int) -> CropBox:
    """
    Calculate the largest crop of the target aspect ratio, placed on the
    most salient part of the image.

    Only one axis is ever cropped, so the focal search is one-dimensional:
    the saliency map is summed across the kept axis and the best window is
    searched along the cropped one.

    Args:
        image: Source image
        target_width: Output width the crop will be resized to
        target_height: Output height the crop will be resized to

    Returns:
        CropBox in source pixel coordinates
    """
    width, height = image.size
    target_ratio = target_width / target_height

    if width / height > target_ratio:
        crop_width = max(1, min(width, round(height * target_ratio)))
        crop_height = height
    else:
        crop_width = width
        crop_height = max(1, min(height, round(width / target_ratio)))

    if crop_width == width and crop_height == height:
        return CropBox(0, 0, width, height)

    saliency, scale_x, scale_y = saliency_map(image)

    if crop_width < width:
        window = round(crop_width / scale_x)
        start = best_window_start(saliency.sum(axis=0), window)
        crop = CropBox(round(start * scale_x), 0, crop_width, crop_height)
    else:
        window = round(crop_height / scale_y)
        start = best_window_start(saliency.sum(axis=1), window)
        crop = CropBox(0, round(start * scale_y), crop_width, crop_height)

    return crop.adjust_to_bounds(width, height)


def calculate_contain_size(
    width: int,
    height: int,
    max_width: int,
    max_height: int
) -> Tuple[int, int]:
    """
    Calculate the size that fits inside max_width x max_height while
    keeping the aspect ratio. Images already inside the box keep their size.

    Args:
        width: Source width
        height: Source height
        max_width: Bounding box width
        max_height: Bounding box height

    Returns:
        (width, height) of the resized image
    """
    if width <= max_width and height <= max_height:
        return width, height

    scale = min(max_width / width, max_height / height)
    new_width = max(1, min(max_width, round(width * scale)))
    new_height = max(1, min(max_height, round(height * scale)))
    return new_width, new_height
