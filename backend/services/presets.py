"""
Resize preset configuration for uploaded images.
Maps each aspect-ratio policy to its output box and fit strategy.
"""

from dataclasses import dataclass
from typing import Dict, Tuple, Union
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class AspectRatioPolicy(Enum):
    """Aspect-ratio policies a caller may request for an upload."""
    ORIGINAL = "original"
    SQUARE = "1:1"
    PORTRAIT = "3:4"


class FitMode(Enum):
    """How an image is fitted into the preset box."""
    CONTAIN = "contain"  # Shrink to fit inside the box, never enlarge
    COVER = "cover"  # Fill the box exactly, cropping the excess


@dataclass(frozen=True)
class ResizePreset:
    """Configuration for a single resize preset."""
    policy: AspectRatioPolicy
    output_width: int
    output_height: int
    fit: FitMode
    description: str

    @property
    def dimensions(self) -> Tuple[int, int]:
        """Return output dimensions as a tuple."""
        return (self.output_width, self.output_height)

    @property
    def aspect_ratio(self) -> float:
        return self.output_width / self.output_height

    def validate(self) -> bool:
        """Validate preset configuration."""
        return self.output_width > 0 and self.output_height > 0


PRESETS: Dict[AspectRatioPolicy, ResizePreset] = {
    AspectRatioPolicy.ORIGINAL: ResizePreset(
        policy=AspectRatioPolicy.ORIGINAL,
        output_width=800,
        output_height=800,
        fit=FitMode.CONTAIN,
        description="Keep the source aspect ratio, at most 800x800"
    ),

    AspectRatioPolicy.SQUARE: ResizePreset(
        policy=AspectRatioPolicy.SQUARE,
        output_width=800,
        output_height=800,
        fit=FitMode.COVER,
        description="Square 800x800 crop around the most salient region"
    ),

    AspectRatioPolicy.PORTRAIT: ResizePreset(
        policy=AspectRatioPolicy.PORTRAIT,
        output_width=600,
        output_height=800,
        fit=FitMode.COVER,
        description="Portrait 600x800 crop around the most salient region"
    ),
}


def parse_policy(value: Union[str, AspectRatioPolicy, None]) -> AspectRatioPolicy:
    """
    Resolve a caller-supplied policy value.

    Unknown or missing values fall back to ORIGINAL instead of failing the
    upload: the policy is a rendering hint, not user input worth rejecting.
    """
    if isinstance(value, AspectRatioPolicy):
        return value
    try:
        return AspectRatioPolicy(value)
    except ValueError:
        if value is not None:
            logger.warning(f"Unknown aspect ratio policy {value!r}, using 'original'")
        return AspectRatioPolicy.ORIGINAL


def get_preset(policy: Union[str, AspectRatioPolicy, None]) -> ResizePreset:
    """
    Get preset configuration for a policy.

    Args:
        policy: Policy enum member or raw value ("original", "1:1", "3:4")

    Returns:
        ResizePreset for the policy (ORIGINAL for unrecognized values)
    """
    return PRESETS[parse_policy(policy)]


def get_all_presets() -> Dict[AspectRatioPolicy, ResizePreset]:
    """Get all available presets."""
    return PRESETS.copy()


def validate_all_presets() -> bool:
    """
    Validate all preset configurations.

    Returns:
        True if all presets are valid, False otherwise
    """
    for policy, preset in PRESETS.items():
        if preset.policy is not policy or not preset.validate():
            return False
    return True


# Validate presets on module load
if not validate_all_presets():
    raise ValueError("Invalid preset configuration detected")
