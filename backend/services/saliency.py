"""
Saliency estimation used to pick the focal region of attention-based crops.

The score of a pixel combines three cues, each normalized to 0-1:
luminance detail (gradient magnitude), colour saturation and skin tone.
"""

from typing import Tuple

import numpy as np
from PIL import Image

# Longest side of the downscaled copy the map is computed on
ANALYSIS_SIZE = 256


def _normalize(values: np.ndarray) -> np.ndarray:
    peak = float(values.max()) if values.size else 0.0
    if peak <= 0:
        return np.zeros_like(values)
    return values / peak


def _edge_strength(luminance: np.ndarray) -> np.ndarray:
    """Absolute horizontal plus vertical gradient, same shape as input."""
    dx = np.abs(np.diff(luminance, axis=1, append=luminance[:, -1:]))
    dy = np.abs(np.diff(luminance, axis=0, append=luminance[-1:, :]))
    return dx + dy


def _saturation(rgb: np.ndarray) -> np.ndarray:
    high = rgb.max(axis=2)
    low = rgb.min(axis=2)
    return np.where(high > 0, (high - low) / np.maximum(high, 1e-6), 0.0)


def _skin_mask(rgb: np.ndarray) -> np.ndarray:
    """Uniform-daylight RGB skin rule on 0-1 channel values."""
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    spread = rgb.max(axis=2) - rgb.min(axis=2)
    mask = (
        (r > 0.37) & (g > 0.16) & (b > 0.08)
        & (r > g) & (r > b)
        & (spread > 0.06) & (np.abs(r - g) > 0.06)
    )
    return mask.astype(np.float32)


def saliency_map(image: Image.Image, analysis_size: int = ANALYSIS_SIZE) -> Tuple[np.ndarray, float, float]:
    """
    Compute a saliency map on a downscaled copy of the image.

    Args:
        image: Source PIL image (any mode)
        analysis_size: Longest side of the analysed copy

    Returns:
        Tuple of (map, scale_x, scale_y) where the scales convert map
        coordinates back to source pixels
    """
    small = image.convert("RGB")
    small.thumbnail((analysis_size, analysis_size), Image.Resampling.BILINEAR)

    rgb = np.asarray(small, dtype=np.float32) / 255.0
    luminance = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114

    score = (
        _normalize(_edge_strength(luminance))
        + _normalize(_saturation(rgb))
        + _skin_mask(rgb)
    )

    scale_x = image.width / small.width
    scale_y = image.height / small.height
    return score, scale_x, scale_y


def best_window_start(profile: np.ndarray, window: int) -> int:
    """
    Find where a window of the given length captures the most saliency.

    Ties are broken toward the centered position, so a featureless image
    gets a plain center crop.

    Args:
        profile: 1-D saliency summed across the fixed axis
        window: Window length in profile cells

    Returns:
        Start index of the best window
    """
    length = len(profile)
    window = max(1, min(window, length))
    if window == length:
        return 0

    cumulative = np.concatenate(([0.0], np.cumsum(profile, dtype=np.float64)))
    sums = cumulative[window:] - cumulative[:-window]

    best = sums.max()
    candidates = np.flatnonzero(np.isclose(sums, best, rtol=1e-9, atol=1e-9))
    center = (length - window) / 2
    return int(candidates[np.argmin(np.abs(candidates - center))])
