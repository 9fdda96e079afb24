"""Image outputs: grayscale terrain heightmap and level preview."""

from pathlib import Path

import numpy as np
from PIL import Image

from .constants import PREVIEW_SIZE


def normalize_heightmap(heights: np.ndarray) -> np.ndarray:
    """Scale elevations linearly onto 0-255 using their own min and max.

    The scale is relative to the heightmap, so the same elevation maps to
    different pixel values in different regions. A flat heightmap maps to
    all zeros.

    Args:
        heights: 2D array of elevations in meters

    Returns:
        2D uint8 array of the same shape
    """
    h = np.asarray(heights, dtype=np.float64)
    if h.ndim != 2 or h.size == 0:
        raise ValueError(f"Heightmap must be a non-empty 2D array, got shape {h.shape}")

    min_h = float(h.min())
    max_h = float(h.max())
    value_range = max_h - min_h
    if value_range <= 0:
        return np.zeros(h.shape, dtype=np.uint8)

    normalized = (h - min_h) / value_range * 255.0
    # Truncate like an integer cast; max_h lands exactly on 255
    return np.clip(np.floor(normalized), 0, 255).astype(np.uint8)


def save_heightmap_png(heights: np.ndarray, path: Path) -> Path:
    """Write the normalized heightmap as an 8-bit grayscale PNG."""
    image = Image.fromarray(normalize_heightmap(heights))
    image.save(path, format="PNG")
    return path


def preview_image(size: int = PREVIEW_SIZE) -> Image.Image:
    """Build the placeholder preview: red along x, green along y, flat blue."""
    ramp = (np.arange(size, dtype=np.float64) / size * 255.0).astype(np.uint8)
    pixels = np.empty((size, size, 3), dtype=np.uint8)
    pixels[..., 0] = ramp[np.newaxis, :]
    pixels[..., 1] = ramp[:, np.newaxis]
    pixels[..., 2] = 128
    return Image.fromarray(pixels)


def save_preview(path: Path, size: int = PREVIEW_SIZE) -> Path:
    """Write the placeholder preview as JPEG."""
    preview_image(size).save(path, format="JPEG")
    return path
