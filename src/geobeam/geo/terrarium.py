"""Terrarium elevation tile decoding.

Terrarium tiles are 256x256 PNGs that pack elevation into the RGB channels:

    height_meters = R * 256 + G + B / 256 - 32768

Decoded heightmaps are row-major float32 arrays, first row at the north
edge, and are returned read-only.
"""

from io import BytesIO
from typing import Dict, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import RasterDecodeFailure
from .coordinates import TileCoord


# Pixel size of a Terrarium tile
TILE_SIZE = 256

# Elevation offset applied by the packing
TERRARIUM_OFFSET = 32768.0


def _freeze(heights: np.ndarray) -> np.ndarray:
    heights.flags.writeable = False
    return heights


def decode_terrarium(data: bytes) -> np.ndarray:
    """Decode Terrarium-packed raster bytes into a heightmap.

    Args:
        data: Encoded image bytes (PNG, or any format Pillow reads)

    Returns:
        2D float32 array of elevations in meters

    Raises:
        RasterDecodeFailure: If the bytes are not a readable image
    """
    try:
        with Image.open(BytesIO(data)) as img:
            rgb = np.asarray(img.convert("RGB"), dtype=np.float32)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise RasterDecodeFailure(f"Failed to load terrain image: {e}") from e

    r = rgb[..., 0]
    g = rgb[..., 1]
    b = rgb[..., 2]
    heights = r * 256.0 + g + b / 256.0 - TERRARIUM_OFFSET
    return _freeze(heights.astype(np.float32))


def encode_terrarium(heights: np.ndarray) -> Image.Image:
    """Pack a heightmap into a Terrarium RGB image.

    Values are quantised to 1/256 m.

    Args:
        heights: 2D array of elevations in meters

    Returns:
        RGB PIL image
    """
    v = np.asarray(heights, dtype=np.float64) + TERRARIUM_OFFSET
    v_floor = np.floor(v)

    r = np.floor(v / 256.0)
    g = np.mod(v_floor, 256.0)
    b = np.floor((v - v_floor) * 256.0)

    out = np.clip(np.stack([r, g, b], axis=-1), 0, 255).astype(np.uint8)
    return Image.fromarray(out)


def placeholder_tile(shape: Tuple[int, int] = (TILE_SIZE, TILE_SIZE)) -> np.ndarray:
    """Create a zero-elevation tile for a failed fetch or decode."""
    return _freeze(np.zeros(shape, dtype=np.float32))


def stitch_tiles(tiles: Dict[TileCoord, np.ndarray]) -> np.ndarray:
    """Stitch decoded tiles into a single heightmap.

    Tiles are placed by their (y, x) index: rows north to south, columns
    west to east. Tiles must share one shape and cover a full rectangle of
    indices.

    Args:
        tiles: Decoded heightmaps keyed by tile coordinate

    Returns:
        Combined read-only heightmap
    """
    if not tiles:
        raise ValueError("No tiles to stitch")

    shapes = {t.shape for t in tiles.values()}
    if len(shapes) != 1:
        raise ValueError(f"Tiles have mismatched shapes: {sorted(shapes)}")
    zooms = {coord.zoom for coord in tiles}
    if len(zooms) != 1:
        raise ValueError(f"Tiles span several zoom levels: {sorted(zooms)}")

    xs = sorted({coord.x for coord in tiles})
    ys = sorted({coord.y for coord in tiles})
    if xs != list(range(xs[0], xs[-1] + 1)) or ys != list(range(ys[0], ys[-1] + 1)):
        raise ValueError("Tile indices are not contiguous")
    if len(tiles) != len(xs) * len(ys):
        raise ValueError(f"Expected {len(xs) * len(ys)} tiles, got {len(tiles)}")

    zoom = zooms.pop()
    rows = [
        [tiles[TileCoord(zoom, x, y)] for x in xs]
        for y in ys
    ]
    return _freeze(np.block(rows).astype(np.float32))
