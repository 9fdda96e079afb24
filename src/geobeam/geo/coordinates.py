"""Coordinate conversion between geographic and BeamNG local space.

Local space is a square of ``TERRAIN_SPAN`` units. X grows east, Z grows
north, Y is up and is always 0 here; elevation is carried by the terrain
heightmap, not by projected positions.

The projection is a linear rescale of the bounding box, not a geodesic
projection. Boxes handled by the pipeline span a few kilometres at most.
"""

from dataclasses import dataclass
from typing import Tuple
import math

from ..config import BoundingBox


# Edge length of the target terrain square, in local units
TERRAIN_SPAN = 2048.0

# Web Mercator tiles stop at this latitude
MAX_MERCATOR_LAT = 85.0511287798


@dataclass(frozen=True, order=True)
class TileCoord:
    """Slippy-map tile coordinate."""
    zoom: int
    x: int
    y: int

    @property
    def path(self) -> str:
        """Tile path like ``12/2154/1489``."""
        return f"{self.zoom}/{self.x}/{self.y}"


def project(
    lat: float,
    lon: float,
    bbox: BoundingBox,
    span: float = TERRAIN_SPAN
) -> Tuple[float, float, float]:
    """Project lat/lon inside a bounding box onto local coordinates.

    The box must be non-degenerate; validate it before projecting.

    Args:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
        bbox: Bounding box mapped onto the terrain square
        span: Edge length of the terrain square

    Returns:
        Tuple of (x, y, z) with y always 0.0
    """
    x = (lon - bbox.min_lon) / (bbox.max_lon - bbox.min_lon) * span
    z = (lat - bbox.min_lat) / (bbox.max_lat - bbox.min_lat) * span
    return (x, 0.0, z)


def lat_lon_to_tile(lat: float, lon: float, zoom: int) -> Tuple[int, int]:
    """Convert lat/lon to slippy-map tile indices.

    Args:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
        zoom: Zoom level

    Returns:
        Tuple of (tile_x, tile_y)
    """
    n = 2 ** zoom
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    lat_rad = math.radians(lat)
    tile_x = math.floor((lon + 180.0) / 360.0 * n)
    tile_y = math.floor(
        (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * n
    )
    return (int(tile_x), int(tile_y))


def get_required_tiles(bbox: BoundingBox, zoom: int) -> list[TileCoord]:
    """Get the tiles needed to cover a bounding box.

    Tiles are ordered row by row from north to south, west to east within
    a row, which is the order :func:`~geobeam.geo.terrarium.stitch_tiles`
    lays them out in.

    Args:
        bbox: Bounding box
        zoom: Zoom level

    Returns:
        List of TileCoord
    """
    x0, y0 = lat_lon_to_tile(bbox.max_lat, bbox.min_lon, zoom)
    x1, y1 = lat_lon_to_tile(bbox.min_lat, bbox.max_lon, zoom)

    # Clamp to the valid index range at this zoom
    last = 2 ** zoom - 1
    min_x, max_x = max(0, min(x0, x1)), min(last, max(x0, x1))
    min_y, max_y = max(0, min(y0, y1)), min(last, max(y0, y1))

    tiles = []
    for y in range(min_y, max_y + 1):
        for x in range(min_x, max_x + 1):
            tiles.append(TileCoord(zoom, x, y))
    return tiles
