"""Geographic data handling: projection, elevation tiles and downloads."""

from .coordinates import (
    TERRAIN_SPAN,
    TileCoord,
    project,
    lat_lon_to_tile,
    get_required_tiles,
)
from .terrarium import (
    TILE_SIZE,
    decode_terrarium,
    encode_terrarium,
    placeholder_tile,
    stitch_tiles,
)
from .downloader import TileDownloader, OverpassClient

__all__ = [
    # Coordinates
    "TERRAIN_SPAN",
    "TileCoord",
    "project",
    "lat_lon_to_tile",
    "get_required_tiles",
    # Terrarium
    "TILE_SIZE",
    "decode_terrarium",
    "encode_terrarium",
    "placeholder_tile",
    "stitch_tiles",
    # Downloader
    "TileDownloader",
    "OverpassClient",
]
