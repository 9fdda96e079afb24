"""BeamNG level mod format handling."""

from .constants import (
    TERRAIN_SIZE,
    SQUARE_SIZE,
    HEIGHT_SCALE,
    GAME_OBJECT_ID_BASE,
    object_class,
)
from .images import normalize_heightmap, save_heightmap_png, preview_image, save_preview
from .level import (
    ModInfo,
    MainLevel,
    SunConfig,
    items_level,
    road_nodes,
    decal_roads,
    terrain_descriptor,
)
from .mod import ModPackage
from .packager import pack_directory

__all__ = [
    # Constants
    "TERRAIN_SIZE",
    "SQUARE_SIZE",
    "HEIGHT_SCALE",
    "GAME_OBJECT_ID_BASE",
    "object_class",
    # Images
    "normalize_heightmap",
    "save_heightmap_png",
    "preview_image",
    "save_preview",
    # Level
    "ModInfo",
    "MainLevel",
    "SunConfig",
    "items_level",
    "road_nodes",
    "decal_roads",
    "terrain_descriptor",
    # Mod
    "ModPackage",
    # Packager
    "pack_directory",
]
