"""Constants for the BeamNG level mod layout."""

# Terrain
TERRAIN_SIZE = 2048
SQUARE_SIZE = 1.0
HEIGHT_SCALE = 256.0

# Mod metadata
MOD_VERSION = "1.0"
GAME_VERSION = "0.32"
MOD_TYPE = "level"
AUTHOR = "GeoBeam Terrain Generator"

# Scene object ids start here in items.level.json
GAME_OBJECT_ID_BASE = 1000

# Default object transform
DEFAULT_ROTATION = [0, 0, 1, 0]
DEFAULT_SCALE = [1, 1, 1]

# Decal road rendering
DECAL_DETAIL = 4
DECAL_BREAK_ANGLE = 3.0
DECAL_TEXTURE_LENGTH = 5.0

# Preview image
PREVIEW_SIZE = 512

# File names
INFO_FILE = "info.json"
MAIN_LEVEL_FILE = "main.level.json"
ITEMS_LEVEL_FILE = "items.level.json"
ROAD_NODES_FILE = "road_nodes.json"
DECAL_ROAD_FILE = "decalRoad.json"
TERRAIN_FILE = "terrain.ter.json"
HEIGHTMAP_FILE = "terrain.png"
PREVIEW_FILE = "preview.jpg"

# Feature kind -> scene object class
OBJECT_CLASSES = {
    "building": "TSStatic",
    "tree": "Forest",
    "bus_stop": "TSStatic",
}
DEFAULT_OBJECT_CLASS = "TSStatic"


def object_class(kind: str) -> str:
    """Scene object class for a feature kind."""
    return OBJECT_CLASSES.get(kind, DEFAULT_OBJECT_CLASS)
