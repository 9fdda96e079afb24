"""JSON descriptors of a BeamNG level mod.

Level structure:
{mod_name}/
    info.json                       # Mod metadata
    levels/{mod_name}/
        main.level.json             # Level info, spawn point, sun
        items.level.json            # Scene objects for features
        road_nodes.json             # Road graph
        decalRoad.json              # Renderable road decals
        preview.jpg
        art/terrains/
            terrain.ter.json        # Terrain descriptor
            terrain.png             # 8-bit heightmap
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..geo.coordinates import TERRAIN_SPAN
from ..osm.graph import Feature, RoadNetwork, road_material
from .constants import (
    MOD_VERSION,
    GAME_VERSION,
    MOD_TYPE,
    AUTHOR,
    GAME_OBJECT_ID_BASE,
    DEFAULT_ROTATION,
    DEFAULT_SCALE,
    DECAL_DETAIL,
    DECAL_BREAK_ANGLE,
    DECAL_TEXTURE_LENGTH,
    TERRAIN_SIZE,
    SQUARE_SIZE,
    HEIGHT_SCALE,
    HEIGHTMAP_FILE,
    PREVIEW_FILE,
    object_class,
)


@dataclass
class ModInfo:
    """Mod metadata matching info.json."""
    mod_name: str
    version: str = MOD_VERSION
    author: str = AUTHOR
    game_version: str = GAME_VERSION
    # Tiles substituted with zero elevation, as "z/x/y"
    placeholder_tiles: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": f"Generated Map - {self.mod_name}",
            "version": self.version,
            "author": self.author,
            "description": (
                "Automatically generated map from real-world data using "
                "OpenStreetMap and AWS Terrain Tiles"
            ),
            "gameVersion": self.game_version,
            "modType": MOD_TYPE,
            "placeholderTiles": list(self.placeholder_tiles),
        }


@dataclass
class SunConfig:
    """Sun settings for main.level.json."""
    azimuth: float = 0.0
    elevation: float = 45.0
    shadow_distance: float = 1000.0
    shadow_softness: float = 0.15


@dataclass
class MainLevel:
    """Level descriptor matching main.level.json."""
    mod_name: str
    biome: str = "Urban"
    spawn_height: float = 105.0
    preview_height: float = 100.0
    sun: SunConfig = field(default_factory=SunConfig)

    def to_dict(self) -> Dict[str, Any]:
        center = TERRAIN_SPAN / 2
        return {
            "main": {
                "levelName": f"Generated - {self.mod_name}",
                "title": "Generated Map",
                "description": "Map generated from real-world OpenStreetMap data",
                "authors": AUTHOR,
                "biome": self.biome,
                "previews": [PREVIEW_FILE],
                "previewPosition": {
                    "pos": [center, center, self.preview_height],
                    "rot": DEFAULT_ROTATION,
                },
            },
            "spawn": {
                "defaultSpawnPoint": "spawn_0",
                "spawnPoints": [
                    {
                        "objectname": "spawn_0",
                        "pos": [center, center, self.spawn_height],
                        "rot": DEFAULT_ROTATION,
                        "rotationMatrix": [[1, 0, 0], [0, 1, 0], [0, 0, 1]],
                    }
                ],
            },
            "sun": {
                "azimuth": self.sun.azimuth,
                "elevation": self.sun.elevation,
                "shadowDistance": self.sun.shadow_distance,
                "shadowSoftness": self.sun.shadow_softness,
            },
        }


def _vec(position: Tuple[float, float, float]) -> List[float]:
    return [float(position[0]), float(position[1]), float(position[2])]


def items_level(features: List[Feature]) -> Dict[str, Any]:
    """Scene objects for items.level.json, one per feature.

    ``persistentId`` numbers features per kind (``tree_0``, ``tree_1``,
    ``building_0`` ...) in feature order.
    """
    per_kind: Dict[str, int] = {}
    objects = []
    for i, feature in enumerate(features):
        kind = feature.kind.value
        seq = per_kind.get(kind, 0)
        per_kind[kind] = seq + 1
        objects.append({
            "class": object_class(kind),
            "persistentId": f"{kind}_{seq}",
            "position": _vec(feature.position),
            "rotation": list(DEFAULT_ROTATION),
            "scale": list(DEFAULT_SCALE),
            "__gameObjectId": GAME_OBJECT_ID_BASE + i,
        })
    return {"objects": objects}


def road_nodes(network: RoadNetwork) -> Dict[str, Any]:
    """Road graph for road_nodes.json."""
    return {
        "nodes": [
            {
                "id": node.id,
                "position": _vec(node.position),
                "width": node.width,
                "roadType": node.road_class,
            }
            for node in network.nodes
        ],
        "segments": [
            {
                "id": seg.id,
                "startNode": seg.start_node_id,
                "endNode": seg.end_node_id,
                "width": seg.width,
                "lanes": seg.lane_count,
                "roadType": seg.road_class,
                "oneWay": seg.one_way,
            }
            for seg in network.segments
        ],
    }


def _decal_node(position: Tuple[float, float, float], width: float) -> Dict[str, Any]:
    return {
        "pos": _vec(position),
        "width": width,
        "widthLeft": width / 2.0,
        "widthRight": width / 2.0,
    }


def decal_roads(network: RoadNetwork) -> Dict[str, Any]:
    """One DecalRoad per segment for decalRoad.json.

    Segments whose endpoints are not in the network are dropped.
    """
    nodes = network.node_index()
    roads = []
    for seg in network.segments:
        start = nodes.get(seg.start_node_id)
        end = nodes.get(seg.end_node_id)
        if start is None or end is None:
            continue
        roads.append({
            "class": "DecalRoad",
            "persistentId": seg.id,
            "position": _vec(start.position),
            "detail": DECAL_DETAIL,
            "breakAngle": DECAL_BREAK_ANGLE,
            "textureLength": DECAL_TEXTURE_LENGTH,
            "Material": road_material(seg.road_class),
            "nodes": [
                _decal_node(start.position, start.width),
                _decal_node(end.position, end.width),
            ],
        })
    return {"decalRoads": roads}


def terrain_descriptor(heightmap_shape: Tuple[int, int]) -> Dict[str, Any]:
    """Terrain settings for terrain.ter.json."""
    rows, cols = heightmap_shape
    return {
        "terrainSize": TERRAIN_SIZE,
        "squareSize": SQUARE_SIZE,
        "heightScale": HEIGHT_SCALE,
        "heightMap": HEIGHTMAP_FILE,
        "heightMapSize": [int(cols), int(rows)],
    }
