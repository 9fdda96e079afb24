"""Assembled BeamNG map mod and its on-disk layout."""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import structlog

from ..osm.graph import ElementGraph, Feature, RoadNetwork
from .constants import (
    INFO_FILE,
    MAIN_LEVEL_FILE,
    ITEMS_LEVEL_FILE,
    ROAD_NODES_FILE,
    DECAL_ROAD_FILE,
    TERRAIN_FILE,
    HEIGHTMAP_FILE,
    PREVIEW_FILE,
)
from .images import save_heightmap_png, save_preview
from .level import (
    ModInfo,
    MainLevel,
    items_level,
    road_nodes,
    decal_roads,
    terrain_descriptor,
)


logger = structlog.get_logger(__name__)


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(json.dumps(data, indent=2))
        f.write("\n")


class ModPackage:
    """A BeamNG level mod built from a heightmap, features and roads.

    Attributes:
        name: Mod folder and level name
        heightmap: 2D elevation array in meters
        features: Point features in local space
        road_network: Road nodes and segments
        placeholder_tiles: Tiles that were substituted with zero elevation
        assets_dir: Optional directory of opaque assets copied into the level
    """

    def __init__(
        self,
        name: str,
        heightmap: np.ndarray,
        features: List[Feature],
        road_network: RoadNetwork,
        placeholder_tiles: Optional[List[str]] = None,
        assets_dir: Optional[Path] = None
    ):
        self.name = name
        self.heightmap = heightmap
        self.features = features
        self.road_network = road_network
        self.placeholder_tiles = list(placeholder_tiles or [])
        self.assets_dir = Path(assets_dir) if assets_dir else None

    @classmethod
    def from_graph(
        cls,
        name: str,
        heightmap: np.ndarray,
        graph: ElementGraph,
        **kwargs
    ) -> "ModPackage":
        return cls(name, heightmap, graph.features, graph.road_network, **kwargs)

    def documents(self) -> Dict[str, Dict[str, Any]]:
        """All JSON documents keyed by their path relative to the mod folder."""
        level = f"levels/{self.name}"
        return {
            INFO_FILE: ModInfo(self.name, placeholder_tiles=self.placeholder_tiles).to_dict(),
            f"{level}/{MAIN_LEVEL_FILE}": MainLevel(self.name).to_dict(),
            f"{level}/{ITEMS_LEVEL_FILE}": items_level(self.features),
            f"{level}/{ROAD_NODES_FILE}": road_nodes(self.road_network),
            f"{level}/{DECAL_ROAD_FILE}": decal_roads(self.road_network),
            f"{level}/art/terrains/{TERRAIN_FILE}": terrain_descriptor(self.heightmap.shape),
        }

    def save(self, output_path: Path) -> Path:
        """Write the mod folder to disk.

        Args:
            output_path: Directory the mod folder is created in

        Returns:
            Path to the mod folder
        """
        mod_dir = Path(output_path) / self.name
        level_dir = mod_dir / "levels" / self.name
        terrains_dir = level_dir / "art" / "terrains"

        terrains_dir.mkdir(parents=True, exist_ok=True)

        if self.assets_dir is not None:
            shutil.copytree(self.assets_dir, level_dir, dirs_exist_ok=True)

        for relative, data in self.documents().items():
            _write_json(mod_dir / relative, data)

        save_heightmap_png(self.heightmap, terrains_dir / HEIGHTMAP_FILE)
        save_preview(level_dir / PREVIEW_FILE)

        logger.info(
            "mod_saved",
            path=str(mod_dir),
            features=len(self.features),
            road_segments=len(self.road_network.segments),
            heightmap=list(self.heightmap.shape),
        )
        return mod_dir
