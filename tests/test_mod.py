"""Tests for writing the mod folder."""

import json

import numpy as np
import pytest
from PIL import Image

from geobeam.beamng import ModPackage
from geobeam.osm import build_graph, parse_elements


@pytest.fixture
def package(scenario_payload, small_bbox, ramp_heights):
    graph = build_graph(parse_elements(scenario_payload), small_bbox)
    return ModPackage.from_graph("test_map", ramp_heights, graph)


def _load(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class TestModPackage:

    def test_layout(self, package, tmp_path):
        mod_dir = package.save(tmp_path)
        level = mod_dir / "levels" / "test_map"

        assert mod_dir == tmp_path / "test_map"
        for relative in (
            "info.json",
            "levels/test_map/main.level.json",
            "levels/test_map/items.level.json",
            "levels/test_map/road_nodes.json",
            "levels/test_map/decalRoad.json",
            "levels/test_map/preview.jpg",
            "levels/test_map/art/terrains/terrain.ter.json",
            "levels/test_map/art/terrains/terrain.png",
        ):
            assert (mod_dir / relative).is_file(), relative

        assert (level / "art" / "terrains").is_dir()

    def test_documents_match_written_files(self, package, tmp_path):
        mod_dir = package.save(tmp_path)
        for relative, data in package.documents().items():
            assert _load(mod_dir / relative) == data

    def test_json_is_indented(self, package, tmp_path):
        mod_dir = package.save(tmp_path)
        text = (mod_dir / "info.json").read_text(encoding="utf-8")
        assert text.startswith("{\n  \"name\"")
        assert text.endswith("}\n")

    def test_contents(self, package, tmp_path):
        mod_dir = package.save(tmp_path)
        level = mod_dir / "levels" / "test_map"

        items = _load(level / "items.level.json")["objects"]
        assert len(items) == 1
        assert items[0]["class"] == "Forest"
        assert items[0]["position"] == pytest.approx([1024.0, 0.0, 1024.0])

        roads = _load(level / "road_nodes.json")
        assert len(roads["segments"]) == 1
        assert roads["segments"][0]["width"] == 6.0

        decals = _load(level / "decalRoad.json")["decalRoads"]
        assert len(decals) == 1
        assert decals[0]["Material"] == "road_asphalt_residential"

        info = _load(mod_dir / "info.json")
        assert info["placeholderTiles"] == []

    def test_heightmap_png(self, package, tmp_path):
        mod_dir = package.save(tmp_path)
        path = mod_dir / "levels" / "test_map" / "art" / "terrains" / "terrain.png"
        with Image.open(path) as image:
            pixels = np.asarray(image)
        assert pixels.shape == (256, 256)
        assert pixels.min() == 0
        assert pixels.max() == 255

    def test_preview_is_jpeg(self, package, tmp_path):
        mod_dir = package.save(tmp_path)
        with Image.open(mod_dir / "levels" / "test_map" / "preview.jpg") as image:
            assert image.format == "JPEG"
            assert image.size == (512, 512)

    def test_placeholder_tiles_in_info(self, scenario_payload, small_bbox, ramp_heights, tmp_path):
        graph = build_graph(parse_elements(scenario_payload), small_bbox)
        package = ModPackage.from_graph(
            "test_map", ramp_heights, graph, placeholder_tiles=["12/2048/2047"]
        )
        info = _load(package.save(tmp_path) / "info.json")
        assert info["placeholderTiles"] == ["12/2048/2047"]

    def test_assets_copied_into_level(self, package, tmp_path):
        assets = tmp_path / "assets"
        (assets / "art" / "shapes").mkdir(parents=True)
        (assets / "art" / "shapes" / "tree.dae").write_bytes(b"<collada/>")
        package.assets_dir = assets

        mod_dir = package.save(tmp_path / "out")
        copied = mod_dir / "levels" / "test_map" / "art" / "shapes" / "tree.dae"
        assert copied.read_bytes() == b"<collada/>"
        # Generated terrain still written next to the assets
        assert (mod_dir / "levels" / "test_map" / "art" / "terrains" / "terrain.png").is_file()

    def test_save_overwrites(self, package, tmp_path):
        package.save(tmp_path)
        mod_dir = package.save(tmp_path)
        assert (mod_dir / "info.json").is_file()
