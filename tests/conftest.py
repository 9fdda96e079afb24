"""
Pytest configuration and shared fixtures for GeoBeam tests.
"""

import struct
import zlib
from io import BytesIO

import numpy as np
import pytest

from geobeam.config import BoundingBox, GenerationConfig
from geobeam.geo import TileCoord, encode_terrarium


@pytest.fixture
def small_bbox():
    """The 0.01 degree box at the origin used by the end-to-end scenario."""
    return BoundingBox(min_lat=0.0, min_lon=0.0, max_lat=0.01, max_lon=0.01)


@pytest.fixture
def city_bbox():
    """A small real-world box (Monaco)."""
    return BoundingBox(min_lat=43.730, min_lon=7.415, max_lat=43.745, max_lon=7.430)


@pytest.fixture
def scenario_payload():
    """One residential way across the box plus a tree in the middle."""
    return {
        "version": 0.6,
        "elements": [
            {"type": "node", "id": 1, "lat": 0.0, "lon": 0.0},
            {"type": "node", "id": 2, "lat": 0.01, "lon": 0.01},
            {
                "type": "node", "id": 3, "lat": 0.005, "lon": 0.005,
                "tags": {"natural": "tree"},
            },
            {
                "type": "way", "id": 100, "nodes": [1, 2],
                "tags": {"highway": "residential", "lanes": "2"},
            },
        ],
    }


@pytest.fixture
def mixed_payload():
    """Buildings, bus stop, tree and several roads including a gap."""
    return {
        "elements": [
            {"type": "node", "id": 10, "lat": 0.001, "lon": 0.002},
            {"type": "node", "id": 11, "lat": 0.002, "lon": 0.002},
            {"type": "node", "id": 12, "lat": 0.002, "lon": 0.003},
            {"type": "node", "id": 20, "lat": 0.004, "lon": 0.004,
             "tags": {"highway": "bus_stop", "name": "Main St"}},
            {"type": "node", "id": 21, "lat": 0.006, "lon": 0.001,
             "tags": {"natural": "tree"}},
            {"type": "node", "id": 30, "lat": 0.0, "lon": 0.005},
            {"type": "node", "id": 31, "lat": 0.005, "lon": 0.005},
            {"type": "node", "id": 32, "lat": 0.01, "lon": 0.005},
            {"type": "way", "id": 200, "nodes": [10, 11, 12, 10],
             "tags": {"building": "yes"}},
            {"type": "way", "id": 201, "nodes": [30, 31, 32],
             "tags": {"highway": "primary", "lanes": "4", "oneway": "yes"}},
            {"type": "way", "id": 202, "nodes": [30, 999, 32],
             "tags": {"highway": "footway"}},
            {"type": "relation", "id": 300, "tags": {"type": "multipolygon", "building": "yes"}},
        ],
    }


@pytest.fixture
def terrarium_png():
    """Factory encoding a height array as Terrarium PNG bytes."""
    def _encode(heights: np.ndarray) -> bytes:
        buf = BytesIO()
        encode_terrarium(heights).save(buf, format="PNG")
        return buf.getvalue()

    return _encode


@pytest.fixture
def ramp_heights():
    """A 256x256 west-to-east ramp from 10 m to 110 m."""
    return np.tile(np.linspace(10.0, 110.0, 256, dtype=np.float32), (256, 1))


@pytest.fixture
def config_factory(tmp_path, small_bbox):
    """Factory for configs writing under tmp_path."""
    def _make(**kwargs) -> GenerationConfig:
        kwargs.setdefault("bounds", small_bbox)
        kwargs.setdefault("output_dir", tmp_path / "output")
        kwargs.setdefault("mod_name", "test_map")
        return GenerationConfig(**kwargs)

    return _make


@pytest.fixture
def single_tile():
    return TileCoord(12, 2048, 2047)


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))


@pytest.fixture
def oversized_png():
    """PNG bytes whose header declares a 20000x20000 RGB raster.

    Only the header is real; Pillow refuses the size before reading pixels.
    """
    header = struct.pack(">IIBBBBB", 20000, 20000, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b"\x00"))
        + _png_chunk(b"IEND", b"")
    )
