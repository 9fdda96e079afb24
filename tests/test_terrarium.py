"""Tests for Terrarium decoding, placeholder tiles and stitching."""

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from geobeam.errors import RasterDecodeFailure
from geobeam.geo import TileCoord, decode_terrarium, encode_terrarium, placeholder_tile, stitch_tiles


def _png(pixels: np.ndarray) -> bytes:
    buf = BytesIO()
    Image.fromarray(pixels.astype(np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


class TestDecode:
    """Decoding Terrarium-packed rasters."""

    def test_known_pixels(self):
        pixels = np.array([[[128, 0, 0], [128, 100, 128]],
                           [[127, 255, 0], [0, 0, 0]]])
        heights = decode_terrarium(_png(pixels))

        assert heights.shape == (2, 2)
        assert heights[0, 0] == pytest.approx(0.0)
        assert heights[0, 1] == pytest.approx(100.5)
        assert heights[1, 0] == pytest.approx(-1.0)
        assert heights[1, 1] == pytest.approx(-32768.0)

    def test_roundtrip(self, terrarium_png):
        rng = np.random.default_rng(7)
        original = rng.uniform(-400.0, 8800.0, size=(64, 48)).astype(np.float32)

        decoded = decode_terrarium(terrarium_png(original))

        assert decoded.shape == original.shape
        np.testing.assert_allclose(decoded, original, atol=1 / 256 + 1e-3)

    def test_dimensions_follow_image(self, terrarium_png):
        decoded = decode_terrarium(terrarium_png(np.zeros((30, 70))))
        assert decoded.shape == (30, 70)

    def test_decoded_heightmap_is_read_only(self, terrarium_png):
        decoded = decode_terrarium(terrarium_png(np.zeros((4, 4))))
        with pytest.raises(ValueError):
            decoded[0, 0] = 1.0

    def test_grayscale_image_is_converted(self):
        buf = BytesIO()
        Image.new("L", (3, 3), 128).save(buf, format="PNG")
        heights = decode_terrarium(buf.getvalue())
        # L -> RGB replicates the value into all channels
        assert heights[0, 0] == pytest.approx(128 * 256 + 128 + 0.5 - 32768)

    @pytest.mark.parametrize("data", [b"", b"PNG_PLACEHOLDER", bytes(256 * 256 * 3)])
    def test_malformed_bytes(self, data):
        with pytest.raises(RasterDecodeFailure) as exc_info:
            decode_terrarium(data)
        assert exc_info.value.stage == "decode"

    def test_oversized_raster(self, oversized_png):
        with pytest.raises(RasterDecodeFailure) as exc_info:
            decode_terrarium(oversized_png)
        assert exc_info.value.stage == "decode"
        assert isinstance(exc_info.value.__cause__, Image.DecompressionBombError)


class TestPlaceholder:

    def test_zero_filled(self):
        tile = placeholder_tile()
        assert tile.shape == (256, 256)
        assert not tile.any()

    def test_custom_shape(self):
        assert placeholder_tile((16, 32)).shape == (16, 32)


class TestStitch:
    """Combining tiles into one heightmap."""

    def test_grid_layout(self):
        tiles = {
            TileCoord(10, 5, 7): np.full((2, 2), 1.0),
            TileCoord(10, 6, 7): np.full((2, 2), 2.0),
            TileCoord(10, 5, 8): np.full((2, 2), 3.0),
            TileCoord(10, 6, 8): np.full((2, 2), 4.0),
        }
        stitched = stitch_tiles(tiles)

        assert stitched.shape == (4, 4)
        # North row first, west column first
        assert stitched[0, 0] == 1.0
        assert stitched[0, 3] == 2.0
        assert stitched[3, 0] == 3.0
        assert stitched[3, 3] == 4.0

    def test_single_tile(self):
        tile = np.arange(6, dtype=np.float32).reshape(2, 3)
        stitched = stitch_tiles({TileCoord(3, 1, 1): tile})
        np.testing.assert_array_equal(stitched, tile)

    def test_missing_tile_rejected(self):
        tiles = {
            TileCoord(10, 5, 7): np.zeros((2, 2)),
            TileCoord(10, 6, 7): np.zeros((2, 2)),
            TileCoord(10, 5, 8): np.zeros((2, 2)),
        }
        with pytest.raises(ValueError):
            stitch_tiles(tiles)

    def test_gap_rejected(self):
        tiles = {
            TileCoord(10, 5, 7): np.zeros((2, 2)),
            TileCoord(10, 7, 7): np.zeros((2, 2)),
        }
        with pytest.raises(ValueError):
            stitch_tiles(tiles)

    def test_mismatched_shapes_rejected(self):
        tiles = {
            TileCoord(10, 5, 7): np.zeros((2, 2)),
            TileCoord(10, 6, 7): np.zeros((3, 3)),
        }
        with pytest.raises(ValueError):
            stitch_tiles(tiles)

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            stitch_tiles({})
