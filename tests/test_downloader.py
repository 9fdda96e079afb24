"""Tests for the tile and Overpass clients using mocked HTTP transports."""

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from geobeam.errors import ElementFetchFailure, TileFetchFailure
from geobeam.geo import OverpassClient, TileCoord, TileDownloader


TILE_URL = "https://tiles.test/terrarium/{z}/{x}/{y}.png"


def tile_transport(responses):
    """Serve tile bytes keyed by "z/x/y"; unknown tiles get a 404."""
    def handler(request: httpx.Request) -> httpx.Response:
        key = request.url.path.removeprefix("/terrarium/").removesuffix(".png")
        if key not in responses:
            return httpx.Response(404)
        body = responses[key]
        if isinstance(body, Exception):
            raise body
        return httpx.Response(200, content=body)

    return httpx.MockTransport(handler)


class TestTileDownloader:

    def test_url_template(self):
        downloader = TileDownloader(tile_url=TILE_URL)
        assert downloader.tile_url_for(TileCoord(12, 3, 4)) == "https://tiles.test/terrarium/12/3/4.png"

    def test_fetch_tile(self):
        downloader = TileDownloader(
            tile_url=TILE_URL, transport=tile_transport({"12/3/4": b"tile-bytes"})
        )
        data = asyncio.run(downloader.fetch_tile(TileCoord(12, 3, 4)))
        assert data == b"tile-bytes"

    def test_fetch_tile_http_error(self):
        downloader = TileDownloader(tile_url=TILE_URL, transport=tile_transport({}))
        with pytest.raises(TileFetchFailure) as exc_info:
            asyncio.run(downloader.fetch_tile(TileCoord(12, 3, 4)))
        assert "HTTP 404" in exc_info.value.message
        assert exc_info.value.tile == TileCoord(12, 3, 4)
        assert exc_info.value.stage == "fetch_tiles"

    def test_fetch_tile_transport_error(self):
        transport = tile_transport({"12/3/4": httpx.ConnectError("refused")})
        downloader = TileDownloader(tile_url=TILE_URL, transport=transport)
        with pytest.raises(TileFetchFailure):
            asyncio.run(downloader.fetch_tile(TileCoord(12, 3, 4)))

    def test_user_agent_sent(self):
        seen = []

        def handler(request):
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, content=b"x")

        downloader = TileDownloader(
            tile_url=TILE_URL, user_agent="geobeam-test/1.0", transport=httpx.MockTransport(handler)
        )
        asyncio.run(downloader.fetch_tile(TileCoord(1, 0, 0)))
        assert seen == ["geobeam-test/1.0"]

    def test_fetch_region_keeps_failures(self):
        tiles = [TileCoord(12, 3, 4), TileCoord(12, 4, 4), TileCoord(12, 5, 4)]
        transport = tile_transport({"12/3/4": b"a", "12/5/4": b"c"})
        downloader = TileDownloader(tile_url=TILE_URL, transport=transport)

        results = downloader.fetch_region(tiles, max_concurrent=2)

        assert set(results) == set(tiles)
        assert results[TileCoord(12, 3, 4)] == b"a"
        assert results[TileCoord(12, 5, 4)] == b"c"
        assert isinstance(results[TileCoord(12, 4, 4)], TileFetchFailure)

    def test_fetch_region_empty(self):
        downloader = TileDownloader(tile_url=TILE_URL, transport=tile_transport({}))
        assert downloader.fetch_region([]) == {}


class TestOverpassClient:

    def test_query(self, city_bbox):
        query = OverpassClient(timeout=90).build_query(city_bbox)
        bbox = "43.73,7.415,43.745,7.43"

        assert query.startswith("[out:json][timeout:90];")
        assert f'way["building"]({bbox});' in query
        assert f'way["highway"]({bbox});' in query
        assert f'node["natural"="tree"]({bbox});' in query
        assert f'node["highway"="bus_stop"]({bbox});' in query
        assert query.rstrip().endswith("out skel qt;")

    def test_fetch(self, city_bbox, scenario_payload):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json=scenario_payload)

        client = OverpassClient(url="https://overpass.test/api/interpreter",
                                transport=httpx.MockTransport(handler))
        payload = client.fetch(city_bbox)

        assert payload == scenario_payload
        assert captured["method"] == "POST"
        assert captured["form"]["data"][0] == client.build_query(city_bbox)

    @pytest.mark.parametrize("response", [
        httpx.Response(429, text="rate limited"),
        httpx.Response(504),
        httpx.Response(200, text="<html>error</html>"),
        httpx.Response(200, json=[1, 2, 3]),
    ])
    def test_fetch_failures(self, city_bbox, response):
        client = OverpassClient(transport=httpx.MockTransport(lambda request: response))
        with pytest.raises(ElementFetchFailure) as exc_info:
            client.fetch(city_bbox)
        assert exc_info.value.stage == "fetch_osm"

    def test_transport_error(self, city_bbox):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = OverpassClient(transport=httpx.MockTransport(handler))
        with pytest.raises(ElementFetchFailure):
            client.fetch(city_bbox)

    def test_payload_is_json_serializable(self, city_bbox, scenario_payload):
        client = OverpassClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=scenario_payload))
        )
        assert json.loads(json.dumps(client.fetch(city_bbox))) == scenario_payload
