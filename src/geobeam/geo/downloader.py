"""Remote data sources: Terrarium elevation tiles and the Overpass API.

Elevation tiles come from the AWS open terrain tiles bucket:
- https://registry.opendata.aws/terrain-tiles/

OpenStreetMap elements come from an Overpass interpreter endpoint:
- https://overpass-api.de/api/interpreter

Both clients accept an optional ``httpx`` transport so they can be driven
without network access.
"""

import asyncio
from typing import Optional, List, Dict, Union, Any

import httpx
import structlog

from ..config import BoundingBox, DEFAULT_TILE_URL, DEFAULT_OVERPASS_URL, DEFAULT_USER_AGENT
from ..errors import TileFetchFailure, ElementFetchFailure
from .coordinates import TileCoord


logger = structlog.get_logger(__name__)

TileResult = Union[bytes, TileFetchFailure]


class TileDownloader:
    """Downloads Terrarium elevation tiles."""

    def __init__(
        self,
        tile_url: str = DEFAULT_TILE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the downloader.

        Args:
            tile_url: URL template with {z}, {x} and {y} placeholders
            user_agent: User-Agent header sent with each request
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.tile_url = tile_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def tile_url_for(self, tile: TileCoord) -> str:
        """Build the download URL for a tile."""
        return self.tile_url.format(z=tile.zoom, x=tile.x, y=tile.y)

    async def fetch_tile(
        self,
        tile: TileCoord,
        client: Optional[httpx.AsyncClient] = None
    ) -> bytes:
        """Download a single tile.

        Args:
            tile: Tile coordinate
            client: Shared client; a new one is opened when omitted

        Returns:
            Raw tile bytes

        Raises:
            TileFetchFailure: On HTTP error status or transport error
        """
        if client is None:
            async with self._client() as own_client:
                return await self.fetch_tile(tile, own_client)

        url = self.tile_url_for(tile)
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise TileFetchFailure(f"Error downloading tile {tile.path}: {e}", tile=tile) from e

        if response.status_code != 200:
            raise TileFetchFailure(
                f"Failed to download tile {tile.path}: HTTP {response.status_code}",
                tile=tile,
            )

        logger.debug("tile_downloaded", tile=tile.path, size=len(response.content))
        return response.content

    async def fetch_tiles(
        self,
        tiles: List[TileCoord],
        max_concurrent: int = 4
    ) -> Dict[TileCoord, TileResult]:
        """Download multiple tiles concurrently.

        Per-tile failures are returned in place of the bytes so the caller
        can decide whether to substitute or abort.

        Args:
            tiles: Tiles to download
            max_concurrent: Maximum concurrent downloads

        Returns:
            Dict mapping each tile to its bytes or its TileFetchFailure
        """
        semaphore = asyncio.Semaphore(max_concurrent)

        async with self._client() as client:
            async def download_with_semaphore(tile: TileCoord) -> tuple[TileCoord, TileResult]:
                async with semaphore:
                    try:
                        return (tile, await self.fetch_tile(tile, client))
                    except TileFetchFailure as e:
                        logger.warning("tile_fetch_failed", tile=tile.path, error=e.message)
                        return (tile, e)

            results = await asyncio.gather(*(download_with_semaphore(t) for t in tiles))

        return dict(results)

    def fetch_region(
        self,
        tiles: List[TileCoord],
        max_concurrent: int = 4
    ) -> Dict[TileCoord, TileResult]:
        """Download tiles (synchronous wrapper)."""
        return asyncio.run(self.fetch_tiles(tiles, max_concurrent))


class OverpassClient:
    """Fetches tagged OpenStreetMap elements for a bounding box."""

    def __init__(
        self,
        url: str = DEFAULT_OVERPASS_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 180.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    def build_query(self, bbox: BoundingBox) -> str:
        """Build the Overpass QL query for a bounding box.

        Ways are returned with their member nodes (``>;``) so every node
        reference can be resolved to a position.
        """
        b = bbox.to_overpass()
        server_timeout = int(self.timeout)
        return (
            f"[out:json][timeout:{server_timeout}];\n"
            "(\n"
            f'  way["building"]({b});\n'
            f'  way["highway"]({b});\n'
            f'  node["natural"="tree"]({b});\n'
            f'  way["natural"="tree_row"]({b});\n'
            f'  node["highway"="bus_stop"]({b});\n'
            f'  way["amenity"]({b});\n'
            ");\n"
            "out body;\n"
            ">;\n"
            "out skel qt;"
        )

    async def fetch_async(self, bbox: BoundingBox) -> Dict[str, Any]:
        """Run the query and return the decoded JSON document.

        Raises:
            ElementFetchFailure: On HTTP error, transport error or invalid JSON
        """
        query = self.build_query(bbox)
        async with httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(self.url, data={"data": query})
            except httpx.HTTPError as e:
                raise ElementFetchFailure(f"Failed to fetch OSM data: {e}") from e

        if response.status_code != 200:
            raise ElementFetchFailure(f"Failed to fetch OSM data: HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ElementFetchFailure(f"Overpass returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise ElementFetchFailure("Overpass returned a non-object JSON document")

        logger.info("osm_fetched", elements=len(payload.get("elements", [])))
        return payload

    def fetch(self, bbox: BoundingBox) -> Dict[str, Any]:
        """Run the query (synchronous wrapper)."""
        return asyncio.run(self.fetch_async(bbox))
