"""Main generation pipeline from OSM and elevation data to a BeamNG mod."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Callable, Any, Dict, Iterator, Mapping, Tuple, Union
import json
import shutil

import numpy as np
import structlog

from ..config import GenerationConfig, BoundingBox
from ..errors import (
    GenerationError,
    TileFetchFailure,
    RasterDecodeFailure,
    PackagingFailure,
)
from ..geo import (
    TileCoord,
    TileDownloader,
    OverpassClient,
    get_required_tiles,
    decode_terrarium,
    placeholder_tile,
    stitch_tiles,
)
from ..osm import parse_elements, count_by_type, build_graph
from ..beamng import ModPackage, pack_directory


logger = structlog.get_logger(__name__)

TileInput = Union[bytes, Exception, None]


@dataclass
class GenerationProgress:
    """A progress milestone: percentage 0-100 and a stage label."""
    percent: int
    stage: str


ProgressCallback = Callable[[GenerationProgress], None]


@dataclass
class GenerationResult:
    """Outputs of a successful run."""
    mod_dir: Path
    archive_path: Path
    placeholder_tiles: List[str] = field(default_factory=list)
    feature_count: int = 0
    segment_count: int = 0


class _ProgressReporter:
    """Forwards milestones to a callback, never letting the percentage go back."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._last = 0

    def __call__(self, percent: int, stage: str) -> None:
        percent = max(self._last, min(100, int(percent)))
        self._last = percent
        logger.debug("progress", percent=percent, stage=stage)
        if self._callback:
            self._callback(GenerationProgress(percent, stage))


class GenerationPipeline:
    """Main pipeline for converting OSM and elevation data to a BeamNG mod."""

    def __init__(
        self,
        config: GenerationConfig,
        tile_downloader: Optional[TileDownloader] = None,
        overpass_client: Optional[OverpassClient] = None
    ):
        """Initialize the pipeline.

        Args:
            config: Generation configuration
            tile_downloader: Elevation tile source (built from config if omitted)
            overpass_client: OSM source (built from config if omitted)
        """
        self.config = config
        config.validate()

        self._downloader = tile_downloader or TileDownloader(
            tile_url=config.tile_url,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
        )
        self._overpass = overpass_client or OverpassClient(
            url=config.overpass_url,
            user_agent=config.user_agent,
            timeout=config.request_timeout,
        )

    @property
    def bounds(self) -> BoundingBox:
        return self.config.bounds

    def required_tiles(self) -> List[TileCoord]:
        """Elevation tiles covering the configured bounds."""
        return get_required_tiles(self.bounds, self.config.zoom)

    def run(self, progress_callback: Optional[ProgressCallback] = None) -> GenerationResult:
        """Fetch all inputs and run the full generation.

        Args:
            progress_callback: Optional callback for progress milestones

        Returns:
            GenerationResult with the mod folder and archive paths
        """
        report = _ProgressReporter(progress_callback)
        report(0, "Initializing")

        with self._removing_outputs_on_failure():
            tiles = self.required_tiles()
            report(10, f"Fetching {len(tiles)} elevation tiles")
            tile_data = self._downloader.fetch_region(tiles, self.config.max_concurrent)

            report(30, "Fetching OpenStreetMap data")
            osm_payload = self._overpass.fetch(self.bounds)

        return self._generate(osm_payload, tile_data, report)

    def run_from_inputs(
        self,
        osm_payload: Any,
        tile_data: Mapping[TileCoord, TileInput],
        progress_callback: Optional[ProgressCallback] = None
    ) -> GenerationResult:
        """Run generation on already-fetched inputs.

        Args:
            osm_payload: Decoded Overpass JSON document or element list
            tile_data: Raw bytes per tile; an exception or None marks a failed fetch
            progress_callback: Optional callback for progress milestones

        Returns:
            GenerationResult with the mod folder and archive paths
        """
        report = _ProgressReporter(progress_callback)
        report(0, "Initializing")
        return self._generate(osm_payload, tile_data, report)

    def _build_heightmap(
        self,
        tile_data: Mapping[TileCoord, TileInput]
    ) -> Tuple[np.ndarray, List[str]]:
        """Decode every tile, substitute failures and stitch.

        Returns:
            Tuple of (heightmap, placeholder tile paths)
        """
        if not tile_data:
            raise TileFetchFailure("No elevation tiles to process")

        decoded: Dict[TileCoord, np.ndarray] = {}
        failed: List[TileCoord] = []

        for tile in sorted(tile_data):
            result = tile_data[tile]
            try:
                if isinstance(result, GenerationError):
                    raise result
                if isinstance(result, Exception):
                    raise TileFetchFailure(f"Tile {tile.path}: {result}", tile=tile) from result
                if result is None:
                    raise TileFetchFailure(f"Tile {tile.path} was not fetched", tile=tile)
                decoded[tile] = decode_terrarium(result)
            except (TileFetchFailure, RasterDecodeFailure) as e:
                if not self.config.placeholder_tiles:
                    raise
                logger.warning("tile_unusable", tile=tile.path, stage=e.stage, error=e.message)
                failed.append(tile)

        if not decoded:
            raise TileFetchFailure(
                f"No usable heightmap data: all {len(tile_data)} tiles failed"
            )

        shape = next(iter(decoded.values())).shape
        for tile in failed:
            decoded[tile] = placeholder_tile(shape)
            logger.warning("placeholder_substituted", tile=tile.path)

        try:
            heightmap = stitch_tiles(decoded)
        except ValueError as e:
            raise RasterDecodeFailure(f"Cannot stitch tiles: {e}", stage="stitch") from e

        return heightmap, [tile.path for tile in failed]

    def _remove_outputs(self) -> None:
        shutil.rmtree(self.config.mod_dir, ignore_errors=True)
        self.config.archive_path.unlink(missing_ok=True)
        self.config.raw_osm_path.unlink(missing_ok=True)

    @contextmanager
    def _removing_outputs_on_failure(self) -> Iterator[None]:
        """Remove the mod folder, archive and raw payload if the block raises."""
        try:
            yield
        except GenerationError as e:
            logger.error("generation_failed", stage=e.stage, error=e.message)
            self._remove_outputs()
            raise
        except BaseException:
            self._remove_outputs()
            raise

    def _generate(
        self,
        osm_payload: Any,
        tile_data: Mapping[TileCoord, TileInput],
        report: _ProgressReporter
    ) -> GenerationResult:
        config = self.config
        output_dir = Path(config.output_dir)

        with self._removing_outputs_on_failure():
            report(50, "Processing terrain heightmap")
            heightmap, placeholders = self._build_heightmap(tile_data)

            elements = parse_elements(osm_payload)
            logger.info("elements_parsed", **count_by_type(elements))
            report(60, f"Parsed {len(elements)} OpenStreetMap elements")

            graph = build_graph(elements, self.bounds)
            report(
                70,
                f"Converted {len(graph.features)} objects and "
                f"{len(graph.road_network.segments)} road segments",
            )

            report(85, "Generating BeamNG map files")
            # Every run is a full rebuild
            self._remove_outputs()
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
                if config.keep_raw:
                    with open(config.raw_osm_path, "w", encoding="utf-8") as f:
                        json.dump(osm_payload, f, indent=2)
                package = ModPackage.from_graph(
                    config.mod_name,
                    heightmap,
                    graph,
                    placeholder_tiles=placeholders,
                    assets_dir=config.assets_dir,
                )
                mod_dir = package.save(output_dir)
            except OSError as e:
                raise PackagingFailure(f"Failed to write mod files: {e}", stage="write") from e

            report(95, "Packaging mod")
            archive_path = pack_directory(mod_dir, config.archive_path)

        report(100, "Complete")
        return GenerationResult(
            mod_dir=mod_dir,
            archive_path=archive_path,
            placeholder_tiles=placeholders,
            feature_count=len(graph.features),
            segment_count=len(graph.road_network.segments),
        )


def generate_map(
    bounds: BoundingBox,
    output_dir: Path,
    mod_name: str = "generated_map",
    progress_callback: Optional[ProgressCallback] = None,
    **kwargs
) -> GenerationResult:
    """Convenience function to generate a map mod for a region.

    Args:
        bounds: Geographic bounding box
        output_dir: Output directory
        mod_name: Mod folder and level name
        progress_callback: Optional progress callback
        **kwargs: Additional GenerationConfig options

    Returns:
        GenerationResult
    """
    config = GenerationConfig(
        bounds=bounds,
        mod_name=mod_name,
        output_dir=output_dir,
        **kwargs
    )

    pipeline = GenerationPipeline(config)
    return pipeline.run(progress_callback)
