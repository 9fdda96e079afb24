"""Configuration classes for GeoBeam map generation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any
import json


DEFAULT_TILE_URL = "https://s3.amazonaws.com/elevation-tiles-prod/terrarium/{z}/{x}/{y}.png"
DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_USER_AGENT = "GeoBeam-Terrain-Generator/0.1"


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box in WGS84 degrees."""
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def validate(self) -> None:
        """Validate the bounding box."""
        if not (-90 <= self.min_lat <= 90):
            raise ValueError(f"Invalid min_lat: {self.min_lat}")
        if not (-90 <= self.max_lat <= 90):
            raise ValueError(f"Invalid max_lat: {self.max_lat}")
        if not (-180 <= self.min_lon <= 180):
            raise ValueError(f"Invalid min_lon: {self.min_lon}")
        if not (-180 <= self.max_lon <= 180):
            raise ValueError(f"Invalid max_lon: {self.max_lon}")
        if self.min_lat >= self.max_lat:
            raise ValueError("min_lat must be less than max_lat")
        if self.min_lon >= self.max_lon:
            raise ValueError("min_lon must be less than max_lon")

    @property
    def center_lat(self) -> float:
        """Get center latitude."""
        return (self.min_lat + self.max_lat) / 2

    @property
    def center_lon(self) -> float:
        """Get center longitude."""
        return (self.min_lon + self.max_lon) / 2

    @property
    def width_degrees(self) -> float:
        """Get width in degrees longitude."""
        return self.max_lon - self.min_lon

    @property
    def height_degrees(self) -> float:
        """Get height in degrees latitude."""
        return self.max_lat - self.min_lat

    def to_overpass(self) -> str:
        """Format as an Overpass ``(south,west,north,east)`` filter body."""
        return f"{self.min_lat},{self.min_lon},{self.max_lat},{self.max_lon}"


@dataclass
class GenerationConfig:
    """Configuration for a single map generation run."""
    # Geographic bounds
    bounds: BoundingBox

    # Mod folder and level name
    mod_name: str = "generated_map"

    # Output directory (mod folder and archive are written here)
    output_dir: Path = field(default_factory=lambda: Path("output"))

    # Elevation tile zoom level
    zoom: int = 12

    # Substitute zero-elevation tiles for failed fetches/decodes instead of aborting
    placeholder_tiles: bool = True

    # Concurrent tile downloads
    max_concurrent: int = 4

    # Opaque placeholder textures/models copied into the level
    assets_dir: Optional[Path] = None

    # Keep the raw Overpass response next to the mod folder
    keep_raw: bool = False

    # Remote endpoints
    tile_url: str = DEFAULT_TILE_URL
    overpass_url: str = DEFAULT_OVERPASS_URL
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 180.0

    def validate(self) -> None:
        """Validate the configuration."""
        self.bounds.validate()
        if not self.mod_name or any(c in self.mod_name for c in "/\\") or self.mod_name in (".", ".."):
            raise ValueError(f"Invalid mod_name: {self.mod_name!r}")
        if not (0 <= self.zoom <= 15):
            raise ValueError(f"zoom must be 0-15: {self.zoom}")
        if self.max_concurrent <= 0:
            raise ValueError(f"max_concurrent must be positive: {self.max_concurrent}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive: {self.request_timeout}")
        if self.assets_dir is not None and not Path(self.assets_dir).is_dir():
            raise ValueError(f"assets_dir is not a directory: {self.assets_dir}")

    @property
    def mod_dir(self) -> Path:
        """Root of the mod folder."""
        return Path(self.output_dir) / self.mod_name

    @property
    def archive_path(self) -> Path:
        """Path of the packaged zip archive."""
        return Path(self.output_dir) / f"{self.mod_name}.zip"

    @property
    def raw_osm_path(self) -> Path:
        """Path of the raw Overpass response written when keep_raw is set."""
        return Path(self.output_dir) / "osm_overpass.json"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "bounds": {
                "min_lat": self.bounds.min_lat,
                "min_lon": self.bounds.min_lon,
                "max_lat": self.bounds.max_lat,
                "max_lon": self.bounds.max_lon,
            },
            "mod_name": self.mod_name,
            "output_dir": str(self.output_dir),
            "zoom": self.zoom,
            "placeholder_tiles": self.placeholder_tiles,
            "max_concurrent": self.max_concurrent,
            "assets_dir": str(self.assets_dir) if self.assets_dir else None,
            "keep_raw": self.keep_raw,
            "tile_url": self.tile_url,
            "overpass_url": self.overpass_url,
            "user_agent": self.user_agent,
            "request_timeout": self.request_timeout,
        }

    def save(self, filepath: Path) -> None:
        """Save configuration to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: Path) -> "GenerationConfig":
        """Load configuration from JSON file."""
        with open(filepath) as f:
            data = json.load(f)

        bounds = BoundingBox(
            min_lat=data["bounds"]["min_lat"],
            min_lon=data["bounds"]["min_lon"],
            max_lat=data["bounds"]["max_lat"],
            max_lon=data["bounds"]["max_lon"],
        )

        return cls(
            bounds=bounds,
            mod_name=data.get("mod_name", "generated_map"),
            output_dir=Path(data.get("output_dir", "output")),
            zoom=data.get("zoom", 12),
            placeholder_tiles=data.get("placeholder_tiles", True),
            max_concurrent=data.get("max_concurrent", 4),
            assets_dir=Path(data["assets_dir"]) if data.get("assets_dir") else None,
            keep_raw=data.get("keep_raw", False),
            tile_url=data.get("tile_url", DEFAULT_TILE_URL),
            overpass_url=data.get("overpass_url", DEFAULT_OVERPASS_URL),
            user_agent=data.get("user_agent", DEFAULT_USER_AGENT),
            request_timeout=data.get("request_timeout", 180.0),
        )


# Preset locations, sized for a single 2048-unit terrain
PRESET_LOCATIONS = {
    "monaco": BoundingBox(
        min_lat=43.7300,
        min_lon=7.4150,
        max_lat=43.7450,
        max_lon=7.4300,
    ),
    "nurburg": BoundingBox(
        min_lat=50.3300,
        min_lon=6.9350,
        max_lat=50.3450,
        max_lon=6.9550,
    ),
    "manhattan_midtown": BoundingBox(
        min_lat=40.7500,
        min_lon=-73.9900,
        max_lat=40.7600,
        max_lon=-73.9750,
    ),
    "san_francisco_lombard": BoundingBox(
        min_lat=37.7980,
        min_lon=-122.4240,
        max_lat=37.8060,
        max_lon=-122.4130,
    ),
    "tokyo_shibuya": BoundingBox(
        min_lat=35.6550,
        min_lon=139.6950,
        max_lat=35.6650,
        max_lon=139.7060,
    ),
}


def get_preset(name: str) -> Optional[BoundingBox]:
    """Get a preset bounding box by name."""
    return PRESET_LOCATIONS.get(name.lower().replace("-", "_").replace(" ", "_"))


def list_presets() -> list[str]:
    """Get list of available preset names."""
    return list(PRESET_LOCATIONS.keys())
