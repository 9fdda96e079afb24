"""Tagged OpenStreetMap elements as returned by Overpass ``[out:json]``.

Each element looks like::

    {"type": "way", "id": 42, "nodes": [1, 2, 3], "tags": {"highway": "residential"}}
    {"type": "node", "id": 1, "lat": 48.1, "lon": 11.5}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..errors import ElementParseFailure


class ElementType(Enum):
    """OSM element discriminant."""
    NODE = "node"
    WAY = "way"
    RELATION = "relation"


@dataclass(frozen=True)
class GeoElement:
    """A single tagged OSM element.

    Attributes:
        type: Node, way or relation
        id: OSM id
        lat: Latitude (nodes only, may be missing)
        lon: Longitude (nodes only, may be missing)
        nodes: Referenced node ids in order (ways)
        tags: Tag mapping
    """
    type: ElementType
    id: int
    lat: Optional[float] = None
    lon: Optional[float] = None
    nodes: Tuple[int, ...] = ()
    tags: Dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        """(lat, lon) if both are present."""
        if self.lat is None or self.lon is None:
            return None
        return (self.lat, self.lon)

    @property
    def is_node(self) -> bool:
        return self.type is ElementType.NODE

    @property
    def is_way(self) -> bool:
        return self.type is ElementType.WAY


def _require_int(value: Any, what: str) -> int:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise ElementParseFailure(f"{what} must be an integer, got {value!r}")
    return value


def _optional_float(value: Any, what: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ElementParseFailure(f"{what} must be a number, got {value!r}")
    return float(value)


def parse_element(raw: Any) -> GeoElement:
    """Parse one Overpass element dictionary.

    Raises:
        ElementParseFailure: If required fields are missing or mistyped
    """
    if not isinstance(raw, dict):
        raise ElementParseFailure(f"Element must be an object, got {type(raw).__name__}")

    try:
        element_type = ElementType(raw.get("type"))
    except ValueError:
        raise ElementParseFailure(f"Unknown element type: {raw.get('type')!r}") from None

    element_id = _require_int(raw.get("id"), "Element id")
    where = f"{element_type.value} {element_id}"

    nodes = raw.get("nodes") or []
    if not isinstance(nodes, list):
        raise ElementParseFailure(f"{where}: nodes must be a list")
    node_ids = tuple(_require_int(n, f"{where}: node reference") for n in nodes)

    tags = raw.get("tags") or {}
    if not isinstance(tags, dict):
        raise ElementParseFailure(f"{where}: tags must be an object")

    return GeoElement(
        type=element_type,
        id=element_id,
        lat=_optional_float(raw.get("lat"), f"{where}: lat"),
        lon=_optional_float(raw.get("lon"), f"{where}: lon"),
        nodes=node_ids,
        tags={str(k): str(v) for k, v in tags.items()},
    )


def parse_elements(payload: Union[Dict[str, Any], List[Any]]) -> List[GeoElement]:
    """Parse an Overpass JSON document (or its bare ``elements`` list).

    Args:
        payload: Decoded JSON

    Returns:
        Elements in input order

    Raises:
        ElementParseFailure: If the collection or any element is malformed
    """
    if isinstance(payload, dict):
        if "elements" not in payload:
            raise ElementParseFailure("Document has no 'elements' array")
        payload = payload["elements"]

    if not isinstance(payload, list):
        raise ElementParseFailure(f"Elements must be a list, got {type(payload).__name__}")

    return [parse_element(raw) for raw in payload]


def count_by_type(elements: Iterable[GeoElement]) -> Dict[str, int]:
    """Count elements per type, for logging."""
    counts = {t.value: 0 for t in ElementType}
    for element in elements:
        counts[element.type.value] += 1
    return counts
