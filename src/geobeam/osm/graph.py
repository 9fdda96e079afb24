"""Build features and a road network from tagged OSM elements.

Classification rules are independent predicates: one element may produce
several features, and a way with both ``building`` and ``highway`` tags
yields a building feature and a road. Ways are processed one at a time;
nodes shared between ways are copied per way and no intersections are
merged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
import re

import structlog

from ..config import BoundingBox
from ..geo.coordinates import project
from .elements import GeoElement


logger = structlog.get_logger(__name__)

Position = Tuple[float, float, float]
NodePositionIndex = Dict[int, Tuple[float, float]]

# Width of one traffic lane in local units
LANE_WIDTH = 3.5

# Lane count used when the ``lanes`` tag is missing or invalid
DEFAULT_LANES = 2

MAX_LANES = 2 ** 32 - 1

_UNSIGNED = re.compile(r"\+?[0-9]+")


class FeatureKind(Enum):
    """Kinds of point features placed on the map."""
    BUILDING = "building"
    TREE = "tree"
    BUS_STOP = "bus_stop"
    OTHER_POINT = "other_point"


@dataclass(frozen=True)
class Feature:
    """A point feature in local space."""
    kind: FeatureKind
    position: Position
    tags: Dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class RoadNode:
    """A projected road node owned by a single way."""
    id: str
    position: Position
    width: float
    road_class: str


@dataclass(frozen=True)
class RoadSegment:
    """A connection between two consecutive resolved nodes of a way."""
    id: str
    start_node_id: str
    end_node_id: str
    width: float
    lane_count: int
    road_class: str
    one_way: bool


@dataclass
class RoadNetwork:
    """Road nodes and segments in way order."""
    nodes: List[RoadNode] = field(default_factory=list)
    segments: List[RoadSegment] = field(default_factory=list)

    def node_index(self) -> Dict[str, RoadNode]:
        """Map node ids to nodes, keeping the first occurrence of an id."""
        index: Dict[str, RoadNode] = {}
        for node in self.nodes:
            index.setdefault(node.id, node)
        return index


@dataclass
class ElementGraph:
    """Everything extracted from one element collection."""
    features: List[Feature]
    road_network: RoadNetwork

    def feature_counts(self) -> Dict[str, int]:
        counts = {kind.value: 0 for kind in FeatureKind}
        for feature in self.features:
            counts[feature.kind.value] += 1
        return counts


def parse_lanes(value: Optional[str]) -> int:
    """Parse a ``lanes`` tag as an unsigned integer.

    Returns ``DEFAULT_LANES`` when the tag is missing, not a plain unsigned
    number (``"2;3"``, ``"abc"``, ``"-1"``) or out of range.
    """
    if value is None or not _UNSIGNED.fullmatch(value):
        return DEFAULT_LANES
    lanes = int(value)
    if lanes > MAX_LANES:
        return DEFAULT_LANES
    return lanes


def calculate_width(road_class: str, lanes: int) -> float:
    """Road width in local units for a highway class and lane count."""
    if road_class in ("motorway", "trunk"):
        return lanes * LANE_WIDTH + 2.0
    if road_class == "primary":
        return lanes * LANE_WIDTH + 1.5
    if road_class == "secondary":
        return lanes * LANE_WIDTH + 1.0
    if road_class == "tertiary":
        return lanes * LANE_WIDTH + 0.5
    if road_class in ("residential", "service"):
        return lanes * 3.0
    if road_class in ("path", "footway", "cycleway"):
        return 2.0
    return lanes * LANE_WIDTH


ROAD_MATERIALS = {
    "motorway": "road_asphalt_highway",
    "trunk": "road_asphalt_highway",
    "primary": "road_asphalt",
    "secondary": "road_asphalt",
    "tertiary": "road_asphalt_residential",
    "residential": "road_asphalt_residential",
    "service": "road_concrete",
    "path": "road_gravel",
    "footway": "road_gravel",
    "cycleway": "road_gravel",
}


def road_material(road_class: str) -> str:
    """BeamNG decal material for a highway class."""
    return ROAD_MATERIALS.get(road_class, "road_asphalt")


def build_node_index(elements: Iterable[GeoElement]) -> NodePositionIndex:
    """Index the positions of all nodes that carry one."""
    index: NodePositionIndex = {}
    for element in elements:
        if element.is_node and element.position is not None:
            index[element.id] = element.position
    return index


def _first_resolved(element: GeoElement, index: NodePositionIndex) -> Optional[Tuple[float, float]]:
    for node_id in element.nodes:
        position = index.get(node_id)
        if position is not None:
            return position
    return None


def _point_features(
    element: GeoElement,
    index: NodePositionIndex,
    bbox: BoundingBox
) -> List[Feature]:
    """Apply each point-feature rule to one element."""
    features = []
    tags = element.tags

    # Buildings are anchored at their first resolvable outline node
    if "building" in tags and element.is_way:
        anchor = _first_resolved(element, index)
        if anchor is not None:
            features.append(Feature(FeatureKind.BUILDING, project(*anchor, bbox), dict(tags)))

    if element.is_node and element.position is not None:
        if tags.get("natural") == "tree":
            features.append(Feature(FeatureKind.TREE, project(*element.position, bbox), dict(tags)))
        if tags.get("highway") == "bus_stop":
            features.append(Feature(FeatureKind.BUS_STOP, project(*element.position, bbox), dict(tags)))

    return features


def _add_way(
    element: GeoElement,
    index: NodePositionIndex,
    bbox: BoundingBox,
    network: RoadNetwork
) -> None:
    """Append the nodes and segments of one routable way."""
    tags = element.tags
    road_class = tags["highway"]
    lanes = parse_lanes(tags.get("lanes"))
    width = calculate_width(road_class, lanes)
    one_way = tags.get("oneway") == "yes"

    prev_node_id: Optional[int] = None
    for node_id in element.nodes:
        position = index.get(node_id)
        if position is None:
            # Unresolved reference: skip it and bridge to the next resolved node
            continue

        road_node_id = f"node_{element.id}_{node_id}"
        network.nodes.append(RoadNode(
            id=road_node_id,
            position=project(*position, bbox),
            width=width,
            road_class=road_class,
        ))

        if prev_node_id is not None:
            network.segments.append(RoadSegment(
                id=f"segment_{element.id}_{prev_node_id}_{node_id}",
                start_node_id=f"node_{element.id}_{prev_node_id}",
                end_node_id=road_node_id,
                width=width,
                lane_count=lanes,
                road_class=road_class,
                one_way=one_way,
            ))
        prev_node_id = node_id


def build_graph(elements: List[GeoElement], bbox: BoundingBox) -> ElementGraph:
    """Classify elements into features and a road network.

    Output order follows the input element order, so the same input always
    produces the same output.

    Args:
        elements: Parsed elements
        bbox: Validated, non-degenerate bounding box

    Returns:
        ElementGraph with features and road network
    """
    index = build_node_index(elements)
    features: List[Feature] = []
    network = RoadNetwork()
    skipped_refs = 0

    for element in elements:
        features.extend(_point_features(element, index, bbox))

        if "highway" in element.tags and element.is_way:
            skipped_refs += sum(1 for n in element.nodes if n not in index)
            _add_way(element, index, bbox, network)

    graph = ElementGraph(features=features, road_network=network)
    logger.info(
        "graph_built",
        nodes_indexed=len(index),
        features=graph.feature_counts(),
        road_nodes=len(network.nodes),
        road_segments=len(network.segments),
        unresolved_refs=skipped_refs,
    )
    return graph
