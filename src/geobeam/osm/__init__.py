"""OpenStreetMap element parsing and road network building."""

from .elements import ElementType, GeoElement, parse_element, parse_elements, count_by_type
from .graph import (
    LANE_WIDTH,
    DEFAULT_LANES,
    FeatureKind,
    Feature,
    RoadNode,
    RoadSegment,
    RoadNetwork,
    ElementGraph,
    parse_lanes,
    calculate_width,
    road_material,
    build_node_index,
    build_graph,
)

__all__ = [
    # Elements
    "ElementType",
    "GeoElement",
    "parse_element",
    "parse_elements",
    "count_by_type",
    # Graph
    "LANE_WIDTH",
    "DEFAULT_LANES",
    "FeatureKind",
    "Feature",
    "RoadNode",
    "RoadSegment",
    "RoadNetwork",
    "ElementGraph",
    "parse_lanes",
    "calculate_width",
    "road_material",
    "build_node_index",
    "build_graph",
]
