"""
Map scene: Mercator projection of the area graph into screen space, a
display list of edges and nodes, zoom/pan state, and SVG / GeoJSON output.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import geopandas as gpd
from markupsafe import escape
from pyproj import Transformer
from shapely.geometry import LineString, Point, mapping

from .catalog import normalize_name
from .config import MAP_DESKTOP_OFFSET_X, MAP_MARGIN, MAP_SCALE_EXTENT, MAP_THEME
from .graph import MapEdge, MapNode

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"
WEB_MERCATOR = "EPSG:3857"
MAX_MERCATOR_LATITUDE = 85.05112878

_TO_MERCATOR = Transformer.from_crs(WGS84, WEB_MERCATOR, always_xy=True)


def _clamp_latitude(latitude: float) -> float:
    return max(-MAX_MERCATOR_LATITUDE, min(MAX_MERCATOR_LATITUDE, latitude))


class MercatorFit:
    """Web Mercator projection scaled and centred inside a padded viewport."""

    def __init__(self, scale: float, offset_x: float, offset_y: float, min_x: float, max_y: float):
        self.scale = scale
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.min_x = min_x
        self.max_y = max_y

    @classmethod
    def fit(cls, nodes: Sequence[MapNode], width: float, height: float,
            margin: float = MAP_MARGIN) -> Optional['MercatorFit']:
        """Returns None while the viewport is unmeasured or there is nothing to draw."""
        available_w = width - 2 * margin
        available_h = height - 2 * margin
        if available_w <= 0 or available_h <= 0 or not nodes:
            return None

        points = gpd.GeoSeries(
            gpd.points_from_xy(
                [node.longitude for node in nodes],
                [_clamp_latitude(node.latitude) for node in nodes],
            ),
            crs=WGS84,
        ).to_crs(WEB_MERCATOR)
        min_x, min_y, max_x, max_y = points.total_bounds
        span_x, span_y = max_x - min_x, max_y - min_y

        candidates = []
        if span_x > 0:
            candidates.append(available_w / span_x)
        if span_y > 0:
            candidates.append(available_h / span_y)
        scale = min(candidates) if candidates else 1.0

        offset_x = margin + (available_w - span_x * scale) / 2
        offset_y = margin + (available_h - span_y * scale) / 2
        return cls(scale, offset_x, offset_y, float(min_x), float(max_y))

    def project(self, longitude: float, latitude: float) -> Tuple[float, float]:
        x, y = _TO_MERCATOR.transform(longitude, _clamp_latitude(latitude))
        return (self.offset_x + (x - self.min_x) * self.scale,
                self.offset_y + (self.max_y - y) * self.scale)


# Scale-dependent styling. Every curve is continuous and non-increasing in k
# over the zoom range; the two label segments meet at k = 6.
def label_font_size(k: float) -> float:
    if k <= 6:
        return -4.03955 * math.log(0.109089 * k)
    return 2.34836 - 0.106045 * k


def node_radius(k: float) -> float:
    return 4.5 - 1.4428 * math.log(k)


def edge_stroke_width(k: float) -> float:
    return 1 / k


def label_dy(k: float, touch: bool) -> str:
    if k <= 6 or touch:
        return "1em"
    return "2em"


@dataclass
class ZoomTransform:
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0
    scale_extent: Tuple[float, float] = MAP_SCALE_EXTENT

    @classmethod
    def initial(cls, touch: bool) -> 'ZoomTransform':
        # Desktop layouts keep a side panel open on the left.
        return cls(x=0.0 if touch else MAP_DESKTOP_OFFSET_X, y=0.0, k=MAP_SCALE_EXTENT[0])

    def pan_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def zoom_to(self, k: float, cx: float = 0.0, cy: float = 0.0) -> None:
        """Scales uniformly about the screen point (cx, cy), clamped to the scale extent."""
        low, high = self.scale_extent
        k = max(low, min(high, k))
        # Keep the content point under (cx, cy) fixed.
        px, py = (cx - self.x) / self.k, (cy - self.y) / self.k
        self.k = k
        self.x = cx - px * k
        self.y = cy - py * k

    def __str__(self) -> str:
        return f"translate({self.x:g},{self.y:g}) scale({self.k:g})"


@dataclass
class EdgeShape:
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float
    source_coordinate: Tuple[float, float]
    target_coordinate: Tuple[float, float]


@dataclass
class NodeShape:
    id: str
    label: str
    cx: float
    cy: float
    latitude: float
    longitude: float
    fill: str
    label_visible: bool = True


@dataclass
class MapScene:
    """Display list for the map, keyed by node id and edge endpoints."""

    width: float
    height: float
    touch: bool = False
    theme: Dict[str, str] = field(default_factory=lambda: dict(MAP_THEME))
    nodes: Dict[str, NodeShape] = field(default_factory=dict)
    edges: Dict[Tuple[str, str], EdgeShape] = field(default_factory=dict)
    transform: ZoomTransform = field(default_factory=ZoomTransform)

    def __post_init__(self) -> None:
        self._by_label: Dict[str, NodeShape] = {}

    def add_node(self, shape: NodeShape) -> None:
        self.nodes[shape.id] = shape
        self._by_label.setdefault(normalize_name(shape.label), shape)

    def add_edge(self, shape: EdgeShape) -> None:
        self.edges[(shape.source, shape.target)] = shape

    def node_by_label(self, label: str) -> Optional[NodeShape]:
        return self._by_label.get(normalize_name(label))

    def set_fill(self, node_id: str, fill: str) -> None:
        if node_id in self.nodes:
            self.nodes[node_id].fill = fill

    def show_label(self, node_id: str) -> None:
        if node_id in self.nodes:
            self.nodes[node_id].label_visible = True

    def hide_all_labels(self) -> None:
        for shape in self.nodes.values():
            shape.label_visible = False

    def show_all_labels(self) -> None:
        for shape in self.nodes.values():
            shape.label_visible = True

    @property
    def visible_labels(self) -> List[str]:
        return [shape.label for shape in self.nodes.values() if shape.label_visible]

    def to_svg(self) -> str:
        k = self.transform.k
        font_size = label_font_size(k)
        radius = node_radius(k)
        dy = label_dy(k, self.touch)
        theme = self.theme

        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width:g}" height="{self.height:g}"'
            f' viewBox="0 0 {self.width:g} {self.height:g}">',
            f'<rect width="100%" height="100%" fill="{theme["background"]}"/>',
            f'<g transform="{self.transform}">',
        ]
        for edge in self.edges.values():
            parts.append(
                f'<path d="M{edge.x1:.2f},{edge.y1:.2f}L{edge.x2:.2f},{edge.y2:.2f}"'
                f' stroke="{theme["edge_stroke"]}" stroke-width="{edge_stroke_width(k):.3f}" fill="none"/>'
            )
        for node in self.nodes.values():
            display = '' if node.label_visible else ' style="display:none"'
            parts.append(
                f'<g class="node-group">'
                f'<circle id="{escape(node.id)}" cx="{node.cx:.2f}" cy="{node.cy:.2f}" r="{radius:.3f}"'
                f' fill="{escape(node.fill)}"/>'
                f'<text x="{node.cx:.2f}" y="{node.cy:.2f}" text-anchor="middle" alignment-baseline="middle"'
                f' dy="{dy}" font-size="{font_size:.3f}px" fill="{theme["label_color"]}"{display}>'
                f'{escape(node.label)}</text></g>'
            )
        parts.append('</g></svg>')
        return ''.join(parts)

    def to_geojson(self) -> Dict[str, Any]:
        features = []
        for edge in self.edges.values():
            features.append({
                "type": "Feature",
                "geometry": mapping(LineString([edge.source_coordinate, edge.target_coordinate])),
                "properties": {
                    "feature_type": "edge",
                    "source": edge.source,
                    "target": edge.target,
                    "screen": [[edge.x1, edge.y1], [edge.x2, edge.y2]],
                },
            })
        for node in self.nodes.values():
            features.append({
                "type": "Feature",
                "geometry": mapping(Point(node.longitude, node.latitude)),
                "properties": {
                    "feature_type": "node",
                    "id": node.id,
                    "name": node.label,
                    "color": node.fill,
                    "label_visible": node.label_visible,
                    "screen": [node.cx, node.cy],
                },
            })
        return {
            "type": "FeatureCollection",
            "features": features,
            "transform": {"x": self.transform.x, "y": self.transform.y, "k": self.transform.k},
        }


def build_scene(nodes: Sequence[MapNode], edges: Iterable[MapEdge], projection: Optional[MercatorFit],
                target_name: Optional[str], width: float, height: float, touch: bool = False,
                theme: Optional[Dict[str, str]] = None) -> MapScene:
    """Projects nodes and edges into a fresh display list. Edges with an unknown endpoint are skipped."""
    scene = MapScene(width=width, height=height, touch=touch,
                     theme=dict(theme or MAP_THEME), transform=ZoomTransform.initial(touch))
    if projection is None:
        return scene

    target_key = normalize_name(target_name) if target_name else None
    by_id: Dict[str, MapNode] = {node.id: node for node in nodes}

    for edge in edges:
        source, target = by_id.get(edge.source), by_id.get(edge.target)
        if source is None or target is None:
            logger.debug(f"Skipping edge {edge.source}-{edge.target} with unknown endpoint.")
            continue
        x1, y1 = projection.project(source.longitude, source.latitude)
        x2, y2 = projection.project(target.longitude, target.latitude)
        scene.add_edge(EdgeShape(
            source=edge.source, target=edge.target, x1=x1, y1=y1, x2=x2, y2=y2,
            source_coordinate=(source.longitude, source.latitude),
            target_coordinate=(target.longitude, target.latitude),
        ))

    for node in nodes:
        cx, cy = projection.project(node.longitude, node.latitude)
        if node.fill:
            fill = node.fill
        elif target_key is not None and normalize_name(node.label) == target_key:
            fill = scene.theme['node_active_fill']
        else:
            fill = scene.theme['node_fill']
        scene.add_node(NodeShape(
            id=node.id, label=node.label, cx=cx, cy=cy,
            latitude=node.latitude, longitude=node.longitude, fill=fill,
        ))
    return scene
