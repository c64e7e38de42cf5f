"""Edge routing — anchors, marker gaps and connector paths.

For each parent → child LayoutEdge the router:
  1. Picks an anchor on each node: the center of a fixed side for the tidy
     layouts, or the point where the center-to-center ray leaves the box for
     the radial layout.
  2. Pulls each endpoint away from its node along the anchor direction to
     leave room for a marker.
  3. Builds the path for the configured LinkStyle plus stroke attributes.

Routing works in canvas coordinates: pass the LayoutResult offsets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from mindmap_layout.config import LayoutType, LinkConfig, LinkStroke, LinkStyle, MarkerShape, MindMapConfig
from mindmap_layout.types import LayoutEdge, LayoutNode, LayoutResult, Point

# ─── Constants ──────────────────────────────────────────────────────────────

ANCHOR_GAP: float = 4  # gap at an end without a marker
MARKER_CLEARANCE: float = 3  # added to marker_size at an end with a marker

BEZIER_MIN_TENSION: float = 40
BEZIER_TENSION_RATIO: float = 0.4
ORGANIC_MIN_TENSION: float = 50
ORGANIC_TENSION_RATIO: float = 0.55

MIN_TAPERED_WIDTH: float = 1.5
TAPER_PER_DEPTH: float = 0.5

DASH_PATTERNS: dict[LinkStroke, str] = {
    LinkStroke.Dashed: "8 4",
    LinkStroke.Dotted: "3 3",
}

_EPSILON = 1e-9


class Side(str, Enum):
    Top = "top"
    Bottom = "bottom"
    Left = "left"
    Right = "right"


_SIDE_NORMALS: dict[Side, tuple[float, float]] = {
    Side.Top: (0.0, -1.0),
    Side.Bottom: (0.0, 1.0),
    Side.Left: (-1.0, 0.0),
    Side.Right: (1.0, 0.0),
}


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class Anchor:
    """A point on a node boundary plus the outward unit normal used as the curve tangent."""

    point: Point
    direction: Point


@dataclass
class RoutedEdge:
    """A routed connector in canvas coordinates.

    ``points`` is the control polygon: two points for straight links, four
    (start, control, control, end) for bezier/organic links, and four
    (start, bend, bend, end) for angular links.
    """

    id: str
    source_id: str
    target_id: str
    style: LinkStyle
    points: list[Point]
    stroke_width: float
    color: str
    dasharray: str | None
    marker_start: MarkerShape | None
    marker_end: MarkerShape | None

    @property
    def d(self) -> str:
        """SVG path data for ``points``."""
        p = [f"{_fmt(pt.x)} {_fmt(pt.y)}" for pt in self.points]
        if self.style in (LinkStyle.Bezier, LinkStyle.Organic):
            return f"M {p[0]} C {p[1]}, {p[2]}, {p[3]}"
        return "M " + " L ".join(p)


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# ─── Anchors ────────────────────────────────────────────────────────────────


def node_rect(node: LayoutNode, offset_x: float = 0.0, offset_y: float = 0.0) -> Rect:
    return Rect(node.x + offset_x, node.y + offset_y, node.width, node.height)


def side_anchor(rect: Rect, side: Side) -> Anchor:
    """Center of one side of ``rect``, facing outward."""
    c = rect.center
    points = {
        Side.Top: Point(c.x, rect.y),
        Side.Bottom: Point(c.x, rect.y + rect.height),
        Side.Left: Point(rect.x, c.y),
        Side.Right: Point(rect.x + rect.width, c.y),
    }
    nx, ny = _SIDE_NORMALS[side]
    return Anchor(points[side], Point(nx, ny))


def choose_sides(source: Rect, target: Rect, layout: LayoutType) -> tuple[Side, Side]:
    """Fixed sides for the tidy layouts: vertical goes bottom → top, others face each other."""
    if layout == LayoutType.Vertical:
        return Side.Bottom, Side.Top
    if target.center.x > source.center.x:
        return Side.Right, Side.Left
    return Side.Left, Side.Right


def boundary_anchor(rect: Rect, toward: Point) -> Anchor:
    """Where the ray from ``rect``'s center toward ``toward`` leaves the rectangle.

    Slab test against the four sides, keeping the nearest hit. The returned
    direction is the outward normal of the side actually hit, not the ray
    direction. Coincident points fall back to the top side.
    """
    c = rect.center
    dx = toward.x - c.x
    dy = toward.y - c.y
    length = math.hypot(dx, dy)
    if length < _EPSILON:
        return side_anchor(rect, Side.Top)
    dx /= length
    dy /= length

    half_w = rect.width / 2
    half_h = rect.height / 2
    best_t = math.inf
    normal = Point(0.0, -1.0)

    if abs(dx) > _EPSILON:
        t = half_w / abs(dx)
        if abs(dy * t) <= half_h + _EPSILON and t < best_t:
            best_t = t
            normal = Point(math.copysign(1.0, dx), 0.0)
    if abs(dy) > _EPSILON:
        t = half_h / abs(dy)
        if abs(dx * t) <= half_w + _EPSILON and t < best_t:
            best_t = t
            normal = Point(0.0, math.copysign(1.0, dy))

    return Anchor(Point(c.x + dx * best_t, c.y + dy * best_t), normal)


def resolve_anchors(source: Rect, target: Rect, layout: LayoutType) -> tuple[Anchor, Anchor]:
    if layout == LayoutType.Radial:
        return boundary_anchor(source, target.center), boundary_anchor(target, source.center)
    source_side, target_side = choose_sides(source, target, layout)
    return side_anchor(source, source_side), side_anchor(target, target_side)


def marker_gap(marker: MarkerShape, marker_size: float) -> float:
    if marker != MarkerShape.NONE:
        return marker_size + MARKER_CLEARANCE
    return ANCHOR_GAP


def _offset(anchor: Anchor, distance: float) -> Point:
    return Point(
        anchor.point.x + anchor.direction.x * distance,
        anchor.point.y + anchor.direction.y * distance,
    )


# ─── Paths ──────────────────────────────────────────────────────────────────


def build_path(style: LinkStyle, start: Anchor, end: Anchor) -> list[Point]:
    """Control polygon for a link between two (already gapped) anchors."""
    p1, p2 = start.point, end.point

    if style == LinkStyle.Straight:
        return [p1, p2]

    if style == LinkStyle.Angular:
        if abs(start.direction.y) >= abs(start.direction.x):
            mid_y = (p1.y + p2.y) / 2
            return [p1, Point(p1.x, mid_y), Point(p2.x, mid_y), p2]
        mid_x = (p1.x + p2.x) / 2
        return [p1, Point(mid_x, p1.y), Point(mid_x, p2.y), p2]

    dist = math.hypot(p2.x - p1.x, p2.y - p1.y)
    if style == LinkStyle.Organic:
        tension = max(ORGANIC_MIN_TENSION, dist * ORGANIC_TENSION_RATIO)
    else:
        tension = max(BEZIER_MIN_TENSION, dist * BEZIER_TENSION_RATIO)
    return [p1, _offset(start, tension), _offset(end, tension), p2]


# ─── Presentation ───────────────────────────────────────────────────────────


def stroke_width(depth: int, link: LinkConfig) -> float:
    """Link thickness, thinning toward the leaves when tapering is on."""
    if link.tapered:
        return max(MIN_TAPERED_WIDTH, link.thickness - depth * TAPER_PER_DEPTH)
    return link.thickness


def edge_color(depth: int, config: MindMapConfig) -> str:
    if config.link.color_by_level:
        colors = config.style.level_colors
        return colors[(depth - 1) % len(colors)]
    return config.link.color


def dash_array(stroke: LinkStroke) -> str | None:
    return DASH_PATTERNS.get(stroke)


# ─── Public Router ──────────────────────────────────────────────────────────


def route_edge(
    edge: LayoutEdge,
    config: MindMapConfig,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
    layout: LayoutType | None = None,
) -> RoutedEdge:
    """Route a single edge.

    ``layout`` selects the anchor mode and defaults to the configured
    paradigm; route_edges passes the paradigm the result was computed with.
    """
    link = config.link
    if layout is None:
        layout = config.structure.layout

    source = node_rect(edge.source, offset_x, offset_y)
    target = node_rect(edge.target, offset_x, offset_y)
    start, end = resolve_anchors(source, target, layout)

    start = Anchor(_offset(start, marker_gap(link.marker_start, link.marker_size)), start.direction)
    end = Anchor(_offset(end, marker_gap(link.marker_end, link.marker_size)), end.direction)

    return RoutedEdge(
        id=edge.id,
        source_id=edge.source.id,
        target_id=edge.target.id,
        style=link.style,
        points=build_path(link.style, start, end),
        stroke_width=stroke_width(edge.depth, link),
        color=edge_color(edge.depth, config),
        dasharray=dash_array(link.stroke),
        marker_start=link.marker_start if link.marker_start != MarkerShape.NONE else None,
        marker_end=link.marker_end if link.marker_end != MarkerShape.NONE else None,
    )


def route_edges(result: LayoutResult, config: MindMapConfig) -> list[RoutedEdge]:
    """Route every edge of ``result`` in canvas coordinates."""
    return [route_edge(edge, config, result.offset_x, result.offset_y, result.layout) for edge in result.edges]
