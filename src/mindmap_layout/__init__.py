"""Mind map layout engine and public API."""

from __future__ import annotations

from mindmap_layout.config import (
    ExportConfig,
    LayoutType,
    LinkConfig,
    LinkStroke,
    LinkStyle,
    MarkerShape,
    MindMapConfig,
    StructureConfig,
    StyleConfig,
    TypographyConfig,
)
from mindmap_layout.drag import CrossingGuard, DragSession, DragState, apply_overrides, normalize_angle
from mindmap_layout.errors import ConfigurationError, MindMapLayoutError, UnknownLayoutError
from mindmap_layout.layout import (
    assign_positions,
    build_layout_tree,
    canvas_frame,
    compute_bounds,
    compute_layout,
    node_size,
    resolve_collisions,
)
from mindmap_layout.measure import MonospaceMeasurer, PillowMeasurer, TextMeasurer, TextSize
from mindmap_layout.routing import RoutedEdge, route_edge, route_edges
from mindmap_layout.tree import NodeShape, SourceNode
from mindmap_layout.types import Bounds, LayoutEdge, LayoutNode, LayoutResult, LayoutTree, Point

__all__ = [
    "Bounds",
    "ConfigurationError",
    "CrossingGuard",
    "DragSession",
    "DragState",
    "ExportConfig",
    "LayoutEdge",
    "LayoutNode",
    "LayoutResult",
    "LayoutTree",
    "LayoutType",
    "LinkConfig",
    "LinkStroke",
    "LinkStyle",
    "MarkerShape",
    "MindMapConfig",
    "MindMapLayoutError",
    "MonospaceMeasurer",
    "NodeShape",
    "PillowMeasurer",
    "Point",
    "RoutedEdge",
    "SourceNode",
    "StructureConfig",
    "StyleConfig",
    "TextMeasurer",
    "TextSize",
    "TypographyConfig",
    "UnknownLayoutError",
    "apply_overrides",
    "assign_positions",
    "build_layout_tree",
    "canvas_frame",
    "compute_bounds",
    "compute_layout",
    "node_size",
    "normalize_angle",
    "resolve_collisions",
    "route_edge",
    "route_edges",
]
