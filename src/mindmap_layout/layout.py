"""Layout module — mind map layout pipeline.

Phases:
  1. Node sizing      (text oracle + padding + icon reservation)
  2. Tree building    (collapsed / max-depth visibility)
  3. Position assignment (one strategy per LayoutType)
  4. Collision resolution (never reorders siblings)
  5. Bounds + canvas offset

Every phase after sizing returns a new LayoutTree, so the caller's tree and
each intermediate stage can be inspected independently.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from mindmap_layout.config import LayoutType, MindMapConfig, StructureConfig
from mindmap_layout.measure import MonospaceMeasurer, TextMeasurer
from mindmap_layout.tree import SourceNode
from mindmap_layout.types import Bounds, LayoutNode, LayoutResult, LayoutTree

logger = logging.getLogger(__name__)

# ─── Geometry Constants ───────────────────────────────────────────────────────

ICON_SPACE: int = 24  # width reserved left of the label for an icon

RADIAL_RING_MARGIN: int = 100  # added to horizontal_spacing for the ring step
RADIAL_DEPTH_STEP: int = 30  # extra radius per ring beyond the first
RADIAL_NODE_MARGIN: int = 16  # added to a node's larger side for its angular floor
RADIAL_MIN_ANGLE: float = 0.3  # angular floor (radians) when the radius is zero

TIDY_H_MARGIN: int = 80  # horizontal tidy + balanced tree, per depth
TIDY_V_MARGIN: int = 8  # horizontal tidy, between sibling bands
TREE_V_MARGIN: int = 12  # balanced tree, between sibling bands
VERTICAL_H_MARGIN: int = 10  # vertical, between sibling bands
VERTICAL_V_MARGIN: int = 40  # vertical, per depth

COLLISION_PADDING: int = 12
RADIAL_COLLISION_PASSES: int = 5
RADIAL_PUSH_ATTEMPTS: int = 4  # full push, then three halvings


# ─── Node Sizing ──────────────────────────────────────────────────────────────


def resolve_font(source: SourceNode, depth: int, config: MindMapConfig) -> tuple[float, str]:
    """Return (font_size, font_weight) used to draw ``source`` at ``depth``.

    The root always uses the root font size in bold. Other depths honour the
    node's own overrides, then fall back to the per-level size list (depth
    clamped to its last entry) and the global weight.
    """
    if depth == 0:
        return config.style.root_font_size, "bold"
    sizes = config.typography.level_font_sizes
    size = source.font_size or sizes[min(depth, len(sizes) - 1)]
    weight = source.font_weight or config.typography.font_weight
    return size, weight


def node_size(
    source: SourceNode,
    depth: int,
    config: MindMapConfig,
    measurer: TextMeasurer,
) -> tuple[float, float]:
    """Compute (width, height) of a node box: measured label + padding + icon space."""
    font_size, font_weight = resolve_font(source, depth, config)
    measured = measurer.measure(source.text, font_size, config.typography.font_family, font_weight)
    icon_space = ICON_SPACE if source.icon else 0
    width = measured.width + config.style.node_padding_x * 2 + icon_space
    height = measured.height + config.style.node_padding_y * 2
    return (width, height)


# ─── Tree Building ────────────────────────────────────────────────────────────


def build_layout_tree(source: SourceNode, config: MindMapConfig, measurer: TextMeasurer) -> LayoutTree:
    """Materialise the visible part of ``source`` as a LayoutTree.

    A collapsed node, or a node at ``structure.max_depth``, keeps its place in
    the layout but gets no layout children.
    """
    return LayoutTree(_build_node(source, 0, None, config, measurer))


def _build_node(
    source: SourceNode,
    depth: int,
    parent_id: str | None,
    config: MindMapConfig,
    measurer: TextMeasurer,
) -> LayoutNode:
    width, height = node_size(source, depth, config, measurer)
    node = LayoutNode(
        id=source.id,
        source=source,
        width=width,
        height=height,
        depth=depth,
        parent_id=parent_id,
    )
    if not source.collapsed and depth < config.structure.max_depth:
        node.children = [_build_node(child, depth + 1, source.id, config, measurer) for child in source.children]
    return node


# ─── Shared Tidy Helpers ──────────────────────────────────────────────────────


def subtree_extents(tree: LayoutTree, size_of: Callable[[LayoutNode], float], spacing: float) -> dict[str, float]:
    """Band size of every subtree along the sibling axis.

    A leaf needs its own size plus ``spacing``; an inner node needs the sum of
    its children's bands, but never less than its own size plus ``spacing``.
    """
    extents: dict[str, float] = {}
    for node in reversed(tree.preorder()):
        own = size_of(node) + spacing
        if node.is_leaf:
            extents[node.id] = own
        else:
            extents[node.id] = max(sum(extents[c.id] for c in node.children), own)
    return extents


def split_balanced(heights: list[float]) -> int:
    """Pick the prefix length ``k`` that best balances ``heights[:k]`` against ``heights[k:]``.

    Ties go to the larger ``k`` so that, for an odd split, the right side gets
    the extra subtree.
    """
    total = sum(heights)
    best_k = 0
    best_diff = math.inf
    prefix = 0.0
    for k in range(len(heights) + 1):
        if k:
            prefix += heights[k - 1]
        diff = abs(prefix - (total - prefix))
        if diff <= best_diff:
            best_k, best_diff = k, diff
    return best_k


# ─── Radial Layout ────────────────────────────────────────────────────────────


def radius_for_depth(depth: int, structure: StructureConfig) -> float:
    """Ring radius for ``depth``; rings beyond the first are spaced a little wider."""
    ring = structure.horizontal_spacing + RADIAL_RING_MARGIN
    extra = (depth - 1) * RADIAL_DEPTH_STEP if depth > 1 else 0
    return depth * ring + extra


def min_angle_for_node(node: LayoutNode, radius: float) -> float:
    """Smallest sector (radians) that keeps ``node`` clear of its siblings at ``radius``."""
    if radius <= 0:
        return RADIAL_MIN_ANGLE
    return (max(node.width, node.height) + RADIAL_NODE_MARGIN) / radius


def layout_radial(tree: LayoutTree, structure: StructureConfig) -> None:
    """Place the root at the origin and every other node on its depth ring.

    Each node owns an angular sector proportional to its leaf count (floored
    by ``min_angle_for_node``, then scaled back down if the floors overflow the
    parent's sector). Children recurse strictly inside their parent's sector,
    so sibling sectors never overlap.
    """
    root = tree.root
    root.x = -root.width / 2
    root.y = -root.height / 2
    leaves = tree.leaf_counts()

    def place_children(parent: LayoutNode, start: float, end: float) -> None:
        if not parent.children:
            return
        span = end - start
        total_leaves = leaves[parent.id]

        wanted: list[float] = []
        for child in parent.children:
            radius = radius_for_depth(child.depth, structure)
            proportional = leaves[child.id] / total_leaves * span
            wanted.append(max(proportional, min_angle_for_node(child, radius)))

        total = sum(wanted)
        scale = span / total if total > span else 1.0

        current = start
        for child, angle in zip(parent.children, wanted):
            child_span = angle * scale
            mid = current + child_span / 2
            radius = radius_for_depth(child.depth, structure)
            child.x = math.cos(mid) * radius - child.width / 2
            child.y = math.sin(mid) * radius - child.height / 2
            child.angle = mid
            place_children(child, current, current + child_span)
            current += child_span

    place_children(root, 0.0, 2 * math.pi)


# ─── Horizontal Layouts (Tidy Tree) ───────────────────────────────────────────


def layout_horizontal_right(tree: LayoutTree, structure: StructureConfig) -> None:
    """Root at x=0, depths grow to the right, siblings stacked top to bottom."""
    h_spacing = structure.horizontal_spacing + TIDY_H_MARGIN
    v_spacing = structure.vertical_spacing + TIDY_V_MARGIN
    heights = subtree_extents(tree, lambda n: n.height, v_spacing)

    def assign(node: LayoutNode, x: float, y_start: float) -> None:
        node.x = x
        node.y = y_start + heights[node.id] / 2 - node.height / 2
        child_y = y_start
        for child in node.children:
            assign(child, x + h_spacing, child_y)
            child_y += heights[child.id]

    assign(tree.root, 0.0, -heights[tree.root.id] / 2)


def layout_horizontal_left(tree: LayoutTree, structure: StructureConfig) -> None:
    """Mirror image of ``layout_horizontal_right`` about x=0."""
    layout_horizontal_right(tree, structure)
    for node in tree.preorder():
        node.x = -node.x - node.width


# ─── Vertical (Top-Down) Layout ───────────────────────────────────────────────


def layout_vertical(tree: LayoutTree, structure: StructureConfig) -> None:
    """Root at y=0, depths grow downward, siblings laid out left to right."""
    h_spacing = structure.horizontal_spacing + VERTICAL_H_MARGIN
    v_spacing = structure.vertical_spacing + VERTICAL_V_MARGIN
    widths = subtree_extents(tree, lambda n: n.width, h_spacing)

    def assign(node: LayoutNode, x_start: float, y: float) -> None:
        node.x = x_start + widths[node.id] / 2 - node.width / 2
        node.y = y
        child_x = x_start
        for child in node.children:
            assign(child, child_x, y + v_spacing)
            child_x += widths[child.id]

    assign(tree.root, -widths[tree.root.id] / 2, 0.0)


# ─── Balanced Tree (Left / Right) ─────────────────────────────────────────────


def layout_tree(tree: LayoutTree, structure: StructureConfig) -> None:
    """Root centered on the origin, first-level subtrees split between both sides.

    The split point is chosen by ``split_balanced`` over subtree heights, so
    both sides carry roughly the same vertical load. Each side keeps source
    order top to bottom and is centered on y=0 independently.
    """
    h_spacing = structure.horizontal_spacing + TIDY_H_MARGIN
    v_spacing = structure.vertical_spacing + TREE_V_MARGIN
    heights = subtree_extents(tree, lambda n: n.height, v_spacing)

    root = tree.root
    root.x = -root.width / 2
    root.y = -root.height / 2

    k = split_balanced([heights[c.id] for c in root.children])
    right_group = root.children[:k]
    left_group = root.children[k:]

    def assign(node: LayoutNode, x: float, y_start: float, direction: int) -> None:
        # x is the edge nearest the root: left edge on the right side, right edge on the left side.
        node.x = x if direction > 0 else x - node.width
        node.y = y_start + heights[node.id] / 2 - node.height / 2
        child_y = y_start
        for child in node.children:
            assign(child, x + direction * h_spacing, child_y, direction)
            child_y += heights[child.id]

    sides = (
        (right_group, root.right + h_spacing * 0.5, 1),
        (left_group, root.x - h_spacing * 0.5, -1),
    )
    for group, x, direction in sides:
        y = -sum(heights[c.id] for c in group) / 2
        for child in group:
            assign(child, x, y, direction)
            y += heights[child.id]


# ─── Strategy Dispatch ────────────────────────────────────────────────────────

_STRATEGIES: dict[LayoutType, Callable[[LayoutTree, StructureConfig], None]] = {
    LayoutType.Radial: layout_radial,
    LayoutType.HorizontalRight: layout_horizontal_right,
    LayoutType.HorizontalLeft: layout_horizontal_left,
    LayoutType.Vertical: layout_vertical,
    LayoutType.Tree: layout_tree,
}


def assign_positions(tree: LayoutTree, structure: StructureConfig) -> LayoutTree:
    """Return a copy of ``tree`` positioned by the strategy for ``structure.layout``."""
    positioned = tree.copy()
    _STRATEGIES[structure.layout](positioned, structure)
    return positioned


# ─── Collision Resolution ─────────────────────────────────────────────────────


def resolve_collisions(tree: LayoutTree, layout: LayoutType, padding: float = COLLISION_PADDING) -> LayoutTree:
    """Return a copy of ``tree`` with same-depth overlaps pushed apart.

    Pushes always move a whole subtree and never change which sibling comes
    first along the packing axis (or around the ring, for radial layouts).
    """
    resolved = tree.copy()
    if layout == LayoutType.Radial:
        _resolve_radial(resolved, padding)
    else:
        _resolve_linear(resolved, layout, padding)
    return resolved


def _packing_groups(tree: LayoutTree, layout: LayoutType) -> list[list[LayoutNode]]:
    """Same-depth groups that may collide; the balanced tree splits each depth by side."""
    groups: list[list[LayoutNode]] = []
    root_cx = tree.root.center.x
    for depth, nodes in tree.by_depth().items():
        if layout == LayoutType.Tree and depth > 0:
            groups.append([n for n in nodes if n.center.x >= root_cx])
            groups.append([n for n in nodes if n.center.x < root_cx])
        else:
            groups.append(nodes)
    return groups


def _resolve_linear(tree: LayoutTree, layout: LayoutType, padding: float) -> None:
    vertical = layout == LayoutType.Vertical

    def start(n: LayoutNode) -> float:
        return n.x if vertical else n.y

    def extent(n: LayoutNode) -> float:
        return n.width if vertical else n.height

    # Groups come shallow-first; each group is sorted only once earlier pushes have landed.
    for group in _packing_groups(tree, layout):
        ordered = sorted(group, key=start)
        for prev, curr in zip(ordered, ordered[1:]):
            overlap = start(prev) + extent(prev) + padding - start(curr)
            if overlap > 0:
                if vertical:
                    tree.shift_subtree(curr.id, overlap, 0.0)
                else:
                    tree.shift_subtree(curr.id, 0.0, overlap)


def overlap_push(a: LayoutNode, b: LayoutNode, padding: float) -> float:
    """Distance to push each of two padded, overlapping boxes apart (0 if clear)."""
    overlap_x = min(a.right + padding, b.right + padding) - max(a.x, b.x)
    overlap_y = min(a.bottom + padding, b.bottom + padding) - max(a.y, b.y)
    if overlap_x <= 0 or overlap_y <= 0:
        return 0.0
    return min(overlap_x, overlap_y) / 2 + padding / 2


def tangent_between(angle_a: float | None, angle_b: float | None) -> tuple[float, float]:
    """Unit tangent (direction of increasing angle) at the mid angle of a ring pair.

    ``angle_b`` is taken to follow ``angle_a`` going around the ring, so a
    wrap-around pair (b numerically smaller) is unrolled by 2π first. With no
    angle at all the direction defaults to straight up.
    """
    if angle_a is None and angle_b is None:
        return (0.0, -1.0)
    a = angle_a if angle_a is not None else angle_b
    b = angle_b if angle_b is not None else angle_a
    if b < a:
        b += 2 * math.pi
    mid = (a + b) / 2
    return (-math.sin(mid), math.cos(mid))


def winds_once(angles: list[float]) -> bool:
    """True if ``angles`` (in sibling order) go around their center at most once.

    A list is in cyclic order when it is a rotation of its sorted self, which
    means at most one descent counting the wrap from last back to first.
    """
    n = len(angles)
    descents = sum(1 for i in range(n) if angles[(i + 1) % n] < angles[i])
    return descents <= 1


def siblings_in_order(tree: LayoutTree, parent_id: str, moves: dict[str, tuple[float, float]]) -> bool:
    """Whether the children of ``parent_id``, displaced by ``moves``, keep their cyclic order."""
    parent = tree.node(parent_id)
    origin = parent.center
    angles = []
    for child in parent.children:
        c = child.center
        dx, dy = moves.get(child.id, (0.0, 0.0))
        angles.append(math.atan2(c.y + dy - origin.y, c.x + dx - origin.x))
    return winds_once(angles)


def _resolve_radial(tree: LayoutTree, padding: float) -> None:
    for depth, ring in tree.by_depth().items():
        if depth == 0 or len(ring) < 2:
            continue
        ordered = sorted(ring, key=lambda n: n.angle if n.angle is not None else 0.0)
        pairs = list(zip(ordered, ordered[1:]))
        if len(ordered) > 2:
            pairs.append((ordered[-1], ordered[0]))

        for _pass in range(RADIAL_COLLISION_PASSES):
            for a, b in pairs:
                push = overlap_push(a, b, padding)
                if push <= 0:
                    continue
                tx, ty = tangent_between(a.angle, b.angle)
                parents = {a.parent_id, b.parent_id}
                # A push that would carry a node past a sibling is halved, then dropped.
                for _attempt in range(RADIAL_PUSH_ATTEMPTS):
                    moves = {a.id: (-tx * push, -ty * push), b.id: (tx * push, ty * push)}
                    if all(siblings_in_order(tree, pid, moves) for pid in parents):
                        tree.shift_subtree(a.id, *moves[a.id])
                        tree.shift_subtree(b.id, *moves[b.id])
                        break
                    push /= 2


# ─── Bounds ───────────────────────────────────────────────────────────────────


def compute_bounds(nodes: list[LayoutNode]) -> Bounds:
    """Axis-aligned box enclosing every node rectangle."""
    return Bounds(
        min_x=min(n.x for n in nodes),
        min_y=min(n.y for n in nodes),
        max_x=max(n.right for n in nodes),
        max_y=max(n.bottom for n in nodes),
    )


def canvas_frame(bounds: Bounds, padding: float) -> tuple[float, float, float, float]:
    """Return (offset_x, offset_y, width, height) that maps ``bounds`` into a padded canvas."""
    return (
        -bounds.min_x + padding,
        -bounds.min_y + padding,
        bounds.width + padding * 2,
        bounds.height + padding * 2,
    )


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


def compute_layout(
    source: SourceNode,
    config: MindMapConfig | None = None,
    measurer: TextMeasurer | None = None,
) -> LayoutResult:
    """Run the full layout pipeline and return positioned nodes + edges.

    Args:
        source: Root of the mind map. It is read, never modified.
        config: Layout configuration; defaults to ``MindMapConfig()``.
        measurer: Text measurement oracle; defaults to a fresh
            ``MonospaceMeasurer``.

    Returns:
        A LayoutResult whose nodes are listed in pre-order. The result is a
        deterministic function of ``source`` and ``config``.
    """
    if config is None:
        config = MindMapConfig()
    if measurer is None:
        measurer = MonospaceMeasurer()
    layout = config.structure.layout

    tree = build_layout_tree(source, config, measurer)
    tree = assign_positions(tree, config.structure)
    tree = resolve_collisions(tree, layout)

    nodes = tree.preorder()
    bounds = compute_bounds(nodes)
    offset_x, offset_y, width, height = canvas_frame(bounds, config.export.padding)

    logger.debug(
        "layout %s: %d nodes, canvas %.1f x %.1f, offset (%.1f, %.1f)",
        layout.value,
        len(nodes),
        width,
        height,
        offset_x,
        offset_y,
    )

    return LayoutResult(
        nodes=nodes,
        edges=tree.edges(),
        width=width,
        height=height,
        offset_x=offset_x,
        offset_y=offset_y,
        layout=layout,
        tree=tree,
    )
