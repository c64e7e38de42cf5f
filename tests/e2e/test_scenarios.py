"""End-to-end layout scenarios and whole-pipeline properties.

Runs compute_layout / route_edges / DragSession with the default monospace
measurer on realistic trees, for every layout paradigm.
"""

from __future__ import annotations

import math

import pytest

from mindmap_layout import (
    DragSession,
    LayoutResult,
    LayoutType,
    MindMapConfig,
    SourceNode,
    StructureConfig,
    compute_layout,
    route_edges,
)

ALL_LAYOUTS = list(LayoutType)


def make_project() -> SourceNode:
    """A mixed tree: multi-line labels, an icon, a collapsed branch and uneven depth."""
    return SourceNode(
        "root",
        "Product Launch",
        [
            SourceNode(
                "research",
                "Research",
                [
                    SourceNode("competitors", "Competitors"),
                    SourceNode("interviews", "Customer interviews"),
                    SourceNode("market", "Market size"),
                ],
            ),
            SourceNode(
                "design",
                "Design",
                [SourceNode("wireframes", "Wireframes"), SourceNode("identity", "Visual identity\nand brand")],
                icon="✎",
            ),
            SourceNode(
                "build",
                "Build",
                [
                    SourceNode("backend", "Backend", [SourceNode("api", "API"), SourceNode("db", "Database")]),
                    SourceNode("frontend", "Frontend"),
                ],
            ),
            SourceNode("marketing", "Marketing"),
            SourceNode(
                "launch",
                "Launch day",
                [SourceNode("press", "Press"), SourceNode("social", "Social")],
                collapsed=True,
            ),
        ],
    )


def layout_of(source: SourceNode, layout: LayoutType) -> LayoutResult:
    return compute_layout(source, MindMapConfig().with_layout(layout))


def boxes_overlap(a, b) -> bool:
    return a.x < b.right and b.x < a.right and a.y < b.bottom and b.y < a.bottom


def cyclic_descents(node) -> int:
    """Descents in the children's measured angles around ``node``, counting the wrap."""
    origin = node.center
    angles = [math.atan2(c.center.y - origin.y, c.center.x - origin.x) for c in node.children]
    n = len(angles)
    return sum(1 for i in range(n) if angles[(i + 1) % n] < angles[i])


# ─── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_radial_four_children_evenly_spread(self):
        """Four leaves around a root get quarter sectors on the first ring."""
        source = SourceNode("root", "Central", [SourceNode(f"c{i}", f"Child {i}") for i in range(4)])
        result = layout_of(source, LayoutType.Radial)
        root = result.node("root")
        angles = [result.node(f"c{i}").angle for i in range(4)]
        for prev, curr in zip(angles, angles[1:]):
            assert curr - prev == pytest.approx(math.pi / 2)
        for i in range(4):
            c = result.node(f"c{i}").center
            assert math.hypot(c.x - root.center.x, c.y - root.center.y) == pytest.approx(160)

    def test_horizontal_right_chain(self):
        """Root → A → {B, C}: A one spacing step right of the root, B above C."""
        a = SourceNode("a", "A", [SourceNode("b", "B"), SourceNode("c", "C")])
        result = layout_of(SourceNode("root", "Root", [a]), LayoutType.HorizontalRight)
        root, a, b, c = (result.node(i) for i in ("root", "a", "b", "c"))
        assert a.x == pytest.approx(root.x + 140)
        assert b.x == pytest.approx(a.x + 140)
        assert b.y < c.y

    def test_balanced_tree_leaf_against_big_subtree(self):
        """One leaf and one ten-leaf subtree end up on opposite sides."""
        big = SourceNode("big", "Big", [SourceNode(f"leaf{i}", f"Leaf {i}") for i in range(10)])
        source = SourceNode("root", "Root", [big, SourceNode("solo", "Solo")])
        result = layout_of(source, LayoutType.Tree)
        root_cx = result.node("root").center.x
        assert result.node("big").center.x > root_cx
        assert result.node("solo").center.x < root_cx

    def test_balanced_tree_split_by_height(self):
        """A heavy first subtree takes the right side alone; the light ones go left."""
        big = SourceNode("big", "Big", [SourceNode(f"leaf{i}", f"Leaf {i}") for i in range(10)])
        source = SourceNode("root", "Root", [big, SourceNode("l1", "Leaf one"), SourceNode("l2", "Leaf two")])
        result = layout_of(source, LayoutType.Tree)
        root_cx = result.node("root").center.x
        assert result.node("big").center.x > root_cx
        assert result.node("l1").center.x < root_cx
        assert result.node("l2").center.x < root_cx

    def test_rejected_drag_keeps_overrides(self):
        """A drag that would cross sibling edges leaves the override map as it was."""
        source = SourceNode("root", "Root", [SourceNode(i, i.upper()) for i in "abc"])
        result = layout_of(source, LayoutType.HorizontalRight)
        session = DragSession(result)
        x, y, _, _ = result.translated(result.node("a"))
        session.begin("a")
        assert session.move(x + 8, y)
        committed = session.overrides
        assert not session.move(x, y + 1000)
        assert session.overrides == committed

    def test_collapsed_branch(self):
        """A collapsed node is laid out but contributes no children or edges."""
        result = layout_of(make_project(), LayoutType.HorizontalRight)
        assert result.node("launch") is not None
        assert result.node("press") is None
        assert result.node("launch").children == []
        assert not any(e.source.id == "launch" for e in result.edges)


# ─── Properties ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("layout", ALL_LAYOUTS, ids=[t.value for t in ALL_LAYOUTS])
class TestLayoutProperties:
    def test_deterministic(self, layout: LayoutType):
        """Same tree and config → identical result."""
        assert layout_of(make_project(), layout) == layout_of(make_project(), layout)

    def test_source_unchanged(self, layout: LayoutType):
        source = make_project()
        layout_of(source, layout)
        assert source == make_project()

    def test_depth_invariant(self, layout: LayoutType):
        """Every child is exactly one level below its parent."""
        result = layout_of(make_project(), layout)
        for node in result.nodes:
            for child in node.children:
                assert child.depth == node.depth + 1
                assert child.parent_id == node.id

    def test_one_edge_per_child(self, layout: LayoutType):
        result = layout_of(make_project(), layout)
        assert len(result.edges) == len(result.nodes) - 1

    def test_canvas_contains_every_node(self, layout: LayoutType):
        """Translated nodes fit inside the canvas with the export padding to spare."""
        result = layout_of(make_project(), layout)
        for node in result.nodes:
            x, y, w, h = result.translated(node)
            assert x >= 40 - 1e-6 and y >= 40 - 1e-6
            assert x + w <= result.width - 40 + 1e-6
            assert y + h <= result.height - 40 + 1e-6

    def test_sibling_order_preserved(self, layout: LayoutType):
        """Siblings keep source order along the packing axis (around the ring for radial)."""
        result = layout_of(make_project(), layout)
        root_cx = result.node("root").center.x
        for node in result.nodes:
            kids = node.children
            if layout == LayoutType.Radial:
                assert cyclic_descents(node) <= 1, f"children of {node.id} out of order"
                continue
            if layout == LayoutType.Vertical:
                groups = [[c.x for c in kids]]
            elif layout == LayoutType.Tree and node.depth == 0:
                # each side is ordered top to bottom on its own
                groups = [
                    [c.y for c in kids if c.center.x >= root_cx],
                    [c.y for c in kids if c.center.x < root_cx],
                ]
            else:
                groups = [[c.y for c in kids]]
            for keys in groups:
                assert keys == sorted(keys)

    def test_routes_every_edge(self, layout: LayoutType):
        config = MindMapConfig().with_layout(layout)
        result = compute_layout(make_project(), config)
        routed = route_edges(result, config)
        assert len(routed) == len(result.edges)
        assert all(r.d.startswith("M ") for r in routed)


@pytest.mark.parametrize("spacing", [0, 30, 60])
@pytest.mark.parametrize("count", [23, 28, 33, 48])
def test_crowded_radial_ring_keeps_source_order(count: int, spacing: int):
    """A root with many topics still shows them in source order around the ring."""
    source = SourceNode("root", "Root", [SourceNode(f"c{i}", f"Topic {i}") for i in range(count)])
    config = MindMapConfig(structure=StructureConfig(layout=LayoutType.Radial, horizontal_spacing=spacing))
    result = compute_layout(source, config)
    assert cyclic_descents(result.node("root")) <= 1


@pytest.mark.parametrize(
    "layout",
    [LayoutType.HorizontalRight, LayoutType.HorizontalLeft, LayoutType.Vertical, LayoutType.Tree],
)
def test_tidy_layouts_have_no_same_depth_overlaps(layout: LayoutType):
    """Tidy layouts never leave two nodes of one depth overlapping."""
    result = layout_of(make_project(), layout)
    by_depth: dict[int, list] = {}
    for node in result.nodes:
        by_depth.setdefault(node.depth, []).append(node)
    for nodes in by_depth.values():
        for i, a in enumerate(nodes):
            for b in nodes[i + 1 :]:
                assert not boxes_overlap(a, b), f"{a.id} overlaps {b.id}"
