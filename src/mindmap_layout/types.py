"""Layout types shared by the layout pipeline, the edge router and drag handling."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

import networkx as nx

from mindmap_layout.config import LayoutType
from mindmap_layout.tree import SourceNode


@dataclass
class Point:
    """A 2D point (or direction vector) in layout units."""

    x: float
    y: float


@dataclass
class Bounds:
    """Axis-aligned bounding box of a set of nodes."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


@dataclass
class LayoutNode:
    """A positioned node in the layout.

    ``x``/``y`` is the top-left corner in a root-centered space; the canvas
    offset of the owning LayoutResult is applied only at render time.
    ``parent_id`` is a lookup key into the LayoutTree, not an ownership edge.
    """

    id: str
    source: SourceNode = field(repr=False, compare=False)
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    depth: int = 0
    angle: float | None = None
    children: list[LayoutNode] = field(default_factory=list, repr=False)
    parent_id: str | None = None

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass
class LayoutEdge:
    """A parent → child connector. ``depth`` is the child's depth."""

    id: str
    source: LayoutNode = field(repr=False)
    target: LayoutNode = field(repr=False)
    depth: int


# ─── Layout Tree (Arena) ──────────────────────────────────────────────────────


def _clone(node: LayoutNode) -> LayoutNode:
    return dataclasses.replace(node, children=[_clone(c) for c in node.children])


class LayoutTree:
    """Arena of LayoutNodes indexed through a networkx DiGraph.

    Every graph node stores its LayoutNode under the ``data`` attribute and
    edges run parent → child, inserted in child order, so networkx traversals
    visit siblings in source order.

    Ids must be unique; a tree that repeats an id gives undefined results.
    """

    def __init__(self, root: LayoutNode) -> None:
        self.root = root
        self.graph: nx.DiGraph = nx.DiGraph()
        self.graph.add_node(root.id, data=root)
        stack = [root]
        while stack:
            node = stack.pop()
            for child in node.children:
                self.graph.add_node(child.id, data=child)
                self.graph.add_edge(node.id, child.id)
            stack.extend(reversed(node.children))

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.graph

    def node(self, node_id: str) -> LayoutNode:
        return self.graph.nodes[node_id]["data"]

    def get(self, node_id: str) -> LayoutNode | None:
        if node_id not in self.graph:
            return None
        return self.node(node_id)

    def parent(self, node: LayoutNode) -> LayoutNode | None:
        if node.parent_id is None:
            return None
        return self.node(node.parent_id)

    def preorder(self) -> list[LayoutNode]:
        return [self.node(nid) for nid in nx.dfs_preorder_nodes(self.graph, self.root.id)]

    def descendants(self, node_id: str) -> list[LayoutNode]:
        """All nodes below ``node_id`` in pre-order (the node itself excluded)."""
        ids = list(nx.dfs_preorder_nodes(self.graph, node_id))
        return [self.node(nid) for nid in ids[1:]]

    def edge_pairs(self) -> list[tuple[LayoutNode, LayoutNode]]:
        return [(self.node(u), self.node(v)) for u, v in nx.dfs_edges(self.graph, self.root.id)]

    def edges(self) -> list[LayoutEdge]:
        return [
            LayoutEdge(id=f"{src.id}->{tgt.id}", source=src, target=tgt, depth=tgt.depth)
            for src, tgt in self.edge_pairs()
        ]

    def by_depth(self) -> dict[int, list[LayoutNode]]:
        """Group nodes by depth; each group is in pre-order, keys ascend."""
        groups: dict[int, list[LayoutNode]] = {}
        for node in self.preorder():
            groups.setdefault(node.depth, []).append(node)
        return dict(sorted(groups.items()))

    def leaf_counts(self) -> dict[str, int]:
        """Number of leaves in the subtree of every node (a leaf counts itself)."""
        counts: dict[str, int] = {}
        for node in reversed(self.preorder()):
            counts[node.id] = 1 if node.is_leaf else sum(counts[c.id] for c in node.children)
        return counts

    def shift_subtree(self, node_id: str, dx: float, dy: float) -> None:
        """Translate a node together with every descendant."""
        for node in [self.node(node_id), *self.descendants(node_id)]:
            node.x += dx
            node.y += dy

    def copy(self) -> LayoutTree:
        """Clone every LayoutNode; SourceNode references are shared."""
        return LayoutTree(_clone(self.root))


# ─── Layout Result ────────────────────────────────────────────────────────────


@dataclass
class LayoutResult:
    """Self-contained layout output: everything renderers need.

    Node coordinates are untranslated; draw each node at
    ``(x + offset_x, y + offset_y)`` on a ``width × height`` canvas.
    """

    nodes: list[LayoutNode]
    edges: list[LayoutEdge]
    width: float
    height: float
    offset_x: float
    offset_y: float
    layout: LayoutType
    tree: LayoutTree = field(repr=False, compare=False)

    def node(self, node_id: str) -> LayoutNode | None:
        return self.tree.get(node_id)

    def translated(self, node: LayoutNode) -> tuple[float, float, float, float]:
        """Return (x, y, width, height) of ``node`` in canvas coordinates."""
        return (node.x + self.offset_x, node.y + self.offset_y, node.width, node.height)
