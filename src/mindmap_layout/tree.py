"""Source tree model — the caller-owned mind map handed to the layout engine.

The engine only reads these objects. Ids are expected to be unique and the
structure acyclic; neither is checked (a malformed tree gives undefined
layout output).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeShape(str, Enum):
    """Outline drawn around a node by renderers."""

    RoundedRect = "rounded-rect"
    Rect = "rect"
    Pill = "pill"
    Diamond = "diamond"
    Ellipse = "ellipse"
    Hexagon = "hexagon"


@dataclass
class SourceNode:
    """One node of the input mind map.

    Only ``id``, ``text``, ``children``, ``icon``, ``font_size``,
    ``font_weight`` and ``collapsed`` influence geometry; the remaining style
    overrides are carried through for renderers.
    """

    id: str
    text: str
    children: list[SourceNode] = field(default_factory=list)
    icon: str | None = None
    color: str | None = None
    bg_color: str | None = None
    font_size: float | None = None
    font_weight: str | None = None
    font_style: str | None = None
    shape: NodeShape | None = None
    collapsed: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def walk(self) -> Iterator[SourceNode]:
        """Yield this node and every descendant in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def count(self) -> int:
        return sum(1 for _ in self.walk())

    def find(self, node_id: str) -> SourceNode | None:
        for node in self.walk():
            if node.id == node_id:
                return node
        return None
