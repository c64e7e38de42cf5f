"""Interactive drag — position overrides guarded against edge crossings.

A drag moves one node and its whole subtree by the same delta. Before a move
is committed, the crossing guard checks that no parent's children changed
their angular order around it compared with the computed layout; a move that
would flip any sibling pair is rejected as a whole.

Override maps hold top-left positions in canvas (post-translation)
coordinates, keyed by node id.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Mapping
from enum import Enum

from mindmap_layout.types import LayoutResult, Point

logger = logging.getLogger(__name__)

OverrideMap = dict[str, Point]


def normalize_angle(angle: float) -> float:
    """Wrap ``angle`` into [-π, π]."""
    return math.remainder(angle, 2 * math.pi)


def _angle(origin: Point, target: Point) -> float:
    return math.atan2(target.y - origin.y, target.x - origin.x)


# ─── Override Application ─────────────────────────────────────────────────────


def apply_overrides(result: LayoutResult, overrides: Mapping[str, Point]) -> LayoutResult:
    """Return a copy of ``result`` with overridden node positions.

    Overrides are canvas coordinates and are converted back into the
    result's root-centered space. Ids missing from the layout are ignored.
    Canvas size and offsets are kept so the view does not jump during a drag.
    """
    if not overrides:
        return result
    tree = result.tree.copy()
    for node_id, pos in overrides.items():
        node = tree.get(node_id)
        if node is None:
            continue
        node.x = pos.x - result.offset_x
        node.y = pos.y - result.offset_y
    return dataclasses.replace(result, nodes=tree.preorder(), edges=tree.edges(), tree=tree)


# ─── Crossing Guard ───────────────────────────────────────────────────────────


class CrossingGuard:
    """Rejects override maps that reorder siblings around their parent.

    The reference order is taken once from ``baseline`` (a layout with no
    overrides): for each parent with at least two children, the angle of
    every child's center seen from the parent's center. Angles serve purely
    as an ordering signal, whatever the layout paradigm.
    """

    def __init__(self, baseline: LayoutResult) -> None:
        self.baseline = baseline
        self._origins: dict[str, Point] = {
            n.id: Point(n.x + baseline.offset_x, n.y + baseline.offset_y) for n in baseline.nodes
        }
        self._angles: dict[str, dict[str, float]] = {}
        for node in baseline.nodes:
            if len(node.children) < 2:
                continue
            parent_center = self.center(node.id, {})
            self._angles[node.id] = {c.id: _angle(parent_center, self.center(c.id, {})) for c in node.children}

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._origins

    def position(self, node_id: str, overrides: Mapping[str, Point]) -> Point:
        """Canvas top-left of ``node_id``: the override if present, else the baseline position."""
        override = overrides.get(node_id)
        return override if override is not None else self._origins[node_id]

    def center(self, node_id: str, overrides: Mapping[str, Point]) -> Point:
        node = self.baseline.tree.node(node_id)
        pos = self.position(node_id, overrides)
        return Point(pos.x + node.width / 2, pos.y + node.height / 2)

    def would_cross(self, overrides: Mapping[str, Point]) -> bool:
        """True if any sibling pair changes angular order under ``overrides``."""
        for parent_id, reference in self._angles.items():
            parent = self.baseline.tree.node(parent_id)
            parent_center = self.center(parent_id, overrides)
            current = [(c.id, _angle(parent_center, self.center(c.id, overrides))) for c in parent.children]

            for i, (id_a, angle_a) in enumerate(current):
                for id_b, angle_b in current[i + 1 :]:
                    before = normalize_angle(reference[id_b] - reference[id_a])
                    after = normalize_angle(angle_b - angle_a)
                    if (before > 0) != (after > 0):
                        logger.debug("move rejected: %s and %s swap order under %s", id_a, id_b, parent_id)
                        return True
        return False

    def accepts(self, overrides: Mapping[str, Point]) -> bool:
        return not self.would_cross(overrides)

    def propose_move(
        self,
        overrides: Mapping[str, Point],
        node_id: str,
        x: float,
        y: float,
    ) -> OverrideMap | None:
        """Build the candidate map for dragging ``node_id`` to canvas ``(x, y)``.

        Every descendant moves by the same delta from its current position.
        Returns None when ``node_id`` is not part of the baseline layout.
        """
        if node_id not in self._origins:
            logger.debug("drag of unknown node %r ignored", node_id)
            return None

        current = self.position(node_id, overrides)
        dx = x - current.x
        dy = y - current.y

        candidate: OverrideMap = dict(overrides)
        candidate[node_id] = Point(x, y)
        for desc in self.baseline.tree.descendants(node_id):
            pos = self.position(desc.id, overrides)
            candidate[desc.id] = Point(pos.x + dx, pos.y + dy)
        return candidate


# ─── Drag Session ─────────────────────────────────────────────────────────────


class DragState(str, Enum):
    Idle = "idle"
    Dragging = "dragging"


def _structure_key(result: LayoutResult) -> tuple:
    return (result.layout, tuple((n.id, n.parent_id) for n in result.nodes))


class DragSession:
    """Owns the override map of one interactive view.

    State machine: Idle → Dragging (``begin``) → Idle (``end``). Each
    ``move`` either commits a validated override map or leaves the previous
    one untouched; no invalid intermediate map is ever stored.
    """

    def __init__(self, baseline: LayoutResult) -> None:
        self._guard = CrossingGuard(baseline)
        self._overrides: OverrideMap = {}
        self.state = DragState.Idle
        self.drag_node_id: str | None = None

    @property
    def baseline(self) -> LayoutResult:
        return self._guard.baseline

    @property
    def overrides(self) -> OverrideMap:
        return dict(self._overrides)

    def begin(self, node_id: str) -> bool:
        """Pointer-down over ``node_id``. Unknown ids leave the session idle."""
        if node_id not in self._guard:
            logger.debug("drag start on unknown node %r ignored", node_id)
            return False
        self.state = DragState.Dragging
        self.drag_node_id = node_id
        return True

    def move(self, x: float, y: float) -> bool:
        """Pointer-move to canvas ``(x, y)``; returns True if the move was committed."""
        if self.state is not DragState.Dragging or self.drag_node_id is None:
            return False
        candidate = self._guard.propose_move(self._overrides, self.drag_node_id, x, y)
        if candidate is None or self._guard.would_cross(candidate):
            return False
        self._overrides = candidate
        return True

    def end(self) -> None:
        self.state = DragState.Idle
        self.drag_node_id = None

    def reset(self) -> None:
        """Drop every override (call when the tree or the paradigm changes)."""
        self._overrides = {}
        self.end()

    def rebase(self, result: LayoutResult) -> None:
        """Adopt a recomputed layout as the new baseline.

        Overrides survive only when the paradigm and the visible parent/child
        structure are unchanged.
        """
        if _structure_key(result) != _structure_key(self.baseline):
            self.reset()
        self._guard = CrossingGuard(result)

    def apply(self, result: LayoutResult | None = None) -> LayoutResult:
        """Overlay the current overrides on ``result`` (default: the baseline)."""
        return apply_overrides(result if result is not None else self.baseline, self._overrides)
