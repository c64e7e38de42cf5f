"""Layout configuration.

Configuration is split into the same groups a mind map editor exposes:
structure (paradigm and spacing), typography, node style, links and export.
Defaults reproduce the stock light theme.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from mindmap_layout.errors import ConfigurationError, UnknownLayoutError
from mindmap_layout.tree import NodeShape

# ─── Enums ────────────────────────────────────────────────────────────────────


class LayoutType(str, Enum):
    """The paradigm used to arrange the tree."""

    Radial = "radial"
    HorizontalRight = "horizontal-right"
    HorizontalLeft = "horizontal-left"
    Vertical = "vertical"
    Tree = "tree"

    @classmethod
    def parse(cls, value: LayoutType | str) -> LayoutType:
        try:
            return cls(value)
        except ValueError:
            raise UnknownLayoutError(value) from None


class LinkStyle(str, Enum):
    Bezier = "bezier"
    Straight = "straight"
    Angular = "angular"
    Organic = "organic"


class LinkStroke(str, Enum):
    Solid = "solid"
    Dashed = "dashed"
    Dotted = "dotted"


class MarkerShape(str, Enum):
    NONE = "none"
    Arrow = "arrow"
    Triangle = "triangle"
    Square = "square"
    Diamond = "diamond"
    Circle = "circle"
    Dot = "dot"


DEFAULT_PALETTE: tuple[str, ...] = (
    "#4F46E5",
    "#7C3AED",
    "#EC4899",
    "#F59E0B",
    "#10B981",
    "#06B6D4",
    "#F97316",
    "#EF4444",
)

DEFAULT_FONT_FAMILY = "'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif"

_E = TypeVar("_E", bound=Enum)


def _coerce(enum_cls: type[_E], value: Any, name: str) -> _E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigurationError(f"{name}: {value!r} is not a valid {enum_cls.__name__}") from None


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


# ─── Config Groups ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StructureConfig:
    """Paradigm selection and spacing units shared by every strategy."""

    layout: LayoutType = LayoutType.Radial
    horizontal_spacing: float = 60
    vertical_spacing: float = 30
    max_depth: int = 8

    def __post_init__(self) -> None:
        object.__setattr__(self, "layout", LayoutType.parse(self.layout))
        _require(self.horizontal_spacing >= 0, "horizontal_spacing must be >= 0")
        _require(self.vertical_spacing >= 0, "vertical_spacing must be >= 0")
        _require(self.max_depth >= 0, "max_depth must be >= 0")


@dataclass(frozen=True)
class TypographyConfig:
    font_family: str = DEFAULT_FONT_FAMILY
    level_font_sizes: tuple[float, ...] = (20, 15, 13, 12, 11, 10)
    font_weight: str = "normal"

    def __post_init__(self) -> None:
        object.__setattr__(self, "level_font_sizes", tuple(self.level_font_sizes))
        _require(len(self.level_font_sizes) > 0, "level_font_sizes must not be empty")
        _require(all(s > 0 for s in self.level_font_sizes), "level_font_sizes must be positive")


@dataclass(frozen=True)
class StyleConfig:
    level_colors: tuple[str, ...] = DEFAULT_PALETTE
    node_padding_x: float = 20
    node_padding_y: float = 10
    node_shape: NodeShape = NodeShape.RoundedRect
    root_font_size: float = 20

    def __post_init__(self) -> None:
        object.__setattr__(self, "level_colors", tuple(self.level_colors))
        object.__setattr__(self, "node_shape", _coerce(NodeShape, self.node_shape, "node_shape"))
        _require(len(self.level_colors) > 0, "level_colors must not be empty")
        _require(self.node_padding_x >= 0 and self.node_padding_y >= 0, "node padding must be >= 0")
        _require(self.root_font_size > 0, "root_font_size must be positive")


@dataclass(frozen=True)
class LinkConfig:
    """Connector appearance consumed by the edge router."""

    style: LinkStyle = LinkStyle.Organic
    stroke: LinkStroke = LinkStroke.Solid
    thickness: float = 4
    color: str = "#94A3B8"
    color_by_level: bool = True
    tapered: bool = True
    marker_start: MarkerShape = MarkerShape.NONE
    marker_end: MarkerShape = MarkerShape.Arrow
    marker_size: float = 8

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", _coerce(LinkStyle, self.style, "style"))
        object.__setattr__(self, "stroke", _coerce(LinkStroke, self.stroke, "stroke"))
        object.__setattr__(self, "marker_start", _coerce(MarkerShape, self.marker_start, "marker_start"))
        object.__setattr__(self, "marker_end", _coerce(MarkerShape, self.marker_end, "marker_end"))
        _require(self.thickness > 0, "thickness must be positive")
        _require(self.marker_size >= 0, "marker_size must be >= 0")


@dataclass(frozen=True)
class ExportConfig:
    padding: float = 40

    def __post_init__(self) -> None:
        _require(self.padding >= 0, "padding must be >= 0")


# ─── Aggregate ────────────────────────────────────────────────────────────────

_GROUPS: dict[str, type] = {
    "structure": StructureConfig,
    "typography": TypographyConfig,
    "style": StyleConfig,
    "link": LinkConfig,
    "export": ExportConfig,
}


@dataclass(frozen=True)
class MindMapConfig:
    """Complete configuration for one layout computation."""

    structure: StructureConfig = field(default_factory=StructureConfig)
    typography: TypographyConfig = field(default_factory=TypographyConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    link: LinkConfig = field(default_factory=LinkConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> MindMapConfig:
        """Build a config from nested plain data such as parsed JSON.

        Missing groups and missing keys keep their defaults. Unknown groups
        or keys raise ConfigurationError.
        """
        groups: dict[str, Any] = {}
        for name, values in data.items():
            group_cls = _GROUPS.get(name)
            if group_cls is None:
                raise ConfigurationError(f"unknown config group: {name!r}")
            known = {f.name for f in dataclasses.fields(group_cls)}
            unknown = set(values) - known
            if unknown:
                raise ConfigurationError(f"unknown {name} keys: {sorted(unknown)}")
            groups[name] = group_cls(**values)
        return cls(**groups)

    def with_layout(self, layout: LayoutType | str) -> MindMapConfig:
        structure = dataclasses.replace(self.structure, layout=LayoutType.parse(layout))
        return dataclasses.replace(self, structure=structure)
