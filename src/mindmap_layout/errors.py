"""Exception hierarchy for mindmap_layout."""

from __future__ import annotations


class MindMapLayoutError(Exception):
    pass


class ConfigurationError(MindMapLayoutError):
    """A configuration value is out of range or of the wrong kind."""


class UnknownLayoutError(ConfigurationError, ValueError):
    """A layout paradigm name does not match any LayoutType."""

    def __init__(self, name: object) -> None:
        super().__init__(f"unknown layout type: {name!r}")
        self.name = name
