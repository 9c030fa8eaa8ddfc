"""cornifer/map_object.py — Minimal scene-graph node for rooms and markers.

Positions are parent-relative; ``world_position`` walks up the parent chain.
Drawing and hit-testing UI live outside this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from cornifer.placement import PlacedObject


@dataclass(eq=False)
class MapObject:
    """A positionable, sizeable node with children."""

    name: str = ""
    position: tuple[float, float] = (0.0, 0.0)
    parent: Optional[MapObject] = field(default=None, repr=False)
    children: list[MapObject] = field(default_factory=list, repr=False)

    @property
    def size(self) -> tuple[float, float]:
        return (0.0, 0.0)

    @property
    def world_position(self) -> tuple[float, float]:
        if self.parent is None:
            return self.position
        px, py = self.parent.world_position
        return (px + self.position[0], py + self.position[1])

    def add_child(self, child: MapObject) -> MapObject:
        """Attach *child*, detaching it from any previous parent."""
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: MapObject) -> bool:
        if child not in self.children:
            return False
        self.children.remove(child)
        child.parent = None
        return True

    def clear_children(self) -> None:
        for child in self.children:
            child.parent = None
        self.children.clear()


@dataclass(eq=False)
class ObjectNode(MapObject):
    """A placed object attached to a room."""

    placed: Optional[PlacedObject] = None


@dataclass(eq=False)
class TextMarker(MapObject):
    """A text label, aligned inside the parent by fractional ``align``."""

    text: str = ""
    align: tuple[float, float] = (0.5, 0.5)
