"""Geometry primitives and the rectangle oracle consumed by routing.

Everything downstream of layout reads node positions through a
``GeometryOracle``: ``rect_of`` gives a node's live rectangle and
``container_of`` gives the rectangle of the group container the node sits
in.  Either returns ``None`` when the node is not currently rendered, which
callers treat as "skip", never as an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol


Point = tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle in container-local pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def top_center(self) -> Point:
        return (self.center_x, self.top)

    @property
    def bottom_center(self) -> Point:
        return (self.center_x, self.bottom)

    def translated(self, dx: float = 0.0, dy: float = 0.0) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class GeometryOracle(Protocol):
    def rect_of(self, node_id: str) -> Optional[Rect]: ...

    def container_of(self, node_id: str) -> Optional[Rect]: ...


@dataclass
class StaticGeometry:
    """A fixed oracle built from plain dictionaries.

    ``containers`` maps a node id to the rectangle of its enclosing group
    container.
    """
    rects: dict[str, Rect] = field(default_factory=dict)
    containers: dict[str, Rect] = field(default_factory=dict)

    def rect_of(self, node_id: str) -> Optional[Rect]:
        return self.rects.get(node_id)

    def container_of(self, node_id: str) -> Optional[Rect]:
        return self.containers.get(node_id)
