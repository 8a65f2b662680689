"""Geometry and placement types produced by the layout engine."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def to_json(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned rectangle in canvas coordinates."""

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

    @property
    def center(self) -> Point:
        return Point((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def union(self, other: BoundingBox) -> BoundingBox:
        return BoundingBox(
            min_x=min(self.min_x, other.min_x),
            min_y=min(self.min_y, other.min_y),
            max_x=max(self.max_x, other.max_x),
            max_y=max(self.max_y, other.max_y),
        )

    def expand(self, padding: float) -> BoundingBox:
        return BoundingBox(
            min_x=self.min_x - padding,
            min_y=self.min_y - padding,
            max_x=self.max_x + padding,
            max_y=self.max_y + padding,
        )

    @staticmethod
    def enclosing(boxes: Iterable[BoundingBox]) -> BoundingBox | None:
        result: BoundingBox | None = None
        for box in boxes:
            result = box if result is None else result.union(box)
        return result

    def to_json(self) -> dict[str, float]:
        return {
            "x": self.min_x,
            "y": self.min_y,
            "w": self.width,
            "h": self.height,
        }


@dataclass(frozen=True, slots=True)
class LayoutNode:
    """One placeable artifact with its computed position and size."""

    name: str
    kind: str
    width: float
    height: float
    position: Point
    layer_index: int = 0
    parameters: Any = field(default=None, compare=False)

    @property
    def bounds(self) -> BoundingBox:
        return BoundingBox(
            min_x=self.position.x,
            min_y=self.position.y,
            max_x=self.position.x + self.width,
            max_y=self.position.y + self.height,
        )

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind,
            "position": self.position.to_json(),
            "width": self.width,
            "height": self.height,
            "layer_index": self.layer_index,
            "parameters": self.parameters,
        }


@dataclass(frozen=True, slots=True)
class ResolvedConnection:
    source: str
    target: str
    label: str
    start: Point
    end: Point

    def to_json(self) -> dict[str, object]:
        return {
            "from": self.source,
            "to": self.target,
            "label": self.label,
            "start": self.start.to_json(),
            "end": self.end.to_json(),
        }


@dataclass(frozen=True, slots=True)
class ResolvedGroup:
    label: str
    members: tuple[str, ...]
    bounds: BoundingBox

    def to_json(self) -> dict[str, object]:
        return {"label": self.label, "members": list(self.members), "bounds": self.bounds.to_json()}


@dataclass(frozen=True, slots=True)
class PlacedQuestion:
    question: str
    options: tuple[str, ...]
    position: Point

    def to_json(self) -> dict[str, object]:
        return {
            "question": self.question,
            "options": list(self.options),
            "position": self.position.to_json(),
        }


@dataclass(frozen=True, slots=True)
class LayoutResult:
    nodes: tuple[LayoutNode, ...] = ()
    bounds: BoundingBox | None = None
    connections: tuple[ResolvedConnection, ...] = ()
    groups: tuple[ResolvedGroup, ...] = ()
    question: PlacedQuestion | None = None
    mode: str = "grid"

    def node(self, name: str) -> LayoutNode | None:
        """Look a node up by name; duplicate names bind to the last one placed."""

        found = None
        for candidate in self.nodes:
            if candidate.name == name:
                found = candidate
        return found

    def group_of(self, name: str) -> ResolvedGroup | None:
        """The group a node ends up in; the last group listing it wins."""

        found = None
        for group in self.groups:
            if name in group.members:
                found = group
        return found

    def to_json(self) -> dict[str, object]:
        return {
            "mode": self.mode,
            "nodes": [n.to_json() for n in self.nodes],
            "bounds": self.bounds.to_json() if self.bounds else None,
            "connections": [c.to_json() for c in self.connections],
            "groups": [g.to_json() for g in self.groups],
            "question": self.question.to_json() if self.question else None,
        }
