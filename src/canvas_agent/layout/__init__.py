"""Spatial layout of parsed operations."""

from canvas_agent.layout.engine import LayoutEngine
from canvas_agent.layout.models import (
    BoundingBox,
    LayoutNode,
    LayoutResult,
    PlacedQuestion,
    Point,
    ResolvedConnection,
    ResolvedGroup,
)

__all__ = [
    "BoundingBox",
    "LayoutEngine",
    "LayoutNode",
    "LayoutResult",
    "PlacedQuestion",
    "Point",
    "ResolvedConnection",
    "ResolvedGroup",
]
