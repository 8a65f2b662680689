"""Interfaces the orchestrator is wired to, and the values it hands them."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

from canvas_agent.layout.models import (
    BoundingBox,
    LayoutNode,
    LayoutResult,
    PlacedQuestion,
    Point,
    ResolvedConnection,
    ResolvedGroup,
)
from canvas_agent.llm.provider import Attachment

ArtifactStatus = Literal["summarizing", "done", "error"]
ExportKind = Literal["slides", "tables"]


@dataclass(frozen=True, slots=True)
class MaterializationBatch:
    """Everything one response puts on the canvas, applied in one call."""

    task_id: str
    nodes: tuple[LayoutNode, ...]
    connections: tuple[ResolvedConnection, ...] = ()
    groups: tuple[ResolvedGroup, ...] = ()
    question: PlacedQuestion | None = None
    focus_region: BoundingBox | None = None

    @staticmethod
    def from_layout(
        task_id: str, result: LayoutResult, focus_region: BoundingBox | None
    ) -> MaterializationBatch:
        return MaterializationBatch(
            task_id=task_id,
            nodes=result.nodes,
            connections=result.connections,
            groups=result.groups,
            question=result.question,
            focus_region=focus_region,
        )

    @property
    def bounds(self) -> BoundingBox | None:
        return BoundingBox.enclosing(node.bounds for node in self.nodes)

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "task_id": self.task_id,
            "nodes": [node.to_json() for node in self.nodes],
            "connections": [conn.to_json() for conn in self.connections],
            "groups": [group.to_json() for group in self.groups],
        }
        if self.question is not None:
            out["question"] = self.question.to_json()
        if self.focus_region is not None:
            out["focus_region"] = self.focus_region.to_json()
        return out


@dataclass(frozen=True, slots=True)
class Suggestion:
    """A follow-up step offered next to freshly created content."""

    message: str
    options: tuple[str, ...]
    position: Point

    def to_json(self) -> dict[str, object]:
        return {
            "message": self.message,
            "options": list(self.options),
            "position": self.position.to_json(),
        }


class CanvasRenderer(Protocol):
    """The drawing surface. Every call is synchronous and applied at once."""

    def viewport_center(self) -> Point: ...

    def selection(self) -> Sequence[str]:
        """Display names of the selected artifacts, empty if none."""
        ...

    def selection_context(self) -> str: ...

    def canvas_context(self) -> str: ...

    def attachments(self) -> Sequence[Attachment]: ...

    def materialize(self, batch: MaterializationBatch) -> None: ...

    def focus(self, bounds: BoundingBox) -> None: ...

    def show_suggestion(self, task_id: str, suggestion: Suggestion) -> None: ...

    def set_artifact_status(self, artifact_id: str, status: ArtifactStatus) -> None: ...

    def write_summary(self, artifact_id: str, summary: str, detail: str) -> None: ...


class ClarificationUI(Protocol):
    """Asks the user to pick one option. May wait indefinitely."""

    async def choose(self, task_id: str, question: str, options: Sequence[str]) -> str: ...


class Exporter(Protocol):
    """Turns placed slides or tables into a document."""

    async def export(self, kind: ExportKind, batch: MaterializationBatch) -> None: ...
