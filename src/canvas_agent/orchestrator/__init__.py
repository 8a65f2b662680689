"""Task orchestration: one state machine per user request."""

from canvas_agent.orchestrator.agent import CanvasAgent
from canvas_agent.orchestrator.collaborators import (
    CanvasRenderer,
    ClarificationUI,
    Exporter,
    MaterializationBatch,
    Suggestion,
)
from canvas_agent.orchestrator.state_machine import (
    ALLOWED_TRANSITIONS,
    IllegalTransitionError,
    TaskState,
    transition,
)
from canvas_agent.orchestrator.tasks import Task, TaskBoard, TaskEvent

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CanvasAgent",
    "CanvasRenderer",
    "ClarificationUI",
    "Exporter",
    "IllegalTransitionError",
    "MaterializationBatch",
    "Suggestion",
    "Task",
    "TaskBoard",
    "TaskEvent",
    "TaskState",
    "transition",
]
