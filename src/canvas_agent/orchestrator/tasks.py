"""In-memory board of running tasks with explicit subscription."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from canvas_agent.orchestrator.state_machine import TaskState, transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Task:
    """Snapshot of one request as shown to the user."""

    id: str
    label: str
    status_text: str = ""
    progress: float = 0.0
    state: TaskState = TaskState.IDLE
    error: str | None = None

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "id": self.id,
            "label": self.label,
            "status_text": self.status_text,
            "progress": self.progress,
            "state": self.state.value,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


class TaskEvent(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    FAILED = "failed"


Listener = Callable[[TaskEvent, Task], None]


class TaskBoard:
    """Append-only board of outstanding tasks.

    Each task gets an independent id. Progress never goes backwards: a lower
    value than the current one is clamped. Once a task is removed (finished or
    dismissed) further updates for it are ignored.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._listeners: list[Listener] = []
        self._ids = itertools.count(1)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks.values())

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def create(self, label: str) -> Task:
        task = Task(id=f"task-{next(self._ids)}", label=label)
        self._tasks[task.id] = task
        self._emit(TaskEvent.CREATED, task)
        return task

    def update(
        self,
        task_id: str,
        *,
        status_text: str | None = None,
        progress: float | None = None,
        state: TaskState | None = None,
    ) -> Task | None:
        """Apply changes to a live task. Returns ``None`` if it is gone.

        Raises:
            IllegalTransitionError: If ``state`` is not reachable from the
                task's current state.
        """
        current = self._tasks.get(task_id)
        if current is None:
            return None

        changes: dict[str, object] = {}
        if status_text is not None:
            changes["status_text"] = status_text
        if progress is not None:
            changes["progress"] = max(current.progress, min(1.0, max(0.0, progress)))
        if state is not None and state != current.state:
            changes["state"] = transition(current=current.state, to=state)

        task = replace(current, **changes)
        self._tasks[task_id] = task
        self._emit(TaskEvent.UPDATED, task)
        return task

    def fail(self, task_id: str, reason: str) -> Task | None:
        """Move a task to ``error``, report it once, then remove it."""

        current = self._tasks.get(task_id)
        if current is None:
            return None
        task = replace(
            current,
            state=transition(current=current.state, to=TaskState.ERROR),
            status_text=reason,
            error=reason,
        )
        self._tasks[task_id] = task
        self._emit(TaskEvent.FAILED, task)
        return self.remove(task_id)

    def remove(self, task_id: str) -> Task | None:
        task = self._tasks.pop(task_id, None)
        if task is not None:
            self._emit(TaskEvent.REMOVED, task)
        return task

    def dismiss(self, task_id: str) -> Task | None:
        """Drop a task from the board. Its work continues unobserved."""

        return self.remove(task_id)

    def _emit(self, event: TaskEvent, task: Task) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, task)
            except Exception:
                logger.exception(
                    "Task listener failed", extra={"event": event.value, "task_id": task.id}
                )
