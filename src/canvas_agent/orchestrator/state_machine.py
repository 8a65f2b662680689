from __future__ import annotations

from enum import Enum


class TaskState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CLARIFYING = "clarifying"
    DISPATCHING = "dispatching"
    PARSING = "parsing"
    EXECUTING = "executing"
    SUGGESTING = "suggesting"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({TaskState.DONE, TaskState.ERROR})

ALLOWED_TRANSITIONS: dict[TaskState, set[TaskState]] = {
    TaskState.IDLE: {TaskState.SCANNING},
    TaskState.SCANNING: {TaskState.CLARIFYING, TaskState.DISPATCHING},
    TaskState.CLARIFYING: {TaskState.DISPATCHING},
    TaskState.DISPATCHING: {TaskState.PARSING},
    TaskState.PARSING: {TaskState.EXECUTING},
    TaskState.EXECUTING: {TaskState.SUGGESTING},
    TaskState.SUGGESTING: {TaskState.DONE},
    TaskState.DONE: set(),
    TaskState.ERROR: set(),
}

# Any unfinished task may fail.
for _state, _targets in ALLOWED_TRANSITIONS.items():
    if not _state.is_terminal:
        _targets.add(TaskState.ERROR)


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: TaskState, to: TaskState) -> TaskState:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to
