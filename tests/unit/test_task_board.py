"""Unit tests for the task board and its subscriptions."""

from __future__ import annotations

import pytest

from canvas_agent.orchestrator import IllegalTransitionError, TaskBoard, TaskEvent, TaskState
from canvas_agent.orchestrator.tasks import Task


def _recorder(board: TaskBoard) -> list[tuple[TaskEvent, Task]]:
    events: list[tuple[TaskEvent, Task]] = []
    board.subscribe(lambda event, task: events.append((event, task)))
    return events


def test_tasks_get_independent_ids() -> None:
    board = TaskBoard()

    first = board.create("one")
    second = board.create("two")

    assert first.id != second.id
    assert [t.label for t in board.tasks] == ["one", "two"]
    assert first.state is TaskState.IDLE


def test_progress_never_goes_backwards() -> None:
    board = TaskBoard()
    task = board.create("req")

    board.update(task.id, progress=0.5)
    updated = board.update(task.id, progress=0.2, status_text="still going")

    assert updated is not None
    assert updated.progress == 0.5
    assert updated.status_text == "still going"
    assert board.update(task.id, progress=7.0).progress == 1.0


def test_state_changes_are_validated() -> None:
    board = TaskBoard()
    task = board.create("req")

    board.update(task.id, state=TaskState.SCANNING)

    with pytest.raises(IllegalTransitionError):
        board.update(task.id, state=TaskState.DONE)


def test_events_are_delivered_in_order() -> None:
    board = TaskBoard()
    events = _recorder(board)

    task = board.create("req")
    board.update(task.id, status_text="working", state=TaskState.SCANNING)
    board.remove(task.id)

    assert [e for e, _ in events] == [TaskEvent.CREATED, TaskEvent.UPDATED, TaskEvent.REMOVED]
    assert events[1][1].status_text == "working"
    assert board.tasks == ()


def test_fail_reports_once_and_removes() -> None:
    board = TaskBoard()
    events = _recorder(board)
    task = board.create("req")

    board.fail(task.id, "service down")

    failed = [t for e, t in events if e is TaskEvent.FAILED]
    assert len(failed) == 1
    assert failed[0].state is TaskState.ERROR
    assert failed[0].error == "service down"
    assert events[-1][0] is TaskEvent.REMOVED
    assert board.get(task.id) is None
    assert board.fail(task.id, "again") is None


def test_dismissed_tasks_ignore_updates() -> None:
    board = TaskBoard()
    events = _recorder(board)
    task = board.create("req")

    board.dismiss(task.id)

    assert board.update(task.id, status_text="late") is None
    assert [e for e, _ in events] == [TaskEvent.CREATED, TaskEvent.REMOVED]


def test_unsubscribe_stops_delivery() -> None:
    board = TaskBoard()
    seen: list[TaskEvent] = []
    unsubscribe = board.subscribe(lambda event, task: seen.append(event))

    board.create("one")
    unsubscribe()
    board.create("two")

    assert seen == [TaskEvent.CREATED]


def test_failing_listener_does_not_block_others() -> None:
    board = TaskBoard()

    def broken(event: TaskEvent, task: Task) -> None:
        raise RuntimeError("listener bug")

    board.subscribe(broken)
    events = _recorder(board)

    board.create("req")

    assert [e for e, _ in events] == [TaskEvent.CREATED]


def test_task_to_json() -> None:
    task = Task(id="task-1", label="req", status_text="ok", progress=0.5, state=TaskState.PARSING)

    assert task.to_json() == {
        "id": "task-1",
        "label": "req",
        "status_text": "ok",
        "progress": 0.5,
        "state": "parsing",
    }
