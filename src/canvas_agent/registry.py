"""Partition parsed tool calls by operation kind."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from canvas_agent.parsing.models import ToolCall


class OperationKind(str, Enum):
    CARD = "card"
    TABLE = "table"
    CONNECTION = "connection"
    GROUP = "group"
    SLIDE = "slide"
    QUESTION = "question"

    @classmethod
    def from_name(cls, name: str) -> OperationKind | None:
        return _NAMES.get(name.strip().lower())


_NAMES: dict[str, OperationKind] = {kind.value: kind for kind in OperationKind}
_NAMES.update(
    {
        "create_card": OperationKind.CARD,
        "create_table": OperationKind.TABLE,
        "create_connection": OperationKind.CONNECTION,
        "create_group": OperationKind.GROUP,
        "create_slide": OperationKind.SLIDE,
        "ask_user": OperationKind.QUESTION,
    }
)

_LABELS: dict[OperationKind, tuple[str, str]] = {
    OperationKind.CARD: ("card", "cards"),
    OperationKind.TABLE: ("table", "tables"),
    OperationKind.CONNECTION: ("connection", "connections"),
    OperationKind.GROUP: ("group", "groups"),
    OperationKind.SLIDE: ("slide", "slides"),
}


@dataclass(frozen=True, slots=True)
class OperationBuckets:
    """Tool calls of one batch, split by kind, each in original order."""

    cards: tuple[ToolCall, ...] = ()
    tables: tuple[ToolCall, ...] = ()
    connections: tuple[ToolCall, ...] = ()
    groups: tuple[ToolCall, ...] = ()
    slides: tuple[ToolCall, ...] = ()
    questions: tuple[ToolCall, ...] = ()
    unknown: tuple[ToolCall, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when nothing in the batch can be placed on the canvas."""

        return not (
            self.cards
            or self.tables
            or self.connections
            or self.groups
            or self.slides
            or self.questions
        )

    def counts(self) -> dict[OperationKind, int]:
        return {
            OperationKind.CARD: len(self.cards),
            OperationKind.TABLE: len(self.tables),
            OperationKind.CONNECTION: len(self.connections),
            OperationKind.GROUP: len(self.groups),
            OperationKind.SLIDE: len(self.slides),
            OperationKind.QUESTION: len(self.questions),
        }

    def describe(self) -> str:
        """Human summary such as ``"3 cards + 1 table"``."""

        parts = []
        for kind, count in self.counts().items():
            if count and kind in _LABELS:
                singular, plural = _LABELS[kind]
                parts.append(f"{count} {singular if count == 1 else plural}")
        return " + ".join(parts)


def classify(calls: Iterable[ToolCall]) -> OperationBuckets:
    buckets: dict[OperationKind | None, list[ToolCall]] = {}
    for call in calls:
        buckets.setdefault(OperationKind.from_name(call.operation), []).append(call)

    def _get(kind: OperationKind | None) -> tuple[ToolCall, ...]:
        return tuple(buckets.get(kind, ()))

    return OperationBuckets(
        cards=_get(OperationKind.CARD),
        tables=_get(OperationKind.TABLE),
        connections=_get(OperationKind.CONNECTION),
        groups=_get(OperationKind.GROUP),
        slides=_get(OperationKind.SLIDE),
        questions=_get(OperationKind.QUESTION),
        unknown=_get(None),
    )
