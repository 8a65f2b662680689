"""Result types produced by the recovery parser."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

OPERATION_KEYS: tuple[str, ...] = ("operation", "tool")
PARAMETER_KEYS: tuple[str, ...] = ("parameters", "params")


@dataclass(frozen=True, slots=True)
class ToolCall:
    """One structured operation extracted from model output.

    Instances are never mutated after parsing; downstream stages only filter
    and group them.
    """

    operation: str
    parameters: Any

    def identity(self) -> str:
        """Canonical key used to drop duplicate operations."""

        return self.operation + "\x00" + json.dumps(self.parameters, sort_keys=True, default=str)

    def param(self, key: str, default: Any = None) -> Any:
        if isinstance(self.parameters, dict):
            return self.parameters.get(key, default)
        return default

    def to_json(self) -> dict[str, Any]:
        return {"operation": self.operation, "parameters": self.parameters}

    @staticmethod
    def from_json(obj: object) -> ToolCall | None:
        """Build a ToolCall from a decoded object, or None if it is not one.

        Accepts both the canonical ``operation``/``parameters`` keys and the
        legacy ``tool``/``params`` spelling.
        """

        if not isinstance(obj, dict):
            return None

        operation = next((obj[k] for k in OPERATION_KEYS if k in obj), None)
        if not isinstance(operation, str) or not operation.strip():
            return None

        parameters = next((obj[k] for k in PARAMETER_KEYS if k in obj), None)
        if parameters is None:
            return None

        return ToolCall(operation=operation.strip(), parameters=parameters)


@dataclass(frozen=True, slots=True)
class ParseSuccess:
    calls: tuple[ToolCall, ...]
    strategy: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class ParseFailure:
    diagnostic: str

    @property
    def ok(self) -> bool:
        return False


ParseResult = ParseSuccess | ParseFailure
