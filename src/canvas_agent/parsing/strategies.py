"""The escalating recovery strategies.

Each strategy is a pure function ``str -> list[ToolCall] | None``. A strategy
returns None when it finds nothing usable; it never raises.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from canvas_agent.parsing.models import ToolCall
from canvas_agent.parsing.repair import (
    OPERATION_NAME_RE,
    PARAMETERS_AFTER_RE,
    contains_marker,
    fenced_blocks,
    find_matching,
    last_closed_element_end,
    load_with_repairs,
    normalize_aggressively,
    repair_string_literals,
    scan_markers,
    strip_open_fence,
    try_load,
)

Strategy = Callable[[str], list[ToolCall] | None]


def coerce_calls(value: Any) -> list[ToolCall] | None:
    """Accept a single operation object or a non-empty list of them.

    A list is rejected as a whole if any element is not a valid operation.
    """

    if isinstance(value, dict):
        call = ToolCall.from_json(value)
        return [call] if call is not None else None

    if isinstance(value, list) and value:
        calls = [ToolCall.from_json(item) for item in value]
        if all(call is not None for call in calls):
            return calls  # type: ignore[return-value]
    return None


def _coerce_single(value: Any) -> ToolCall | None:
    return ToolCall.from_json(value) if isinstance(value, dict) else None


def _dedupe_append(calls: list[ToolCall], seen: set[str], call: ToolCall) -> None:
    key = call.identity()
    if key not in seen:
        seen.add(key)
        calls.append(call)


def direct(text: str) -> list[ToolCall] | None:
    return coerce_calls(try_load(text.strip()))


def focus_text(text: str) -> str:
    """The region later strategies work on.

    The preferred fenced block when there is one, otherwise the text with an
    unterminated leading fence removed.
    """

    stripped = text.strip()
    blocks = fenced_blocks(stripped)
    if blocks:
        return next((b for b in blocks if contains_marker(b)), blocks[0])
    return strip_open_fence(stripped)


def fenced(text: str) -> list[ToolCall] | None:
    stripped = text.strip()
    blocks = fenced_blocks(stripped)
    if blocks:
        block = next((b for b in blocks if contains_marker(b)), blocks[0])
    else:
        block = strip_open_fence(stripped)
        if block == stripped:
            return None

    calls = direct(block)
    if calls is None:
        calls = coerce_calls(try_load(repair_string_literals(block)))
    return calls


def normalized(text: str) -> list[ToolCall] | None:
    for ascii_quotes in (False, True):
        calls = coerce_calls(try_load(normalize_aggressively(text, ascii_quotes=ascii_quotes)))
        if calls is not None:
            return calls
    return None


def bracket_slice(text: str) -> list[ToolCall] | None:
    first, last = text.find("["), text.rfind("]")
    if first != -1 and last > first:
        value = load_with_repairs(text[first : last + 1])
        if isinstance(value, list):
            calls = coerce_calls(value)
            if calls is not None:
                return calls

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        call = _coerce_single(load_with_repairs(text[first : last + 1]))
        if call is not None:
            return [call]
    return None


def truncation(text: str) -> list[ToolCall] | None:
    first = text.find("[")
    if first == -1:
        return None

    end = last_closed_element_end(text, first)
    if end is None:
        return None

    candidate = text[first : end + 1].rstrip().rstrip(",") + "]"
    value = load_with_repairs(candidate)
    return coerce_calls(value) if isinstance(value, list) else None


def object_scan(text: str) -> list[ToolCall] | None:
    calls: list[ToolCall] = []
    seen: set[str] = set()
    for marker in scan_markers(text):
        if marker.enclosing_brace is None:
            continue
        end = find_matching(text, marker.enclosing_brace)
        if end is None:
            continue
        call = _coerce_single(load_with_repairs(text[marker.enclosing_brace : end + 1]))
        if call is not None:
            _dedupe_append(calls, seen, call)
    return calls or None


def field_scan(text: str) -> list[ToolCall] | None:
    calls: list[ToolCall] = []
    seen: set[str] = set()
    for marker in scan_markers(text):
        name_match = OPERATION_NAME_RE.match(text, marker.start)
        if name_match is None:
            continue

        params_match = PARAMETERS_AFTER_RE.match(text, name_match.end())
        if params_match is None:
            continue

        start = params_match.end()
        if start >= len(text) or text[start] not in "{[":
            continue
        end = find_matching(text, start)
        if end is None:
            continue

        parameters = load_with_repairs(text[start : end + 1])
        if parameters is None:
            continue
        _dedupe_append(calls, seen, ToolCall(operation=name_match.group(1).strip(), parameters=parameters))
    return calls or None


@dataclass(frozen=True, slots=True)
class NamedStrategy:
    name: str
    apply: Strategy
    uses_focus: bool


STRATEGIES: tuple[NamedStrategy, ...] = (
    NamedStrategy("direct", direct, uses_focus=False),
    NamedStrategy("fenced", fenced, uses_focus=False),
    NamedStrategy("normalized", normalized, uses_focus=True),
    NamedStrategy("bracket_slice", bracket_slice, uses_focus=True),
    NamedStrategy("truncation", truncation, uses_focus=True),
    NamedStrategy("object_scan", object_scan, uses_focus=True),
    NamedStrategy("field_scan", field_scan, uses_focus=True),
)
