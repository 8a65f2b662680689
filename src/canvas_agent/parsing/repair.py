"""Text-level helpers for recovering JSON from model output.

Everything here is a pure string transformation. None of these helpers raise
on malformed input; callers decide what to do with a failed decode.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

MARKER_RE = re.compile(r'"(?:operation|tool)"\s*:\s*"')
OPERATION_NAME_RE = re.compile(r'"(?:operation|tool)"\s*:\s*"([^"\\]+)"')
PARAMETERS_AFTER_RE = re.compile(r'\s*,\s*"(?:parameters|params)"\s*:\s*')

_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\r?\n?(.*?)\r?\n?```", re.DOTALL)
_OPEN_FENCE_RE = re.compile(r"^```[\w+-]*\s*")

_INVISIBLE_RE = re.compile("[\ufeff\u200b\u200c\u200d\u2060]")
_DOUBLE_QUOTES = str.maketrans({"\u201c": '"', "\u201d": '"', "\u201e": '"', "\u201f": '"'})
_SINGLE_QUOTES = str.maketrans({"\u2018": "'", "\u2019": "'", "\u201a": "'", "\u201b": "'"})

_LINE_COMMENT_RE = re.compile(r"//[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_SINGLE_KEY_RE = re.compile(r"'([^'\n]*)'(\s*:)")
_SINGLE_VALUE_RE = re.compile(r"(:\s*)'([^'\n]*)'")
_SINGLE_ITEM_RE = re.compile(r"([\[,]\s*)'([^'\n]*)'(?=\s*[,\]])")
_UNDEFINED_RE = re.compile(r":\s*(?:undefined|NaN)\b")

_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}

_CLOSERS = {"{": "}", "[": "]"}


def try_load(text: str) -> Any | None:
    """Decode ``text`` as JSON, returning None when it does not decode.

    Deeply nested input can exhaust the decoder's recursion limit; that is
    treated like any other decode failure.
    """

    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def repair_string_literals(text: str) -> str:
    """Escape raw control characters that appear inside double-quoted strings."""

    out: list[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ord(ch) < 0x20:
                out.append(_CONTROL_ESCAPES.get(ch, f"\\u{ord(ch):04x}"))
                continue
        elif ch == '"':
            in_string = True
        out.append(ch)
    return "".join(out)


def split_string_segments(text: str) -> list[tuple[bool, str]]:
    """Split text into ``(is_string_literal, chunk)`` pieces.

    An unterminated string runs to the end of the text.
    """

    segments: list[tuple[bool, str]] = []
    start = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                segments.append((True, text[start : i + 1]))
                start = i + 1
                in_string = False
        elif ch == '"':
            if i > start:
                segments.append((False, text[start:i]))
            start = i
            in_string = True
    if start < len(text):
        segments.append((in_string, text[start:]))
    return segments


def _map_code(text: str, fn: Callable[[str], str]) -> str:
    return "".join(chunk if is_string else fn(chunk) for is_string, chunk in split_string_segments(text))


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _fix_code(chunk: str) -> str:
    chunk = _BLOCK_COMMENT_RE.sub("", chunk)
    chunk = _LINE_COMMENT_RE.sub("", chunk)
    chunk = _SINGLE_KEY_RE.sub(lambda m: _quote(m.group(1)) + m.group(2), chunk)
    chunk = _SINGLE_VALUE_RE.sub(lambda m: m.group(1) + _quote(m.group(2)), chunk)
    chunk = _SINGLE_ITEM_RE.sub(lambda m: m.group(1) + _quote(m.group(2)), chunk)
    chunk = _UNDEFINED_RE.sub(": null", chunk)
    return chunk


def normalize_aggressively(text: str, *, ascii_quotes: bool = False) -> str:
    """Apply every structural repair the parser knows about.

    With ``ascii_quotes`` typographic quotation marks are mapped to ASCII
    first. That is destructive for prose that legitimately quotes inside a
    string value, so it is offered as a separate, later candidate.
    """

    fixed = _INVISIBLE_RE.sub("", text)
    if ascii_quotes:
        fixed = fixed.translate(_DOUBLE_QUOTES).translate(_SINGLE_QUOTES)
    fixed = repair_string_literals(fixed)
    fixed = _map_code(fixed, _fix_code)
    # Trailing commas are removed after comments so "a, // note\n}" is caught.
    fixed = _map_code(fixed, lambda chunk: _TRAILING_COMMA_RE.sub(r"\1", chunk))
    return fixed


def repair_candidates(text: str) -> list[str]:
    """Repaired variants of ``text``, mildest first, excluding ``text`` itself."""

    candidates: list[str] = []
    for candidate in (
        repair_string_literals(text),
        normalize_aggressively(text),
        normalize_aggressively(text, ascii_quotes=True),
    ):
        if candidate != text and candidate not in candidates:
            candidates.append(candidate)
    return candidates


def load_with_repairs(text: str) -> Any | None:
    """Decode text directly, then through each repair candidate in turn."""

    value = try_load(text)
    if value is not None:
        return value
    for candidate in repair_candidates(text):
        value = try_load(candidate)
        if value is not None:
            return value
    return None


def fenced_blocks(text: str) -> list[str]:
    """Return the non-empty contents of every closed ``` fence in order."""

    return [m.group(1).strip() for m in _FENCE_RE.finditer(text) if m.group(1).strip()]


def strip_open_fence(text: str) -> str:
    """Drop a leading fence whose closing fence never arrived."""

    match = _OPEN_FENCE_RE.match(text)
    if match is None:
        return text
    return text[match.end() :].strip()


def remove_fenced_blocks(text: str) -> str:
    return _FENCE_RE.sub("", text)


def contains_marker(text: str) -> bool:
    return MARKER_RE.search(text) is not None


def find_matching(text: str, start: int) -> int | None:
    """Index of the bracket closing the one at ``start``, or None.

    Brackets inside string literals are ignored and backslash escapes are
    honoured. Only the opener's own bracket type is counted.
    """

    opener = text[start]
    closer = _CLOSERS.get(opener)
    if closer is None:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
    return None


def last_closed_element_end(text: str, start: int) -> int | None:
    """End index of the last element fully closed directly inside the array at ``start``.

    Used to cut a truncated array back to its last complete element.
    """

    if start >= len(text) or text[start] != "[":
        return None

    depth = 0
    in_string = False
    escaped = False
    last_end: int | None = None
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 1:
                last_end = i
            elif depth <= 0:
                break
    return last_end


@dataclass(frozen=True, slots=True)
class Marker:
    """An operation-name key found outside any string literal."""

    start: int
    end: int
    enclosing_brace: int | None


def scan_markers(text: str) -> list[Marker]:
    """Locate operation-name markers and the ``{`` that encloses each one."""

    matches = {m.start(): m for m in MARKER_RE.finditer(text)}
    if not matches:
        return []

    found: list[Marker] = []
    stack: list[int] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            match = matches.get(i)
            if match is not None:
                found.append(
                    Marker(start=i, end=match.end(), enclosing_brace=stack[-1] if stack else None)
                )
            in_string = True
        elif ch == "{":
            stack.append(i)
        elif ch == "}" and stack:
            stack.pop()
    return found


def load_json_object(text: str) -> dict[str, Any] | None:
    """Find the first JSON object in free-form text.

    Tries the whole text, then each fenced block, then the outermost brace
    slice, each with the repair passes.
    """

    stripped = text.strip()
    candidates = [stripped, *fenced_blocks(stripped)]
    first, last = stripped.find("{"), stripped.rfind("}")
    if first != -1 and last > first:
        candidates.append(stripped[first : last + 1])

    for candidate in candidates:
        value = load_with_repairs(candidate)
        if isinstance(value, dict):
            return value
    return None
