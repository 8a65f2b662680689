"""Turn an unparseable reply into text fit for a single summary card."""

from __future__ import annotations

import re
from typing import Any

from canvas_agent.parsing.repair import (
    OPERATION_NAME_RE,
    fenced_blocks,
    load_with_repairs,
    remove_fenced_blocks,
)

_BLANK_RUN_RE = re.compile(r"\n{3,}")

MAX_SUMMARY_LINES = 4
MAX_SUMMARY_CHARS = 200


def _item_name(item: Any) -> str | None:
    if not isinstance(item, dict):
        return None
    for params_key in ("parameters", "params"):
        params = item.get(params_key)
        if isinstance(params, dict):
            name = params.get("name") or params.get("title")
            if isinstance(name, str) and name:
                return name
    name = item.get("name")
    return name if isinstance(name, str) and name else None


def _describe_structured(value: Any) -> str | None:
    if isinstance(value, list) and value:
        names = [n for n in (_item_name(item) for item in value) if n]
        if names:
            return f"Generated {len(names)} results: {', '.join(names)}"
        return f"Generated {len(value)} results"
    if isinstance(value, dict):
        name = _item_name(value)
        return f"Generated result: {name}" if name else "Generated a result"
    return None


def summarize_plain_text(text: str) -> str:
    """Strip code fences from a reply and keep the prose around them.

    When the reply is nothing but code, describe what the code seemed to
    contain instead of showing raw JSON.
    """

    cleaned = _BLANK_RUN_RE.sub("\n\n", remove_fenced_blocks(text)).strip()
    if cleaned and not cleaned.startswith(("[{", '{"operation"', '{"tool"')):
        return cleaned

    if cleaned:
        # An unterminated code block left raw JSON behind.
        return "Analysis finished; results are being processed..."

    for block in fenced_blocks(text):
        description = _describe_structured(load_with_repairs(block))
        if description:
            return description

    operations: list[str] = []
    for match in OPERATION_NAME_RE.finditer(text):
        if match.group(1) not in operations:
            operations.append(match.group(1))
    if operations:
        return f"Processing {len(operations)} operations: {', '.join(operations)}..."

    return "The agent returned structured data that could not be parsed. Please try again."


def shorten(summary: str) -> str:
    """Keep the first few non-empty lines, capped for display on a card."""

    lines = [line for line in summary.splitlines() if line.strip()]
    short = "\n".join(lines[:MAX_SUMMARY_LINES])
    if len(short) > MAX_SUMMARY_CHARS:
        return short[:MAX_SUMMARY_CHARS] + "..."
    if len(lines) > MAX_SUMMARY_LINES:
        return short + "\n..."
    return short
