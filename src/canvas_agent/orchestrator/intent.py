"""Reading intent from request text and short model replies."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from canvas_agent.parsing import ToolCall, load_json_object, parse
from canvas_agent.parsing.repair import OPERATION_NAME_RE
from canvas_agent.registry import OperationBuckets, OperationKind, classify

logger = logging.getLogger(__name__)

PRESENTATION_RE = re.compile(
    r"\b(?:pptx?|slides?|presentation|deck)\b|幻灯片|演示文稿",
    re.IGNORECASE,
)
EXPORT_RE = re.compile(
    r"\b(?:export|convert|excel|xlsx|spreadsheet|tables?|pdf)\b"
    r"|\bturn (?:it |this |them )?into\b"
    r"|导出|转成|整理成|做成|输出|转换|变成|表格",
    re.IGNORECASE,
)


def is_presentation_request(text: str) -> bool:
    return PRESENTATION_RE.search(text) is not None


def is_export_request(text: str) -> bool:
    return EXPORT_RE.search(text) is not None


def skips_clarification(text: str) -> bool:
    """Presentation and export requests go straight to execution."""

    return is_presentation_request(text) or is_export_request(text)


@dataclass(frozen=True, slots=True)
class Clarification:
    question: str
    options: tuple[str, ...]


def extract_clarification(reply: str) -> Clarification | None:
    """First usable question operation in a clarification reply."""

    result = parse(reply)
    if not result.ok:
        return None
    for call in result.calls:
        if OperationKind.from_name(call.operation) is not OperationKind.QUESTION:
            continue
        question = call.param("question")
        options = call.param("options")
        if not isinstance(question, str) or not question.strip():
            continue
        if not isinstance(options, list):
            continue
        choices = tuple(o.strip() for o in options if isinstance(o, str) and o.strip())
        if choices:
            return Clarification(question=question.strip(), options=choices)
    logger.debug("Clarification reply held no usable question")
    return None


def parse_suggestion(reply: str) -> tuple[str, tuple[str, ...]] | None:
    """``(message, options)`` from a suggestion reply, or ``None``."""

    obj = load_json_object(reply)
    if obj is None:
        return None
    message = obj.get("message")
    options = obj.get("options")
    if not isinstance(message, str) or not message.strip() or not isinstance(options, list):
        logger.debug("Suggestion reply has an invalid shape", extra={"reply": reply[:200]})
        return None
    return message.strip(), tuple(o for o in options if isinstance(o, str) and o)


def stream_status(partial: str) -> tuple[str, float]:
    """Status text and progress for a reply still being streamed."""

    names = [m.group(1) for m in OPERATION_NAME_RE.finditer(partial)]
    if names:
        seen = classify(ToolCall(operation=name, parameters={}) for name in names)
        visible = OperationBuckets(cards=seen.cards, tables=seen.tables, slides=seen.slides)
        return f"Generating {visible.describe() or 'content'}...", 0.6
    if len(partial) < 100:
        return "Thinking...", 0.4
    return "Organizing content...", 0.5
