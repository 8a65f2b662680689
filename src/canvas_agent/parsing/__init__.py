"""Recovery parsing of model output into tool calls."""

from canvas_agent.parsing.models import ParseFailure, ParseResult, ParseSuccess, ToolCall
from canvas_agent.parsing.parser import parse
from canvas_agent.parsing.plain_text import shorten, summarize_plain_text
from canvas_agent.parsing.repair import load_json_object

__all__ = [
    "ParseFailure",
    "ParseResult",
    "ParseSuccess",
    "ToolCall",
    "load_json_object",
    "parse",
    "shorten",
    "summarize_plain_text",
]
