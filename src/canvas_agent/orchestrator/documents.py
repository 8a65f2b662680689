"""Helpers for summarizing documents dropped on the canvas."""

from __future__ import annotations

import base64
import re

from canvas_agent.llm.provider import Attachment

_WRAPPING_FENCE_RE = re.compile(r"^```(?:json|markdown|md|text)?\s*\n?|\n?```\s*$", re.IGNORECASE)
_SUMMARY_RE = re.compile(r"\[(?:Summary|摘要)\]\s*\n(.*?)(?=\[(?:Detail|详细分析)\]|$)", re.DOTALL)
_DETAIL_RE = re.compile(r"\[(?:Detail|详细分析)\]\s*\n(.*)", re.DOTALL)
_HEADING_SUMMARY_RE = re.compile(
    r"(?:#{1,2}\s*(?:Summary|摘要))\s*\n(.*?)(?=#{1,2}\s*(?:Detail|详细分析|分析)|$)",
    re.DOTALL | re.IGNORECASE,
)
_HEADING_DETAIL_RE = re.compile(
    r"(?:#{1,2}\s*(?:Detail|详细分析|分析))\s*\n(.*)", re.DOTALL | re.IGNORECASE
)

FALLBACK_SUMMARY_CHARS = 120
FALLBACK_DETAIL_CHARS = 800


def parse_summary(reply: str) -> tuple[str, str]:
    """Split a summary reply into ``(summary, detail)``.

    Accepts bracketed section markers, then Markdown headings, and finally
    falls back to the first two lines as the summary.
    """

    cleaned = _WRAPPING_FENCE_RE.sub("", reply.strip()).strip()

    for summary_re, detail_re in ((_SUMMARY_RE, _DETAIL_RE), (_HEADING_SUMMARY_RE, _HEADING_DETAIL_RE)):
        summary_match = summary_re.search(cleaned)
        detail_match = detail_re.search(cleaned)
        summary = summary_match.group(1).strip() if summary_match else ""
        detail = detail_match.group(1).strip() if detail_match else ""
        if summary or detail:
            return summary, detail

    lines = [line for line in cleaned.splitlines() if line.strip()]
    return " ".join(lines[:2])[:FALLBACK_SUMMARY_CHARS], "\n".join(lines[2:])


def document_attachment(file_name: str, content: str, file_type: str) -> Attachment:
    """Markdown is sent as text; anything else is expected to be a data URL already."""

    if file_type == "md":
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        return Attachment(name=file_name, data_url=f"data:text/markdown;base64,{encoded}", file_type="md")
    return Attachment(name=file_name, data_url=content, file_type=file_type)


def local_summary(file_name: str, content: str, file_type: str) -> tuple[str, str]:
    """Summary used when no model service is reachable."""

    if file_type == "md":
        lines = [line for line in content.splitlines() if line.strip()]
        summary = " ".join(lines[:3])[:FALLBACK_SUMMARY_CHARS]
        return summary or file_name, content[:FALLBACK_DETAIL_CHARS]
    return (
        f'Document "{file_name}" imported. It will be summarized once a model service is available.',
        "No model service is reachable to read this document. Start the relay server or "
        "configure an API key.",
    )
