"""Recovery parser: free-form model output -> structured tool calls."""

from __future__ import annotations

import logging

from canvas_agent.parsing.models import ParseFailure, ParseResult, ParseSuccess
from canvas_agent.parsing.strategies import STRATEGIES, NamedStrategy, focus_text

logger = logging.getLogger(__name__)


def parse(text: str) -> ParseResult:
    """Extract tool calls from a model reply.

    Strategies run in a fixed order and the first one that yields a
    non-empty, structurally valid list wins. Never raises; a reply with no
    recoverable operations comes back as ``ParseFailure`` and the caller
    treats it as plain text.
    """

    return parse_with(text, STRATEGIES)


def parse_with(text: str, strategies: tuple[NamedStrategy, ...]) -> ParseResult:
    if not isinstance(text, str) or not text.strip():
        return ParseFailure(diagnostic="empty response")

    focused = focus_text(text)
    for strategy in strategies:
        calls = strategy.apply(focused if strategy.uses_focus else text)
        if calls:
            logger.debug(
                "Parsed tool calls",
                extra={"strategy": strategy.name, "count": len(calls)},
            )
            return ParseSuccess(calls=tuple(calls), strategy=strategy.name)
        logger.debug("Parse strategy found nothing", extra={"strategy": strategy.name})

    logger.warning(
        "No tool calls recovered",
        extra={"length": len(text), "head": text[:200], "tail": text[-200:]},
    )
    return ParseFailure(
        diagnostic=f"no tool calls recovered from {len(text)} characters "
        f"after {len(strategies)} strategies"
    )
