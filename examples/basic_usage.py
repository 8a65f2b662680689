#!/usr/bin/env python3
"""Programmatic parse-and-layout example.

This demonstrates using the canvas agent components directly:

* load settings from `.env`
* recover tool calls from a saved model reply
* lay them out around a focal point and print the placements

The reply file is passed as an argument.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from canvas_agent.core.config import AgentConfig
from canvas_agent.layout import LayoutEngine, Point
from canvas_agent.parsing import parse
from canvas_agent.registry import classify


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lay out a saved model reply (programmatic example).")
    parser.add_argument("reply", type=Path, help="File holding the raw model reply")
    parser.add_argument("--x", type=float, default=0.0, help="Focal point x")
    parser.add_argument("--y", type=float, default=0.0, help="Focal point y")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = AgentConfig()
    settings.setup_logging()

    result = parse(args.reply.read_text(encoding="utf-8"))
    if not result.ok:
        print(f"No tool calls recovered: {result.diagnostic}")
        return 1

    buckets = classify(result.calls)
    print(f"Recovered {buckets.describe() or 'nothing placeable'} via {result.strategy}")

    engine = LayoutEngine(settings.layout)
    layout = engine.layout(
        buckets.cards,
        buckets.tables,
        buckets.slides,
        buckets.connections,
        buckets.groups,
        focus=Point(args.x, args.y),
        questions=buckets.questions,
    )

    for node in layout.nodes:
        print(f"{node.kind:<8} {node.name!r:<30} at ({node.position.x:.0f}, {node.position.y:.0f})")
    for conn in layout.connections:
        print(f"link     {conn.source} -> {conn.target}")
    print(f"Focus region: {engine.focus_region(layout)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
