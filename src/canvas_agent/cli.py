"""CLI entrypoint for replaying model replies and running one-off requests."""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
import mimetypes
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from canvas_agent import __version__
from canvas_agent.core.config import AgentConfig
from canvas_agent.layout import BoundingBox, LayoutEngine, Point
from canvas_agent.llm import Attachment, LLMFactory
from canvas_agent.orchestrator import CanvasAgent, MaterializationBatch, Suggestion, TaskState
from canvas_agent.orchestrator.tasks import Task, TaskEvent
from canvas_agent.parsing import parse, shorten, summarize_plain_text
from canvas_agent.registry import classify

logger = logging.getLogger(__name__)


def _read_input(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _dump(obj: object) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def load_attachment(path: Path) -> Attachment:
    """Read a local file into a data-URL attachment."""

    suffix = path.suffix.lower()
    if suffix in (".md", ".markdown"):
        mime, file_type = "text/markdown", "md"
    elif suffix == ".pdf":
        mime, file_type = "application/pdf", "pdf"
    else:
        mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        file_type = mime
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return Attachment(name=path.name, data_url=f"data:{mime};base64,{encoded}", file_type=file_type)


class ConsoleRenderer:
    """Prints every canvas change as JSON on stdout."""

    def __init__(self, *, context: str = "", attachments: Sequence[Attachment] = ()) -> None:
        self._context = context
        self._attachments = tuple(attachments)

    def viewport_center(self) -> Point:
        return Point(0.0, 0.0)

    def selection(self) -> Sequence[str]:
        return ()

    def selection_context(self) -> str:
        return ""

    def canvas_context(self) -> str:
        return self._context

    def attachments(self) -> Sequence[Attachment]:
        return self._attachments

    def materialize(self, batch: MaterializationBatch) -> None:
        _dump({"materialize": batch.to_json()})

    def focus(self, bounds: BoundingBox) -> None:
        _dump({"focus": bounds.to_json()})

    def show_suggestion(self, task_id: str, suggestion: Suggestion) -> None:
        _dump({"suggestion": suggestion.to_json(), "task_id": task_id})

    def set_artifact_status(self, artifact_id: str, status: str) -> None:
        print(f"[{artifact_id}] {status}", file=sys.stderr)

    def write_summary(self, artifact_id: str, summary: str, detail: str) -> None:
        _dump({"artifact_id": artifact_id, "summary": summary, "detail": detail})


class ConsoleClarifier:
    """Reads the user's choice from stdin."""

    async def choose(self, task_id: str, question: str, options: Sequence[str]) -> str:
        print(f"\n{question}", file=sys.stderr)
        for number, option in enumerate(options, start=1):
            print(f"  {number}. {option}", file=sys.stderr)
        answer = (await asyncio.to_thread(input, "> ")).strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        return answer or options[0]


def _print_task(event: TaskEvent, task: Task) -> None:
    if event is TaskEvent.FAILED:
        print(f"[{task.id}] failed: {task.error}", file=sys.stderr)
    elif event is TaskEvent.UPDATED:
        print(f"[{task.id}] {task.progress:4.0%} {task.status_text}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canvas-agent",
        description="Parse and lay out model replies for an infinite canvas",
    )
    parser.add_argument("--version", action="version", version=f"canvas-agent {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Extract tool calls from a saved model reply")
    parse_cmd.add_argument("file", nargs="?", default=None, help="Reply file (stdin by default)")

    layout_cmd = subparsers.add_parser("layout", help="Parse a saved reply and print placements")
    layout_cmd.add_argument("file", nargs="?", default=None, help="Reply file (stdin by default)")
    layout_cmd.add_argument("--x", type=float, default=0.0, help="Focal point x")
    layout_cmd.add_argument("--y", type=float, default=0.0, help="Focal point y")

    ask_cmd = subparsers.add_parser("ask", help="Run one request against the configured provider")
    ask_cmd.add_argument("message", help="Request text")
    ask_cmd.add_argument(
        "--context",
        default=None,
        help="File whose contents stand in for the canvas context",
    )
    ask_cmd.add_argument(
        "--attach",
        action="append",
        default=[],
        help="File to attach (repeatable)",
    )
    ask_cmd.add_argument(
        "--no-clarify",
        action="store_true",
        help="Skip the clarifying question",
    )

    summarize_cmd = subparsers.add_parser("summarize", help="Summarize a markdown or PDF document")
    summarize_cmd.add_argument("file", help="Document to summarize")

    return parser


def _cmd_parse(args: argparse.Namespace) -> int:
    result = parse(_read_input(args.file))
    if not result.ok:
        print(f"Parse failed: {result.diagnostic}", file=sys.stderr)
        return 1
    _dump({"strategy": result.strategy, "calls": [call.to_json() for call in result.calls]})
    return 0


def _cmd_layout(args: argparse.Namespace, settings: AgentConfig) -> int:
    text = _read_input(args.file)
    engine = LayoutEngine(settings.layout)
    focus = Point(args.x, args.y)

    result = parse(text)
    buckets = classify(result.calls) if result.ok else None
    if buckets is None or buckets.is_empty:
        node = engine.summary_node(shorten(summarize_plain_text(text) or text), focus=focus)
        _dump({"mode": "summary", "nodes": [node.to_json()]})
        return 0

    layout = engine.layout(
        buckets.cards,
        buckets.tables,
        buckets.slides,
        buckets.connections,
        buckets.groups,
        focus=focus,
        questions=buckets.questions,
    )
    _dump(layout.to_json())
    return 0


async def _run_ask(args: argparse.Namespace, settings: AgentConfig) -> int:
    context = Path(args.context).read_text(encoding="utf-8") if args.context else ""
    attachments = [load_attachment(Path(p)) for p in args.attach]
    if args.no_clarify:
        settings = settings.model_copy(update={"clarification_enabled": False})

    agent = CanvasAgent(
        provider=LLMFactory.create(settings.llm),
        renderer=ConsoleRenderer(context=context, attachments=attachments),
        clarifier=ConsoleClarifier(),
        config=settings,
    )
    agent.board.subscribe(_print_task)

    task = await agent.handle_request(args.message)
    await agent.drain()
    return 0 if task.state is TaskState.DONE else 1


async def _run_summarize(args: argparse.Namespace, settings: AgentConfig) -> int:
    path = Path(args.file)
    if path.suffix.lower() in (".md", ".markdown"):
        content, file_type = path.read_text(encoding="utf-8"), "md"
    else:
        attachment = load_attachment(path)
        content, file_type = attachment.data_url, attachment.file_type

    agent = CanvasAgent(
        provider=LLMFactory.create(settings.llm),
        renderer=ConsoleRenderer(),
        config=settings,
    )
    ok = await agent.summarize_document(path.name, path.name, content, file_type)
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = AgentConfig()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    settings.setup_logging()

    try:
        if args.command == "parse":
            return _cmd_parse(args)

        if args.command == "layout":
            return _cmd_layout(args, settings)

        if args.command == "ask":
            return asyncio.run(_run_ask(args, settings))

        if args.command == "summarize":
            return asyncio.run(_run_summarize(args, settings))

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ValueError as e:
        # Provider construction rejects incomplete settings.
        logger.error(str(e))
        print(str(e), file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
