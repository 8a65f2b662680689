"""Per-request orchestration from user text to placed artifacts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Sequence
from typing import Any

from canvas_agent.core.config import AgentConfig
from canvas_agent.layout import BoundingBox, LayoutEngine, Point
from canvas_agent.llm.provider import Attachment, LLMProvider, ModelRequest, TransportError
from canvas_agent.orchestrator.collaborators import (
    CanvasRenderer,
    ClarificationUI,
    Exporter,
    ExportKind,
    MaterializationBatch,
    Suggestion,
)
from canvas_agent.orchestrator.documents import document_attachment, local_summary, parse_summary
from canvas_agent.orchestrator.intent import (
    extract_clarification,
    is_export_request,
    is_presentation_request,
    parse_suggestion,
    skips_clarification,
    stream_status,
)
from canvas_agent.orchestrator.prompts import (
    CLARIFY_PROMPT,
    SUGGEST_PROMPT,
    SUMMARY_PROMPT,
    SYSTEM_PROMPT,
)
from canvas_agent.orchestrator.state_machine import TaskState, transition
from canvas_agent.orchestrator.tasks import Task, TaskBoard
from canvas_agent.parsing import ParseResult, parse, shorten, summarize_plain_text
from canvas_agent.registry import classify

logger = logging.getLogger(__name__)

SUGGESTION_GAP = 20.0
SUGGESTION_WIDTH = 240.0
SUGGESTION_FALLBACK_OFFSET_Y = 100.0


class _Run:
    """State of one request, mirrored onto the board while it is listed."""

    def __init__(self, board: TaskBoard, task: Task) -> None:
        self.board = board
        self.task_id = task.id
        self.state = task.state
        self.last = task

    def advance(self, to: TaskState, status_text: str, progress: float) -> None:
        self.state = transition(current=self.state, to=to)
        self.update(status_text, progress)

    def update(self, status_text: str, progress: float) -> None:
        task = self.board.update(
            self.task_id, status_text=status_text, progress=progress, state=self.state
        )
        if task is not None:
            self.last = task

    def fail(self, reason: str) -> Task:
        self.state = transition(current=self.state, to=TaskState.ERROR)
        failed = self.board.fail(self.task_id, reason)
        return failed or Task(
            id=self.task_id,
            label=self.last.label,
            status_text=reason,
            progress=self.last.progress,
            state=TaskState.ERROR,
            error=reason,
        )

    def finish(self) -> Task:
        self.advance(TaskState.DONE, "Done", 1.0)
        self.board.remove(self.task_id)
        return Task(
            id=self.task_id,
            label=self.last.label,
            status_text="Done",
            progress=1.0,
            state=TaskState.DONE,
        )


class CanvasAgent:
    """Runs requests through scanning, clarification, the model, parsing and layout.

    Collaborators are injected. Several requests may run at once; each one
    is sequential and gets its own entry on the task board.
    """

    def __init__(
        self,
        *,
        provider: LLMProvider,
        renderer: CanvasRenderer,
        clarifier: ClarificationUI | None = None,
        exporter: Exporter | None = None,
        board: TaskBoard | None = None,
        config: AgentConfig | None = None,
        layout_engine: LayoutEngine | None = None,
    ) -> None:
        self.config = config or AgentConfig()
        self.provider = provider
        self.renderer = renderer
        self.clarifier = clarifier
        self.exporter = exporter
        self.board = board or TaskBoard()
        self.layout_engine = layout_engine or LayoutEngine(self.config.layout)
        self._background: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def handle_request(self, message: str) -> Task:
        """Run one request to completion and return its final snapshot.

        Transport failures and unexpected errors end the task in ``error``;
        they are reported through the board and never raised.
        """
        run = _Run(self.board, self.board.create(message))
        logger.info("Request started", extra={"task_id": run.task_id})

        try:
            context, attachments = self._scan(run)
            request_text = await self._clarify(run, message, context, attachments)
            reply = await self._dispatch(run, request_text, context, attachments)

            run.advance(TaskState.PARSING, "Parsing the reply...", 0.9)
            result = parse(reply)

            run.advance(TaskState.EXECUTING, "Placing artifacts on the canvas...", 0.95)
            batch = await self._execute(run, message, reply, result)

            run.advance(TaskState.SUGGESTING, "Preparing a next step...", 0.98)
            if self.config.suggestions_enabled:
                self._spawn(self._suggest_next_step(run.task_id, message, batch))

            task = run.finish()
        except TransportError as e:
            logger.warning(
                "Model service failed", extra={"task_id": run.task_id, "reason": e.reason}
            )
            return run.fail(f"Model service failed: {e.reason}")
        except Exception as e:
            logger.exception("Request failed", extra={"task_id": run.task_id})
            return run.fail(f"Unexpected error: {e}")

        logger.info("Request finished", extra={"task_id": run.task_id})
        return task

    def _scan(self, run: _Run) -> tuple[str, tuple[Attachment, ...]]:
        run.advance(TaskState.SCANNING, "Reading content...", 0.0)

        selected = list(self.renderer.selection())
        if selected:
            for i, name in enumerate(selected):
                run.update(f'Reading "{name}"...', (i + 1) / (len(selected) + 2) * 0.1)
            context = self.renderer.selection_context()
            run.update(f"Read {len(selected)} objects", 0.1)
        else:
            context = self.renderer.canvas_context()

        return context, tuple(self.renderer.attachments())

    async def _clarify(
        self, run: _Run, message: str, context: str, attachments: Sequence[Attachment]
    ) -> str:
        if (
            not self.config.clarification_enabled
            or self.clarifier is None
            or skips_clarification(message)
        ):
            return message

        run.advance(TaskState.CLARIFYING, "Analyzing the request...", 0.1)
        request = ModelRequest(
            message=message,
            system=CLARIFY_PROMPT,
            context=context,
            attachments=tuple(attachments),
            max_tokens=self.config.llm.clarify_max_tokens,
            purpose="clarify",
        )
        try:
            reply = await self.provider.complete(request)
        except TransportError as e:
            logger.warning(
                "Clarification skipped", extra={"task_id": run.task_id, "reason": e.reason}
            )
            return message

        clarification = extract_clarification(reply)
        if clarification is None:
            return message

        run.update("Waiting for your choice...", 0.2)
        choice = await self.clarifier.choose(
            run.task_id, clarification.question, clarification.options
        )
        run.update(f'Selected "{choice}", working on it...', 0.3)
        return f"{message}\n\nAdditional detail from the user: {choice}"

    async def _dispatch(
        self, run: _Run, message: str, context: str, attachments: Sequence[Attachment]
    ) -> str:
        run.advance(TaskState.DISPATCHING, "Connecting to the model service...", 0.35)
        if not await self.provider.is_available():
            raise TransportError("model service is not available")

        request = ModelRequest(
            message=message,
            system=SYSTEM_PROMPT,
            context=context,
            attachments=tuple(attachments),
            max_tokens=self.config.llm.max_tokens,
        )
        reply = ""
        async for chunk in self.provider.stream(request):
            reply += chunk
            run.update(*stream_status(reply))

        logger.debug(
            "Model reply received", extra={"task_id": run.task_id, "characters": len(reply)}
        )
        return reply

    async def _execute(
        self, run: _Run, message: str, reply: str, result: ParseResult
    ) -> MaterializationBatch:
        focus = self.renderer.viewport_center()
        buckets = classify(result.calls) if result.ok else None

        if buckets is None or buckets.is_empty:
            return self._place_summary(run, message, reply, focus)

        if buckets.unknown:
            logger.info(
                "Ignoring unknown operations",
                extra={
                    "task_id": run.task_id,
                    "operations": sorted({c.operation for c in buckets.unknown}),
                },
            )

        engine = self.layout_engine
        layout = engine.layout(
            buckets.cards,
            buckets.tables,
            buckets.slides,
            buckets.connections,
            buckets.groups,
            focus=focus,
            questions=buckets.questions,
        )
        batch = MaterializationBatch.from_layout(run.task_id, layout, engine.focus_region(layout))
        self.renderer.materialize(batch)
        if batch.focus_region is not None:
            self.renderer.focus(batch.focus_region)
        logger.info(
            f"Created {buckets.describe() or 'nothing'}",
            extra={"task_id": run.task_id, "mode": layout.mode},
        )

        wants_export = is_presentation_request(message) or is_export_request(message)
        if self.exporter is not None and wants_export and (buckets.slides or buckets.tables):
            kind: ExportKind = "slides" if buckets.slides else "tables"
            await self._export(run, self.exporter, kind, batch)
        return batch

    def _place_summary(
        self, run: _Run, message: str, reply: str, focus: Point
    ) -> MaterializationBatch:
        summary = shorten(summarize_plain_text(reply) or reply)
        node = self.layout_engine.summary_node(summary, focus=focus, label=message)
        region = node.bounds.expand(self.config.layout.focus_padding)
        batch = MaterializationBatch(task_id=run.task_id, nodes=(node,), focus_region=region)
        self.renderer.materialize(batch)
        self.renderer.focus(region)
        logger.info("Reply placed as a summary card", extra={"task_id": run.task_id})
        return batch

    async def _export(
        self, run: _Run, exporter: Exporter, kind: ExportKind, batch: MaterializationBatch
    ) -> None:
        run.update(f"Exporting {kind}...", 0.97)
        try:
            await exporter.export(kind, batch)
        except Exception:
            # Placed content stays on the canvas even if the export fails.
            logger.exception("Export failed", extra={"task_id": run.task_id, "kind": kind})

    # ------------------------------------------------------------------
    # Follow-up suggestions
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for every background suggestion to settle."""

        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def suggestion_position(self, bounds: BoundingBox | None) -> Point:
        if bounds is not None:
            return Point(bounds.min_x, bounds.max_y + SUGGESTION_GAP)
        center = self.renderer.viewport_center()
        return Point(center.x - SUGGESTION_WIDTH / 2, center.y + SUGGESTION_FALLBACK_OFFSET_Y)

    async def _suggest_next_step(
        self, task_id: str, message: str, batch: MaterializationBatch
    ) -> None:
        try:
            request = ModelRequest(
                message=message,
                system=SUGGEST_PROMPT,
                context=self.renderer.canvas_context(),
                max_tokens=self.config.llm.suggest_max_tokens,
                purpose="suggest",
            )
            reply = await self.provider.complete(request)
            parsed = parse_suggestion(reply) if reply else None
            if parsed is None:
                logger.debug("No usable suggestion", extra={"task_id": task_id})
                return

            text, options = parsed
            suggestion = Suggestion(
                message=text, options=options, position=self.suggestion_position(batch.bounds)
            )
            self.renderer.show_suggestion(task_id, suggestion)
        except TransportError as e:
            logger.warning("Suggestion failed", extra={"task_id": task_id, "reason": e.reason})
        except Exception:
            logger.exception("Suggestion failed", extra={"task_id": task_id})

    # ------------------------------------------------------------------
    # Document summaries
    # ------------------------------------------------------------------

    async def summarize_document(
        self, artifact_id: str, file_name: str, content: str, file_type: str = "md"
    ) -> bool:
        """Summarize a document artifact in place.

        The artifact is marked ``summarizing`` first. If the summary is not
        written within the safety timeout, or anything on the way fails, the
        artifact is marked ``error``.

        Returns:
            True if a summary was written.
        """
        self.renderer.set_artifact_status(artifact_id, "summarizing")
        try:
            summary, detail = await asyncio.wait_for(
                self._summarize(file_name, content, file_type),
                timeout=self.config.summary_timeout_seconds,
            )
            self.renderer.write_summary(artifact_id, summary or file_name, detail)
        except TimeoutError:
            logger.warning(
                "Document summary timed out",
                extra={"artifact_id": artifact_id, "timeout": self.config.summary_timeout_seconds},
            )
            self.renderer.set_artifact_status(artifact_id, "error")
            return False
        except TransportError as e:
            logger.warning(
                "Document summary failed", extra={"artifact_id": artifact_id, "reason": e.reason}
            )
            self.renderer.set_artifact_status(artifact_id, "error")
            return False
        except Exception:
            logger.exception("Document summary failed", extra={"artifact_id": artifact_id})
            self.renderer.set_artifact_status(artifact_id, "error")
            return False

        self.renderer.set_artifact_status(artifact_id, "done")
        return True

    async def _summarize(self, file_name: str, content: str, file_type: str) -> tuple[str, str]:
        if not await self.provider.is_available():
            logger.info("Model service unavailable, summarizing locally", extra={"file": file_name})
            return local_summary(file_name, content, file_type)

        request = ModelRequest(
            message=SUMMARY_PROMPT.format(file_name=file_name),
            system="",
            attachments=(document_attachment(file_name, content, file_type),),
            max_tokens=self.config.llm.summary_max_tokens,
            purpose="summarize",
        )
        reply = await self.provider.complete(request)
        if not reply:
            raise TransportError("empty summary reply")
        return parse_summary(reply)
