"""Provider backed by the local relay server.

The relay exposes ``/api/health`` for liveness, ``/api/chat`` as a stream
of ``data: {...}`` lines, and ``/api/brainstorm`` / ``/api/suggest`` as
short JSON calls returning ``{"text": ...}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterator
from typing import Any

import requests

from canvas_agent.core.config import LLMConfig
from canvas_agent.llm.provider import LLMProvider, ModelRequest, TransportError

logger = logging.getLogger(__name__)

_END = object()

# Short calls that answer with one JSON body instead of a stream.
_JSON_ENDPOINTS = {"clarify": "/api/brainstorm", "suggest": "/api/suggest"}


def decode_event(line: str) -> dict[str, Any] | None:
    """Decode one ``data: {...}`` line. Anything else yields ``None``."""

    if not line.startswith("data: "):
        return None
    try:
        event = json.loads(line[len("data: ") :])
    except ValueError:
        logger.debug("Ignoring malformed stream line", extra={"line": line[:200]})
        return None
    return event if isinstance(event, dict) else None


def event_text(event: dict[str, Any]) -> str:
    """Text carried by an ``assistant`` event."""

    message = event.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    if not isinstance(content, list):
        return ""
    return "".join(
        block.get("text", "")
        for block in content
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str)
    )


class RelayProvider(LLMProvider):
    """Talks to the relay over HTTP with ``requests``.

    Blocking calls run in a worker thread so the event loop stays free.
    """

    def __init__(self, config: LLMConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.base_url = config.relay_base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "canvas-agent"})

        logger.info("Relay provider initialized", extra={"base_url": self.base_url})

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    def _probe(self) -> bool:
        try:
            response = self._session.get(
                self._url("/api/health"), timeout=self.config.health_timeout_seconds
            )
        except requests.RequestException as e:
            logger.warning("Relay health probe failed", extra={"error": str(e)})
            return False
        return response.ok

    async def is_available(self) -> bool:
        return await asyncio.to_thread(self._probe)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _payload(self, request: ModelRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "canvasContext": request.context,
            "systemPrompt": request.system,
        }
        if request.purpose == "suggest":
            payload["completedTask"] = request.message
        else:
            payload["message"] = request.message
        if request.purpose in ("chat", "summarize"):
            payload["files"] = [a.to_json() for a in request.attachments]
            payload["spatialTools"] = request.purpose == "chat"
        return payload

    def _post(self, path: str, payload: dict[str, Any], *, stream: bool) -> requests.Response:
        try:
            response = self._session.post(
                self._url(path),
                json=payload,
                stream=stream,
                timeout=(self.config.connect_timeout_seconds, self.config.request_timeout_seconds),
            )
        except requests.RequestException as e:
            raise TransportError(f"Relay unreachable: {e}") from e

        if not response.ok:
            detail = response.text[:200] if not stream else ""
            response.close()
            raise TransportError(f"Relay returned HTTP {response.status_code} {detail}".strip())
        return response

    def _post_json(self, path: str, payload: dict[str, Any]) -> str:
        response = self._post(path, payload, stream=False)
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Relay returned a non-JSON body") from e
        if isinstance(data, dict) and isinstance(data.get("error"), str):
            raise TransportError(data["error"])
        text = data.get("text") if isinstance(data, dict) else None
        return text if isinstance(text, str) else ""

    async def complete(self, request: ModelRequest) -> str:
        path = _JSON_ENDPOINTS.get(request.purpose)
        if path is None:
            return await super().complete(request)
        text = await asyncio.to_thread(self._post_json, path, self._payload(request))
        return text.strip()

    async def stream(self, request: ModelRequest) -> AsyncIterator[str]:
        """Stream ``/api/chat``.

        Assistant text blocks are yielded as they arrive. The final
        ``result`` event is only used when no assistant text came through.
        """
        path = _JSON_ENDPOINTS.get(request.purpose)
        if path is not None:
            text = await asyncio.to_thread(self._post_json, path, self._payload(request))
            if text:
                yield text
            return

        response = await asyncio.to_thread(
            self._post, "/api/chat", self._payload(request), stream=True
        )
        lines: Iterator[str] = response.iter_lines(decode_unicode=True)
        yielded = False
        try:
            while True:
                try:
                    line = await asyncio.to_thread(next, lines, _END)
                except requests.RequestException as e:
                    raise TransportError(f"Relay stream interrupted: {e}") from e
                if line is _END:
                    break

                event = decode_event(line) if line else None
                if event is None:
                    continue

                kind = event.get("type")
                if kind == "assistant":
                    text = event_text(event)
                    if text:
                        yielded = True
                        yield text
                elif kind == "result":
                    result = event.get("result")
                    if not yielded and isinstance(result, str) and result:
                        yielded = True
                        yield result
                elif kind == "error":
                    raise TransportError(str(event.get("error") or "Relay reported an error"))
                elif kind == "done":
                    break
        finally:
            response.close()
