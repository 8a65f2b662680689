"""Unit tests for the model providers."""

from __future__ import annotations

import base64
from collections.abc import AsyncIterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, Mock

import openai
import pytest
import requests

from canvas_agent.core.config import LLMConfig
from canvas_agent.llm import Attachment, LLMFactory, ModelRequest, TransportError
from canvas_agent.llm.openai_provider import OpenAIProvider
from canvas_agent.llm.provider import LLMProvider
from canvas_agent.llm.relay_provider import RelayProvider, decode_event, event_text


def markdown(name: str, text: str) -> Attachment:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return Attachment(name=name, data_url=f"data:text/markdown;base64,{encoded}", file_type="md")


async def collect(provider: LLMProvider, request: ModelRequest) -> list[str]:
    return [chunk async for chunk in provider.stream(request)]


# ----------------------------------------------------------------------
# Requests and attachments
# ----------------------------------------------------------------------


def test_attachment_kinds() -> None:
    image = Attachment(name="a.png", data_url="data:image/png;base64,AAAA", file_type="image/png")
    pdf = Attachment(name="a.pdf", data_url="data:application/pdf;base64,AAAA", file_type="pdf")

    assert image.is_image and not image.is_pdf
    assert pdf.is_pdf and not pdf.is_markdown
    assert image.payload == "AAAA"
    assert pdf.to_json() == {"name": "a.pdf", "dataUrl": pdf.data_url, "fileType": "pdf"}
    assert Attachment(name="x", data_url="data:,!!!", file_type="md").decoded_text() == ""


def test_system_text_inlines_context_and_markdown() -> None:
    request = ModelRequest(
        message="hi",
        system="You are helpful.",
        context="Canvas: 2 cards",
        attachments=(markdown("notes.md", "# Notes"),),
    )

    text = request.system_text()

    assert text.startswith("You are helpful.\n\nCanvas: 2 cards")
    assert "[Files on the canvas]" in text
    assert "--- notes.md ---\n# Notes" in text


def test_system_text_without_extras() -> None:
    assert ModelRequest(message="hi", system="S").system_text() == "S"


# ----------------------------------------------------------------------
# Factory
# ----------------------------------------------------------------------


def test_factory_creates_openai_provider(llm_config: LLMConfig) -> None:
    provider = LLMFactory.create(llm_config)

    assert isinstance(provider, OpenAIProvider)
    assert provider.model == "gpt-4o"


def test_factory_creates_relay_provider() -> None:
    provider = LLMFactory.create(LLMConfig(provider="relay", relay_base_url="http://relay.test/"))

    assert isinstance(provider, RelayProvider)
    assert provider.base_url == "http://relay.test"


def test_factory_rejects_unknown_provider() -> None:
    config = LLMConfig.model_construct(provider="llama")

    with pytest.raises(ValueError, match="Unsupported"):
        LLMFactory.create(config)


# ----------------------------------------------------------------------
# OpenAI
# ----------------------------------------------------------------------


def chunk(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


async def chunks(*items: SimpleNamespace) -> AsyncIterator[SimpleNamespace]:
    for item in items:
        yield item


def openai_provider(create: AsyncMock) -> OpenAIProvider:
    client = Mock()
    client.chat.completions.create = create
    return OpenAIProvider(LLMConfig(openai_api_key=None), client=client)


def test_openai_requires_key_without_client() -> None:
    with pytest.raises(ValueError, match="API key"):
        OpenAIProvider(LLMConfig(openai_api_key=None))


def test_build_messages_adds_file_parts() -> None:
    request = ModelRequest(
        message="Describe",
        system="S",
        attachments=(
            Attachment(name="p.png", data_url="data:image/png;base64,AAAA", file_type="image/png"),
            Attachment(name="d.pdf", data_url="data:application/pdf;base64,BBBB", file_type="pdf"),
            markdown("n.md", "text"),
        ),
    )

    system, user = OpenAIProvider.build_messages(request)

    assert system["role"] == "system"
    assert "--- n.md ---" in system["content"]
    assert [part["type"] for part in user["content"]] == ["image_url", "file", "text"]
    assert user["content"][1]["file"]["filename"] == "d.pdf"
    assert user["content"][-1]["text"] == "Describe"


@pytest.mark.asyncio
async def test_openai_stream_yields_deltas() -> None:
    create = AsyncMock(
        return_value=chunks(chunk("Hel"), chunk(None), SimpleNamespace(choices=[]), chunk("lo"))
    )
    provider = openai_provider(create)

    parts = await collect(provider, ModelRequest(message="hi", system="S", max_tokens=64))

    assert parts == ["Hel", "lo"]
    kwargs = create.await_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["max_tokens"] == 64
    assert kwargs["model"] == "gpt-4o"


@pytest.mark.asyncio
async def test_openai_complete_joins_the_stream() -> None:
    provider = openai_provider(AsyncMock(return_value=chunks(chunk(" A"), chunk("B "))))

    assert await provider.complete(ModelRequest(message="hi", system="S")) == "AB"


@pytest.mark.asyncio
async def test_openai_errors_become_transport_errors() -> None:
    error = openai.APIConnectionError(request=Mock())
    provider = openai_provider(AsyncMock(side_effect=error))

    with pytest.raises(TransportError):
        await collect(provider, ModelRequest(message="hi", system="S"))


# ----------------------------------------------------------------------
# Relay
# ----------------------------------------------------------------------


def relay(session: Mock) -> RelayProvider:
    return RelayProvider(
        LLMConfig(
            provider="relay",
            relay_base_url="http://relay.test",
            health_timeout_seconds=1.5,
            connect_timeout_seconds=4.0,
            request_timeout_seconds=90.0,
        ),
        session=session,
    )


def streaming_response(*lines: str, ok: bool = True, status_code: int = 200) -> Mock:
    response = Mock(ok=ok, status_code=status_code, text="boom")
    response.iter_lines.return_value = iter(lines)
    return response


def test_decode_event() -> None:
    assert decode_event('data: {"type": "done"}') == {"type": "done"}
    assert decode_event("data: not json") is None
    assert decode_event("data: [1, 2]") is None
    assert decode_event(": keep-alive") is None


def test_event_text_keeps_only_text_blocks() -> None:
    event = {
        "type": "assistant",
        "message": {"content": [{"type": "tool_use"}, {"type": "text", "text": "hi"}]},
    }

    assert event_text(event) == "hi"
    assert event_text({"type": "assistant"}) == ""


@pytest.mark.asyncio
async def test_relay_health_probe() -> None:
    session = Mock()
    session.get.return_value = Mock(ok=True)
    provider = relay(session)

    assert await provider.is_available() is True
    session.get.assert_called_once_with("http://relay.test/api/health", timeout=1.5)

    session.get.return_value = Mock(ok=False)
    assert await provider.is_available() is False

    session.get.side_effect = requests.ConnectionError("refused")
    assert await provider.is_available() is False


@pytest.mark.asyncio
async def test_relay_stream_yields_assistant_text() -> None:
    session = Mock()
    response = streaming_response(
        'data: {"type": "system"}',
        "",
        'data: {"type": "assistant", "message": {"content": [{"type": "text", "text": "Hello "}]}}',
        'data: {"type": "assistant", "message": {"content": [{"type": "text", "text": "world"}]}}',
        'data: {"type": "result", "result": "Hello world"}',
        'data: {"type": "done"}',
    )
    session.post.return_value = response
    provider = relay(session)

    parts = await collect(provider, ModelRequest(message="hi", system="sys", context="ctx"))

    assert parts == ["Hello ", "world"]
    response.close.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == ("http://relay.test/api/chat",)
    assert kwargs["stream"] is True
    assert kwargs["timeout"] == (4.0, 90.0)
    assert kwargs["json"] == {
        "canvasContext": "ctx",
        "systemPrompt": "sys",
        "message": "hi",
        "files": [],
        "spatialTools": True,
    }


@pytest.mark.asyncio
async def test_relay_stream_falls_back_to_the_result_event() -> None:
    session = Mock()
    session.post.return_value = streaming_response('data: {"type": "result", "result": "Final"}')

    assert await collect(relay(session), ModelRequest(message="hi", system="S")) == ["Final"]


@pytest.mark.asyncio
async def test_relay_stream_error_event() -> None:
    session = Mock()
    response = streaming_response('data: {"type": "error", "error": "quota exceeded"}')
    session.post.return_value = response

    with pytest.raises(TransportError, match="quota exceeded"):
        await collect(relay(session), ModelRequest(message="hi", system="S"))
    response.close.assert_called_once()


@pytest.mark.asyncio
async def test_relay_http_error() -> None:
    session = Mock()
    session.post.return_value = streaming_response(ok=False, status_code=500)

    with pytest.raises(TransportError, match="HTTP 500"):
        await collect(relay(session), ModelRequest(message="hi", system="S"))


@pytest.mark.asyncio
async def test_relay_unreachable() -> None:
    session = Mock()
    session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(TransportError, match="unreachable"):
        await collect(relay(session), ModelRequest(message="hi", system="S"))


@pytest.mark.asyncio
async def test_relay_clarify_uses_the_brainstorm_endpoint() -> None:
    session = Mock()
    session.post.return_value = Mock(ok=True, json=Mock(return_value={"text": " Which one? "}))

    reply = await relay(session).complete(
        ModelRequest(message="hi", system="S", purpose="clarify")
    )

    assert reply == "Which one?"
    args, kwargs = session.post.call_args
    assert args == ("http://relay.test/api/brainstorm",)
    assert kwargs["stream"] is False
    assert "files" not in kwargs["json"]


@pytest.mark.asyncio
async def test_relay_suggest_payload_and_error() -> None:
    session = Mock()
    body: dict[str, Any] = {"error": "overloaded"}
    session.post.return_value = Mock(ok=True, json=Mock(return_value=body))

    with pytest.raises(TransportError, match="overloaded"):
        await relay(session).complete(ModelRequest(message="done: 3 cards", system="S", purpose="suggest"))

    args, kwargs = session.post.call_args
    assert args == ("http://relay.test/api/suggest",)
    assert kwargs["json"]["completedTask"] == "done: 3 cards"
    assert "message" not in kwargs["json"]
