"""Abstract base class for model providers."""

from __future__ import annotations

import base64
import binascii
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Literal

Purpose = Literal["chat", "clarify", "suggest", "summarize"]


class TransportError(RuntimeError):
    """The model service could not be reached or answered with an error.

    Carries a human-readable reason. Requests are never retried on this
    error because the call may already have been billed.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True, slots=True)
class Attachment:
    """A file from the canvas handed to the model alongside the request."""

    name: str
    data_url: str
    file_type: str = ""

    @property
    def is_image(self) -> bool:
        return self.file_type.startswith("image/")

    @property
    def is_pdf(self) -> bool:
        return self.file_type in ("pdf", "application/pdf")

    @property
    def is_markdown(self) -> bool:
        return self.file_type in ("md", "text/markdown")

    @property
    def payload(self) -> str:
        """The base64 part of the data URL."""

        _, _, data = self.data_url.partition(",")
        return data

    def decoded_text(self) -> str:
        try:
            return base64.b64decode(self.payload).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            return ""

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "dataUrl": self.data_url, "fileType": self.file_type}


@dataclass(frozen=True, slots=True)
class ModelRequest:
    """Everything one model call needs."""

    message: str
    system: str
    context: str = ""
    attachments: tuple[Attachment, ...] = ()
    max_tokens: int | None = None
    purpose: Purpose = "chat"

    def system_text(self) -> str:
        """System prompt with canvas context and markdown files inlined."""

        text = self.system
        if self.context:
            text += "\n\n" + self.context
        markdown = [a for a in self.attachments if a.is_markdown]
        if markdown:
            text += "\n\n[Files on the canvas]\n"
            for attachment in markdown:
                text += f"\n--- {attachment.name} ---\n{attachment.decoded_text()}\n"
        return text


class LLMProvider(ABC):
    """Abstract base class for model providers.

    This interface allows pluggable backends (OpenAI, local relay, etc.).
    Every failure to obtain a reply surfaces as ``TransportError``.
    """

    @abstractmethod
    def stream(self, request: ModelRequest) -> AsyncIterator[str]:
        """Stream the reply as text chunks.

        Args:
            request: The request to send.

        Returns:
            Async iterator of text chunks in arrival order.

        Raises:
            TransportError: If the service fails before or during the stream.
        """

    async def complete(self, request: ModelRequest) -> str:
        """Return the whole reply as one string."""

        chunks = [chunk async for chunk in self.stream(request)]
        return "".join(chunks).strip()

    async def is_available(self) -> bool:
        """Cheap liveness check before a request is dispatched."""

        return True
