"""OpenAI model provider implementation."""

import logging
from collections.abc import AsyncIterator
from typing import Any

import openai
from openai import AsyncOpenAI

from canvas_agent.core.config import LLMConfig
from canvas_agent.llm.provider import LLMProvider, ModelRequest, TransportError

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation."""

    def __init__(self, config: LLMConfig, client: AsyncOpenAI | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            client: Pre-built client, mainly for tests.

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.openai_api_key:
            raise ValueError("OpenAI API key is required")

        self.config = config
        self.client = client or AsyncOpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
        )
        self.model = config.openai_model
        self.temperature = config.openai_temperature

        logger.info(f"OpenAI provider initialized with model: {self.model}")

    @staticmethod
    def build_messages(request: ModelRequest) -> list[dict[str, Any]]:
        """Translate a request into chat messages.

        Images become vision parts and PDFs file parts; markdown files are
        already inlined in the system text.
        """
        content: list[dict[str, Any]] = []
        for attachment in request.attachments:
            if attachment.is_image and attachment.payload:
                content.append({"type": "image_url", "image_url": {"url": attachment.data_url}})
            elif attachment.is_pdf and attachment.payload:
                content.append(
                    {
                        "type": "file",
                        "file": {"filename": attachment.name, "file_data": attachment.data_url},
                    }
                )
        content.append({"type": "text", "text": request.message})

        return [
            {"role": "system", "content": request.system_text()},
            {"role": "user", "content": content},
        ]

    async def stream(self, request: ModelRequest) -> AsyncIterator[str]:
        """Stream a chat completion.

        Args:
            request: The request to send.

        Yields:
            Text deltas as they arrive.

        Raises:
            TransportError: On any API or connection error.
        """
        messages = self.build_messages(request)
        logger.debug(
            f"Streaming chat completion with {len(messages)} messages",
            extra={"purpose": request.purpose},
        )

        received = 0
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=request.max_tokens or self.config.max_tokens,
                temperature=self.temperature,
                stream=True,
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    received += len(delta)
                    yield delta
        except openai.APIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise TransportError(str(e) or type(e).__name__) from e

        logger.debug(f"Generated {received} characters")
