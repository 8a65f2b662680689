"""Factory for creating LLM providers."""

import logging

from canvas_agent.core.config import LLMConfig
from canvas_agent.llm.openai_provider import OpenAIProvider
from canvas_agent.llm.provider import LLMProvider
from canvas_agent.llm.relay_provider import RelayProvider

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Args:
            config: LLM configuration specifying the provider.

        Returns:
            Configured LLM provider instance.

        Raises:
            ValueError: If provider type is not supported.
        """
        logger.info(f"Creating LLM provider: {config.provider}")

        if config.provider == "openai":
            return OpenAIProvider(config)
        elif config.provider == "relay":
            return RelayProvider(config)
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")
