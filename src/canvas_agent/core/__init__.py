"""Core package initialization."""

from canvas_agent.core.config import AgentConfig, LayoutConfig, LLMConfig

__all__ = [
    "AgentConfig",
    "LLMConfig",
    "LayoutConfig",
]
