"""Model provider abstraction and implementations."""

from canvas_agent.llm.factory import LLMFactory
from canvas_agent.llm.provider import Attachment, LLMProvider, ModelRequest, TransportError

__all__ = ["Attachment", "LLMFactory", "LLMProvider", "ModelRequest", "TransportError"]
