"""Canvas Agent.

Turns free-form language-model replies into operations placed on an
infinite canvas:
- a recovery parser that extracts tool calls from messy output
- a deterministic grid / layered layout engine
- a per-request task orchestrator around a pluggable model provider
"""

__version__ = "0.1.0"

from canvas_agent.core.config import AgentConfig

__all__ = ["__version__", "AgentConfig"]
