"""Test configuration and fixtures."""

import os
from pathlib import Path

import pytest

from canvas_agent.core.config import AgentConfig, LayoutConfig, LLMConfig
from canvas_agent.layout import LayoutEngine


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings independent of the developer's shell and `.env`."""
    for key in list(os.environ):
        if key.startswith("CANVAS_AGENT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(
        provider="openai",
        openai_api_key="test-key",
        openai_model="gpt-4o",
    )


@pytest.fixture
def layout_config() -> LayoutConfig:
    """Provide the default layout metrics."""
    return LayoutConfig()


@pytest.fixture
def agent_config(llm_config: LLMConfig, layout_config: LayoutConfig) -> AgentConfig:
    """Provide an agent configuration with the follow-up rounds switched off."""
    return AgentConfig(
        log_level="DEBUG",
        debug=True,
        clarification_enabled=False,
        suggestions_enabled=False,
        llm=llm_config,
        layout=layout_config,
    )


@pytest.fixture
def engine(layout_config: LayoutConfig) -> LayoutEngine:
    """Provide a layout engine with default metrics."""
    return LayoutEngine(layout_config)
