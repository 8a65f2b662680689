"""Core configuration for the canvas agent."""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from canvas_agent.logging import configure_logging


class LLMConfig(BaseSettings):
    """Configuration for model providers."""

    provider: Literal["openai", "relay"] = Field(
        default="openai",
        description="Model provider to use",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o",
        description="OpenAI model to use",
    )
    openai_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for OpenAI model",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints",
    )

    # Relay settings
    relay_base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the local relay server",
    )
    health_timeout_seconds: float = Field(
        default=1.0,
        gt=0.0,
        description="Timeout for the relay liveness probe",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Connect timeout for relay requests",
    )
    request_timeout_seconds: float = Field(
        default=300.0,
        gt=0.0,
        description="Read timeout for streamed relay requests",
    )

    # Token limits per call type
    max_tokens: int = Field(default=4096, gt=0, description="Limit for the main request")
    clarify_max_tokens: int = Field(default=512, gt=0, description="Limit for clarification")
    suggest_max_tokens: int = Field(default=256, gt=0, description="Limit for follow-up suggestions")
    summary_max_tokens: int = Field(default=2048, gt=0, description="Limit for document summaries")

    model_config = SettingsConfigDict(
        env_prefix="CANVAS_AGENT_LLM_",
        env_file=".env",
        extra="ignore",
    )


class LayoutConfig(BaseSettings):
    """Metrics used by the layout engine, in canvas units."""

    card_width: float = Field(default=280.0, gt=0)
    card_height: float = Field(default=120.0, gt=0)
    card_image_height: float = Field(default=260.0, gt=0, description="Height of cards with an image")
    gap: float = Field(default=16.0, ge=0, description="Gap between cards")
    max_columns: int = Field(default=4, gt=0, description="Column cap in grid mode")
    layer_gap: float = Field(default=60.0, ge=0, description="Vertical gap between layers")
    anchor_offset_y: float = Field(
        default=-100.0,
        description="Offset of the first row from the focal point's y",
    )

    table_gap: float = Field(default=20.0, ge=0, description="Gap above each table")
    table_min_width: float = Field(default=400.0, gt=0)
    table_max_width: float = Field(default=1200.0, gt=0)
    table_column_width: float = Field(default=160.0, gt=0)
    table_side_padding: float = Field(default=40.0, ge=0)
    table_title_height: float = Field(default=44.0, ge=0)
    table_row_height: float = Field(default=36.0, gt=0)
    table_tab_bar_height: float = Field(default=36.0, ge=0)
    table_bottom_padding: float = Field(default=12.0, ge=0)

    slide_width: float = Field(default=960.0, gt=0)
    slide_height: float = Field(default=540.0, gt=0)
    slide_gap: float = Field(default=60.0, ge=0, description="Gap above each slide")

    group_padding: float = Field(default=20.0, ge=0, description="Padding around group members")
    focus_padding: float = Field(default=40.0, ge=0, description="Padding around the focus region")

    summary_width: float = Field(default=380.0, gt=0)
    summary_height: float = Field(default=220.0, gt=0)
    question_width: float = Field(default=240.0, gt=0)
    question_gap: float = Field(default=20.0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CANVAS_AGENT_LAYOUT_",
        env_file=".env",
        extra="ignore",
    )


class AgentConfig(BaseSettings):
    """Main configuration for the canvas agent."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    clarification_enabled: bool = Field(
        default=True,
        description="Ask one clarifying question before open-ended requests",
    )
    suggestions_enabled: bool = Field(
        default=True,
        description="Propose a follow-up step after each request",
    )
    summary_timeout_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Safety timeout after which a document summary is marked failed",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="Model provider configuration",
    )
    layout: LayoutConfig = Field(
        default_factory=LayoutConfig,
        description="Layout metrics",
    )

    model_config = SettingsConfigDict(
        env_prefix="CANVAS_AGENT_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(self.log_level)

        if self.debug:
            logging.getLogger("canvas_agent").setLevel(logging.DEBUG)
