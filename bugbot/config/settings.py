"""
Core configuration settings for BugBot using Pydantic Settings.

This module provides type-safe configuration management with TOML file support
for project settings and environment variables for sensitive data, validation,
and default values for all BugBot components.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    """Enumeration of supported LLM providers."""

    AZURE_OPENAI = "azure_openai"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE_GEMINI = "google_gemini"


class BugbotSettings(BaseSettings):
    """Main configuration settings for BugBot.

    This class provides centralized configuration management with:
    - Type-safe configuration with validation
    - TOML file support for project settings
    - Environment variable support for sensitive data (API keys)
    - Code-based defaults for missing values
    - Multi-LLM provider support
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # LLM Provider Selection (from TOML)
    llm_provider: LLMProvider = Field(
        default=LLMProvider.GOOGLE_GEMINI,
        description="LLM provider backing the decision policy",
    )
    llm_model: Optional[str] = Field(
        default=None, description="Model name, provider default when not set"
    )
    llm_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM responses",
    )

    # Azure OpenAI Configuration (Sensitive - from .env)
    azure_openai_endpoint: Optional[str] = Field(
        default=None, alias="AZURE_OPENAI_ENDPOINT", description="Azure OpenAI endpoint URL"
    )
    azure_openai_key: Optional[SecretStr] = Field(
        default=None, alias="AZURE_OPENAI_KEY", description="Azure OpenAI API key"
    )
    azure_openai_api_version: str = Field(
        default="2024-02-15-preview",
        description="Azure OpenAI API version",
    )

    # OpenAI Configuration (Sensitive - from .env)
    openai_api_key: Optional[SecretStr] = Field(
        default=None, alias="OPENAI_API_KEY", description="OpenAI API key"
    )
    openai_base_url: Optional[str] = Field(default=None, description="OpenAI API base URL")

    # Anthropic Configuration (Sensitive - from .env)
    anthropic_api_key: Optional[SecretStr] = Field(
        default=None, alias="ANTHROPIC_API_KEY", description="Anthropic API key"
    )
    anthropic_base_url: Optional[str] = Field(
        default=None, description="Anthropic API base URL"
    )

    # Google Gemini Configuration (Sensitive - from .env)
    google_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY", "google_api_key"),
        description="Google API key for Gemini",
    )

    # Run Configuration (from TOML)
    max_steps: int = Field(default=20, ge=1, description="Maximum number of exploration steps")
    timeout_seconds: float = Field(
        default=300.0, gt=0, description="Wall-clock limit of one run in seconds"
    )
    step_delay_seconds: float = Field(
        default=1.0, ge=0, description="Delay between two exploration steps"
    )
    headless: bool = Field(default=False, description="Run the browser without a window")
    runs_dir: Path = Field(default=Path("./runs"), description="Directory for run artifacts")

    # Executor Configuration (from TOML)
    click_settle_seconds: float = Field(default=0.5, ge=0)
    input_settle_seconds: float = Field(default=0.3, ge=0)
    wait_action_seconds: float = Field(default=2.0, ge=0)
    navigation_wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="networkidle",
        description="Playwright load state awaited after a navigation",
    )

    # Runner Configuration (from TOML)
    runner_url: Optional[str] = Field(
        default=None, description="Base URL of a `bugbot serve` runner; local browser when unset"
    )
    runner_request_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Timeout of one request to the runner"
    )

    # Prompt Configuration (from TOML)
    max_prompt_elements: int = Field(default=30, ge=1)
    max_recent_actions: int = Field(default=5, ge=0)
    max_recent_console_errors: int = Field(default=5, ge=0)

    # Logging Configuration (from TOML)
    log_level: str = Field(default="INFO", description="Logging level")
    logging_enabled: bool = Field(default=True, description="Enable BugBot-specific logging")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the logging level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    def model_post_init(self, __context: Any) -> None:
        """Post-initialization setup (provider validation is lazy)."""
        pass
