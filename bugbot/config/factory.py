"""
Configuration factory for managing settings instances.

This module provides a factory for creating and caching `BugbotSettings`
instances, merging `bugbot.toml` project settings over environment variables
when running from the command line.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from bugbot.config.settings import BugbotSettings, LLMProvider
from bugbot.config.toml_loader import TOMLConfigLoader
from bugbot.exceptions import ConfigurationError
from bugbot.utils.logging_config import logger


class ConfigurationFactory:
    """Factory for creating and managing configuration instances.

    Settings are created once and cached until `reset()` is called.
    """

    _instance: Optional[BugbotSettings] = None
    _toml_loader: Optional[TOMLConfigLoader] = None

    # TOML dotted key -> settings field
    field_mapping: Dict[str, str] = {
        "llm.provider": "llm_provider",
        "llm.model": "llm_model",
        "llm.temperature": "llm_temperature",
        "llm.azure_openai.api_version": "azure_openai_api_version",
        "llm.openai.base_url": "openai_base_url",
        "llm.anthropic.base_url": "anthropic_base_url",
        "run.max_steps": "max_steps",
        "run.timeout_seconds": "timeout_seconds",
        "run.step_delay_seconds": "step_delay_seconds",
        "run.headless": "headless",
        "executor.click_settle_seconds": "click_settle_seconds",
        "executor.input_settle_seconds": "input_settle_seconds",
        "executor.wait_action_seconds": "wait_action_seconds",
        "executor.navigation_wait_until": "navigation_wait_until",
        "runner.url": "runner_url",
        "runner.request_timeout_seconds": "runner_request_timeout_seconds",
        "prompt.max_elements": "max_prompt_elements",
        "prompt.max_recent_actions": "max_recent_actions",
        "prompt.max_recent_console_errors": "max_recent_console_errors",
        "logging.level": "log_level",
        "logging.enabled": "logging_enabled",
        "paths.runs_dir": "runs_dir",
    }

    @classmethod
    def get_settings(
        cls, cli_mode: bool = False, config_path: Optional[Path] = None
    ) -> BugbotSettings:
        """Get or create the settings instance.

        Args:
            cli_mode (bool): Merge `bugbot.toml` over environment variables (CLI)
                instead of using environment variables only (library)
            config_path (Optional[Path]): TOML file to use in CLI mode

        Returns:
            BugbotSettings: Configured settings instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if cls._instance is None:
            if cli_mode:
                cls._instance = cls._load_with_toml(config_path)
            else:
                cls._instance = cls._load_from_env_only()

        return cls._instance

    @classmethod
    def _load_with_toml(cls, config_path: Optional[Path]) -> BugbotSettings:
        """Load settings from TOML (non-sensitive values) plus environment (API keys).

        A missing TOML file is not an error: the environment and the code
        defaults are used instead.
        """
        if cls._toml_loader is None:
            cls._toml_loader = TOMLConfigLoader(config_path)

        if not cls._toml_loader.exists():
            logger.debug(f"No configuration file at {cls._toml_loader.config_path}, using env")
            return cls._load_from_env_only()

        try:
            toml_config = cls._toml_loader.load_config()
        except ValueError as e:
            raise ConfigurationError(
                f"TOML configuration error: {e}",
                details={"path": str(cls._toml_loader.config_path)},
                original_error=e,
            )

        overrides = cls._convert_toml_to_pydantic(toml_config)
        try:
            return BugbotSettings(**overrides)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration values",
                details={"errors": e.errors(include_url=False)},
                original_error=e,
            )

    @classmethod
    def _load_from_env_only(cls) -> BugbotSettings:
        try:
            return BugbotSettings()
        except ValidationError as e:
            raise ConfigurationError(
                "Environment configuration error",
                details={"errors": e.errors(include_url=False)},
                original_error=e,
            )

    @classmethod
    def _convert_toml_to_pydantic(cls, toml_config: Dict[str, Any]) -> Dict[str, Any]:
        """Convert flattened TOML configuration to settings keyword arguments.

        Args:
            toml_config: Flattened TOML configuration

        Returns:
            Dictionary of settings field values
        """
        pydantic_config: Dict[str, Any] = {}
        for toml_key, field_name in cls.field_mapping.items():
            if toml_key not in toml_config:
                continue

            value = toml_config[toml_key]
            if toml_key == "llm.provider" and isinstance(value, str):
                try:
                    value = LLMProvider(value)
                except ValueError:
                    raise ConfigurationError(
                        f"Unsupported LLM provider: {value}",
                        config_field="llm_provider",
                        details={"supported": [p.value for p in LLMProvider]},
                    )
            elif toml_key.startswith("paths.") and isinstance(value, str):
                value = Path(value)

            pydantic_config[field_name] = value

        return pydantic_config

    @classmethod
    def reset(cls) -> None:
        """Reset the cached instance (useful for testing)."""
        cls._instance = None
        cls._toml_loader = None
