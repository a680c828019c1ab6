"""
LLM model creation from settings.
"""

from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel

from bugbot.config.factory import ConfigurationFactory
from bugbot.config.provider_registry import ProviderRegistry
from bugbot.config.settings import BugbotSettings
from bugbot.exceptions import ConfigurationError
from bugbot.utils.logging_config import logger


def create_llm_from_settings(
    settings: Optional[BugbotSettings] = None,
    cli_mode: bool = False,
) -> BaseChatModel:
    """Create the chat model backing the decision policy.

    Args:
        settings (Optional[BugbotSettings]): Settings to use (cached settings if None)
        cli_mode (bool): Whether cached settings are loaded in CLI mode (TOML)

    Returns:
        BaseChatModel: Configured chat model for `settings.llm_provider`

    Raises:
        ConfigurationError: If the provider is unsupported, a required key is
            missing or the model class rejects the configuration

    Example:
        ```python
        from bugbot.config import ConfigurationFactory, create_llm_from_settings

        settings = ConfigurationFactory.get_settings(cli_mode=True)
        llm = create_llm_from_settings(settings)
        ```
    """
    if settings is None:
        settings = ConfigurationFactory.get_settings(cli_mode=cli_mode)

    provider_config = ProviderRegistry.get_config(settings.llm_provider)
    provider_config.validate_requirements(settings)

    kwargs = provider_config.build_kwargs(settings)
    logger.debug(f"Creating {provider_config.name} model '{kwargs[provider_config.model_param]}'")

    try:
        return provider_config.model_class(**kwargs)
    except Exception as e:
        raise ConfigurationError(
            f"Failed to create {provider_config.name} model: {e}",
            config_field="llm_provider",
            original_error=e,
        )
