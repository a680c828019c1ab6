"""
Provider configuration registry for LLM creation.

This module maps each supported `LLMProvider` to its langchain chat model class,
the settings it requires and the model it uses when none is configured.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from pydantic import SecretStr

from bugbot.config.settings import BugbotSettings, LLMProvider
from bugbot.exceptions import ConfigurationError


@dataclass
class ProviderConfig:
    """Configuration for a specific LLM provider."""

    name: str
    model_class: Type[BaseChatModel]
    default_model: str
    required_settings: List[str]
    error_message: str
    api_key_setting: str
    api_key_param: str = "api_key"
    model_param: str = "model"
    base_url_setting: Optional[str] = None
    base_url_param: str = "base_url"
    extra_params: Dict[str, str] = field(default_factory=dict)

    def validate_requirements(self, settings: BugbotSettings) -> None:
        """Raise `ConfigurationError` when a required setting is missing."""
        missing = [s for s in self.required_settings if getattr(settings, s, None) is None]
        if missing:
            raise ConfigurationError(
                self.error_message, config_field=missing[0], details={"missing": missing}
            )

    def get_api_key(self, settings: BugbotSettings) -> str:
        api_key = getattr(settings, self.api_key_setting, None)
        if api_key is None:
            raise ConfigurationError(self.error_message, config_field=self.api_key_setting)
        if isinstance(api_key, SecretStr):
            return api_key.get_secret_value()
        return str(api_key)

    def build_kwargs(self, settings: BugbotSettings) -> Dict[str, Any]:
        """Build the keyword arguments of the chat model constructor."""
        kwargs: Dict[str, Any] = {
            self.model_param: settings.llm_model or self.default_model,
            self.api_key_param: self.get_api_key(settings),
            "temperature": settings.llm_temperature,
        }
        if self.base_url_setting:
            base_url = getattr(settings, self.base_url_setting, None)
            if base_url:
                kwargs[self.base_url_param] = base_url
        for param, setting in self.extra_params.items():
            kwargs[param] = getattr(settings, setting)
        return kwargs


class ProviderRegistry:
    """Registry for provider-specific configurations."""

    _providers: Dict[LLMProvider, ProviderConfig] = {
        LLMProvider.AZURE_OPENAI: ProviderConfig(
            name="Azure OpenAI",
            model_class=AzureChatOpenAI,
            default_model="gpt-4o",
            required_settings=["azure_openai_endpoint", "azure_openai_key"],
            error_message="Azure OpenAI requires AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_KEY",
            api_key_setting="azure_openai_key",
            model_param="azure_deployment",
            base_url_setting="azure_openai_endpoint",
            base_url_param="azure_endpoint",
            extra_params={"api_version": "azure_openai_api_version"},
        ),
        LLMProvider.OPENAI: ProviderConfig(
            name="OpenAI",
            model_class=ChatOpenAI,
            default_model="gpt-4o",
            required_settings=["openai_api_key"],
            error_message="OpenAI requires OPENAI_API_KEY",
            api_key_setting="openai_api_key",
            base_url_setting="openai_base_url",
        ),
        LLMProvider.ANTHROPIC: ProviderConfig(
            name="Anthropic",
            model_class=ChatAnthropic,
            default_model="claude-3-5-sonnet-latest",
            required_settings=["anthropic_api_key"],
            error_message="Anthropic requires ANTHROPIC_API_KEY",
            api_key_setting="anthropic_api_key",
            base_url_setting="anthropic_base_url",
        ),
        LLMProvider.GOOGLE_GEMINI: ProviderConfig(
            name="Google Gemini",
            model_class=ChatGoogleGenerativeAI,
            default_model="gemini-2.0-flash",
            required_settings=["google_api_key"],
            error_message="Google Gemini requires GEMINI_API_KEY or GOOGLE_API_KEY",
            api_key_setting="google_api_key",
            api_key_param="google_api_key",
        ),
    }

    @classmethod
    def get_config(cls, provider: LLMProvider) -> ProviderConfig:
        """Get configuration for a provider."""
        config = cls._providers.get(provider)
        if not config:
            raise ConfigurationError(
                f"Unsupported LLM provider: {provider}", config_field="llm_provider"
            )
        return config

    @classmethod
    def get_supported_providers(cls) -> List[LLMProvider]:
        return list(cls._providers.keys())

    @classmethod
    def is_provider_supported(cls, provider: LLMProvider) -> bool:
        return provider in cls._providers
