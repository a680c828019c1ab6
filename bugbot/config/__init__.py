"""
Configuration management for BugBot.

This module provides configuration management with:
- TOML-based project configuration (`bugbot.toml`)
- Environment variable support for sensitive data (API keys)
- Type-safe settings with Pydantic
- A provider registry for creating the LLM behind the decision policy

## Key Components

1. **ConfigurationFactory** - Creates and caches settings instances
2. **BugbotSettings** - Main configuration settings with validation
3. **TOMLConfigLoader** - TOML file loading and flattening
4. **LLMProvider** - Enumeration of supported LLM providers
5. **ProviderRegistry** - Provider-specific model classes and requirements
6. **create_llm_from_settings** - Chat model creation

## Usage Examples

```python
from bugbot.config import ConfigurationFactory, create_llm_from_settings

settings = ConfigurationFactory.get_settings(cli_mode=True)
llm = create_llm_from_settings(settings)
```
"""

from .factory import ConfigurationFactory
from .llm_creator import create_llm_from_settings
from .provider_registry import ProviderConfig, ProviderRegistry
from .settings import BugbotSettings, LLMProvider
from .toml_loader import TOMLConfigLoader

__all__ = [
    "ConfigurationFactory",
    "BugbotSettings",
    "LLMProvider",
    "TOMLConfigLoader",
    "ProviderConfig",
    "ProviderRegistry",
    "create_llm_from_settings",
]
