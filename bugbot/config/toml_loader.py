"""
TOML configuration loader for BugBot.

This module loads `bugbot.toml` project files and flattens their nested tables
into dotted keys that the configuration factory maps onto settings fields.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import tomli


class TOMLConfigLoader:
    """Loader for TOML-based configuration files.

    Example:
        ```toml
        [llm]
        provider = "openai"
        temperature = 0.3

        [run]
        max_steps = 20
        ```

        loads as `{"llm.provider": "openai", "llm.temperature": 0.3, "run.max_steps": 20}`.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize TOML config loader.

        Args:
            config_path: Path to TOML configuration file. Defaults to 'bugbot.toml'
        """
        self.config_path = config_path or Path("bugbot.toml")
        self._config_cache: Optional[Dict[str, Any]] = None

    def exists(self) -> bool:
        return self.config_path.exists()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from TOML file.

        Returns:
            Dictionary containing the flattened configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If TOML file is invalid
        """
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        self._config_cache = self._flatten_config(self._load_toml_file())
        return self._config_cache

    def _load_toml_file(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML configuration file: {e}")

    def _flatten_config(self, config: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        """Flatten nested tables into dotted keys.

        Args:
            config (Dict[str, Any]): Nested configuration dictionary
            prefix (str): Current key prefix for nested values

        Returns:
            Dict[str, Any]: Flattened configuration dictionary
        """
        flattened: Dict[str, Any] = {}

        for key, value in config.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                flattened.update(self._flatten_config(value, full_key))
            else:
                flattened[full_key] = value

        return flattened

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get a specific configuration value by its dotted key.

        Args:
            key (str): Dotted configuration key, e.g. "llm.provider"
            default (Any): Default value if key doesn't exist

        Returns:
            Any: Configuration value or default
        """
        return self.load_config().get(key, default)

    def reload(self) -> None:
        """Clear configuration cache to force reload on next access."""
        self._config_cache = None
