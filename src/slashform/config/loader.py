"""
Configuration loading system for slashform.

This module handles loading, merging, and validating configuration from
YAML files and environment variables.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any, Union

import yaml
from pydantic import ValidationError
from dotenv import load_dotenv

from .models import SlashFormConfig
from ..utils.error_handling import ConfigurationError
from ..utils.logging import get_logger

ENV_PREFIX = "SLASHFORM_"


class ConfigLoader:
    """
    Configuration loader that supports multiple sources and validation.

    Loading priority (highest to lowest):
    1. Environment variables (SLASHFORM_<SECTION>_<KEY>)
    2. Explicitly specified config file
    3. Environment-specific config (configs/<SLASHFORM_ENV>.yaml)
    4. Default configuration file (configs/default.yaml)
    5. Built-in defaults (from Pydantic models)
    """

    def __init__(self, search_root: Optional[Union[str, Path]] = None):
        self._config: Optional[SlashFormConfig] = None
        self._config_path: Optional[Path] = None
        self._root = Path(search_root) if search_root else Path(".")
        self.logger = get_logger(__name__)

        env_file = self._root / ".env"
        if env_file.exists():
            load_dotenv(env_file)

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> SlashFormConfig:
        """
        Load configuration from multiple sources and validate it.

        Args:
            config_path: Optional path to a specific config file

        Returns:
            Validated SlashFormConfig instance

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        config_data: Dict[str, Any] = {}

        default_config_path = self._find_config("default")
        if default_config_path:
            config_data = self._deep_merge(config_data, self._load_yaml_file(default_config_path))

        env_name = os.getenv(f"{ENV_PREFIX}ENV")
        env_config_path = self._find_config(env_name) if env_name else None
        if env_config_path and env_config_path != default_config_path:
            config_data = self._deep_merge(config_data, self._load_yaml_file(env_config_path))

        if config_path:
            explicit_path = Path(config_path)
            if not explicit_path.exists():
                raise ConfigurationError(f"Specified config file not found: {config_path}")

            config_data = self._deep_merge(config_data, self._load_yaml_file(explicit_path))
            self._config_path = explicit_path

        config_data = self._apply_env_overrides(config_data)

        try:
            self._config = SlashFormConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {self._format_validation_error(e)}",
                details={"error_type": "validation"}
            ) from e

        self.logger.debug(f"Configuration loaded (explicit file: {self._config_path})")
        return self._config

    def get_config(self) -> SlashFormConfig:
        """Get the current configuration, loading it if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def reload_config(self, config_path: Optional[Union[str, Path]] = None) -> SlashFormConfig:
        """Reload configuration from sources."""
        self._config = None
        return self.load_config(config_path)

    def _find_config(self, name: str) -> Optional[Path]:
        possible_paths = [
            self._root / "configs" / f"{name}.yaml",
            self._root / "configs" / f"{name}.yml",
            self._root / "config" / f"{name}.yaml",
            self._root / "config" / f"{name}.yml",
        ]

        for path in possible_paths:
            if path.exists():
                return path

        return None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse a YAML configuration file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {file_path}: {str(e)}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {str(e)}") from e

        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {file_path} must contain a YAML object (dictionary)")

        return data

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        SLASHFORM_PARSER_USER_HINT=@someone overrides parser.user_hint: the
        first segment after the prefix names the section, the rest is the key.
        """
        result = config_data.copy()

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX) or env_key == f"{ENV_PREFIX}ENV":
                continue

            section, _, key = env_key[len(ENV_PREFIX):].lower().partition('_')
            if not section or not key:
                continue

            section_data = result.get(section)
            if section_data is None:
                section_data = {}
            elif not isinstance(section_data, dict):
                continue
            else:
                section_data = dict(section_data)

            section_data[key] = self._convert_env_value(env_value)
            result[section] = section_data

        return result

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to bool, int, float, list or str."""
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        try:
            if '.' not in value:
                return int(value)
            else:
                return float(value)
        except ValueError:
            pass

        if ',' in value:
            return [item.strip() for item in value.split(',')]

        return value

    def _format_validation_error(self, error: ValidationError) -> str:
        messages = []
        for err in error.errors():
            location = " -> ".join(str(loc) for loc in err['loc'])
            messages.append(f"  {location}: {err['msg']} (got: {err.get('input', 'N/A')})")

        return "Validation errors:\n" + "\n".join(messages)


_config_loader = ConfigLoader()


def load_config(config_path: Optional[Union[str, Path]] = None) -> SlashFormConfig:
    """
    Load configuration from multiple sources.

    Raises:
        ConfigurationError: If configuration loading fails
    """
    return _config_loader.load_config(config_path)


def get_config() -> SlashFormConfig:
    """Get the current configuration, loading it if necessary."""
    return _config_loader.get_config()


def reload_config(config_path: Optional[Union[str, Path]] = None) -> SlashFormConfig:
    """Reload configuration from sources."""
    return _config_loader.reload_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> tuple:
    """
    Validate a configuration file without loading it globally.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        ConfigLoader().load_config(config_path)
        return True, None
    except ConfigurationError as e:
        return False, str(e)
