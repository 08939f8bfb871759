"""
slashform configuration system.

    from slashform.config import get_config, load_config

    config = get_config()
    print(config.parser.user_hint)     # "@username"
"""

from .loader import (
    ConfigLoader,
    load_config,
    get_config,
    reload_config,
    validate_config_file,
)

from .models import (
    SlashFormConfig,
    AppConfig,
    ParserConfig,
    LogLevel,
)

from ..utils.error_handling import ConfigurationError

__all__ = [
    "ConfigLoader",
    "get_config",
    "load_config",
    "reload_config",
    "validate_config_file",
    "ConfigurationError",
    "SlashFormConfig",
    "AppConfig",
    "ParserConfig",
    "LogLevel",
]
