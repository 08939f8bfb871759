"""
Test suite for configuration models and loading.

Covers pydantic validation of the config sections, YAML discovery and
merging, and environment variable overrides.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from slashform.config.loader import ConfigLoader, validate_config_file
from slashform.config.models import AppConfig, LogLevel, ParserConfig, SlashFormConfig
from slashform.utils.error_handling import ConfigurationError


@pytest.mark.unit
class TestConfigModels:
    """Test the pydantic configuration models."""

    def test_defaults(self):
        """Test default values of every section."""
        config = SlashFormConfig()

        assert config.app.name == "slashform"
        assert config.app.log_level == LogLevel.WARNING
        assert config.app.log_file is None
        assert config.parser.call_timeout_seconds is None
        assert config.parser.user_hint == "@username"
        assert config.parser.channel_hint == "~channelname"
        assert config.parser.execute_item_id == "_execute_current_command"
        assert config.parser.locale == "en"

    def test_log_level_enum_validation(self):
        """Test LogLevel enum validation."""
        assert AppConfig(log_level="ERROR").log_level == LogLevel.ERROR

        with pytest.raises(ValidationError):
            AppConfig(log_level="INVALID_LEVEL")

    def test_path_expansion(self):
        """Test that home directories are expanded in paths."""
        app = AppConfig(log_file="~/logs/slashform.log")
        parser = ParserConfig(messages_file="~/messages.yaml")

        assert not app.log_file.startswith("~")
        assert not parser.messages_file.startswith("~")

    @pytest.mark.parametrize("timeout", [0, -1, 601])
    def test_timeout_bounds(self, timeout):
        """Test that call timeouts must be positive and bounded."""
        with pytest.raises(ValidationError):
            ParserConfig(call_timeout_seconds=timeout)

    def test_execute_item_id_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            ParserConfig(execute_item_id="")

    def test_validate_assignment(self):
        """Test that assigning a section re-validates it."""
        config = SlashFormConfig()

        with pytest.raises(ValidationError):
            config.parser = {"call_timeout_seconds": "soon"}


@pytest.mark.unit
class TestConfigLoader:
    """Test the ConfigLoader class functionality."""

    @pytest.fixture(autouse=True)
    def clean_environment(self):
        """Hide SLASHFORM_* variables of the surrounding shell."""
        env = {k: v for k, v in os.environ.items() if not k.startswith("SLASHFORM_")}
        with patch.dict(os.environ, env, clear=True):
            yield

    def test_load_default_config(self, tmp_path):
        """Test loading built-in defaults when no files exist."""
        config = ConfigLoader(tmp_path).load_config()

        assert isinstance(config, SlashFormConfig)
        assert config.parser.user_hint == "@username"

    def test_default_file_is_discovered(self, tmp_path):
        """Test that configs/default.yaml under the search root is used."""
        (tmp_path / "configs").mkdir()
        (tmp_path / "configs" / "default.yaml").write_text("parser:\n  locale: fr\n")

        config = ConfigLoader(tmp_path).load_config()

        assert config.parser.locale == "fr"

    def test_environment_specific_file(self, tmp_path):
        """Test that SLASHFORM_ENV selects an additional config file."""
        (tmp_path / "configs").mkdir()
        (tmp_path / "configs" / "default.yaml").write_text("parser:\n  locale: fr\n  user_hint: '@who'\n")
        (tmp_path / "configs" / "test.yml").write_text("parser:\n  locale: de\n")

        with patch.dict(os.environ, {"SLASHFORM_ENV": "test"}):
            config = ConfigLoader(tmp_path).load_config()

        assert config.parser.locale == "de"
        assert config.parser.user_hint == "@who"

    def test_explicit_file_overrides_defaults(self, tmp_path):
        """Test loading configuration from a YAML file."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(
            "app:\n"
            "  log_level: DEBUG\n"
            "parser:\n"
            "  call_timeout_seconds: 2.5\n"
            "  channel_hint: '#channel'\n"
        )
        loader = ConfigLoader(tmp_path)

        config = loader.load_config(config_file)

        assert config.app.log_level == LogLevel.DEBUG
        assert config.parser.call_timeout_seconds == 2.5
        assert config.parser.channel_hint == "#channel"
        assert loader.config_path == config_file

    def test_environment_variable_overrides(self, tmp_path):
        """Test that environment variables override config file values."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("parser:\n  user_hint: '@file'\n")

        env_vars = {
            "SLASHFORM_PARSER_USER_HINT": "@env",
            "SLASHFORM_PARSER_CALL_TIMEOUT_SECONDS": "10",
            "SLASHFORM_APP_VERBOSE_LOGGING": "yes",
        }
        with patch.dict(os.environ, env_vars):
            config = ConfigLoader(tmp_path).load_config(config_file)

        assert config.parser.user_hint == "@env"
        assert config.parser.call_timeout_seconds == 10
        assert config.app.verbose_logging is True

    @pytest.mark.parametrize("raw,expected", [
        ("true", True),
        ("off", False),
        ("42", 42),
        ("0.5", 0.5),
        ("a, b", ["a", "b"]),
        ("plain", "plain"),
    ])
    def test_environment_value_conversion(self, tmp_path, raw, expected):
        assert ConfigLoader(tmp_path)._convert_env_value(raw) == expected

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(tmp_path).load_config(tmp_path / "nonexistent.yaml")

        assert "Specified config file not found" in str(exc_info.value)

    def test_malformed_yaml_handling(self, tmp_path):
        """Test handling of malformed YAML files."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text('app:\n  name: "broken\n  invalid: yaml: content\n')

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(tmp_path).load_config(config_file)

        assert "Invalid YAML" in str(exc_info.value)

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader(tmp_path).load_config(config_file)

    def test_validation_errors_are_reported(self, tmp_path):
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("parser:\n  call_timeout_seconds: -3\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(tmp_path).load_config(config_file)

        assert "Configuration validation failed" in str(exc_info.value)
        assert "parser -> call_timeout_seconds" in str(exc_info.value)

    def test_reload_config(self, tmp_path):
        loader = ConfigLoader(tmp_path)
        first = loader.get_config()

        config_file = tmp_path / "custom.yaml"
        config_file.write_text("parser:\n  locale: es\n")
        reloaded = loader.reload_config(config_file)

        assert first.parser.locale == "en"
        assert reloaded.parser.locale == "es"
        assert loader.get_config() is reloaded

    def test_validate_config_file(self, tmp_path):
        good = tmp_path / "good.yaml"
        good.write_text("parser:\n  locale: it\n")
        bad = tmp_path / "bad.yaml"
        bad.write_text("app:\n  log_level: LOUD\n")

        assert validate_config_file(good) == (True, None)
        is_valid, error = validate_config_file(bad)
        assert is_valid is False
        assert "log_level" in error
