"""
User-visible message catalog.

Every string the parser shows to a user is a Message: a stable id plus the
default English template. Hosts localize by handing the parser an Intl with
overrides keyed by message id, for example loaded from a YAML file:

    apps.error.parser.no_slash_start: "La commande doit commencer par `/`."
"""

import re
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Union

import yaml

from .utils.error_handling import ConfigurationError, handle_configuration_operation

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class Message(NamedTuple):
    id: str
    default: str


class Messages:
    """Message ids and default templates."""

    # parser
    NO_BINDINGS = Message("apps.error.parser.no_bindings", "No command bindings.")
    NO_SLASH_START = Message("apps.error.parser.no_slash_start", "Command must start with a `/`.")
    UNEXPECTED_STATE = Message(
        "apps.error.parser.unexpected_state",
        "Unreachable: Unexpected parser state `{state}`.")
    NO_MATCH = Message(
        "apps.error.parser.no_match",
        "`{command}`: No matching command found in this workspace.")
    NO_ARGUMENT = Message("apps.error.parser.no_argument_pos_x", "Unable to identify argument.")
    UNEXPECTED_FLAG = Message(
        "apps.error.parser.unexpected_flag",
        "Command does not accept flag `{flagName}`.")
    MULTIPLE_EQUAL = Message("apps.error.parser.multiple_equal", "Multiple `=` signs are not allowed.")
    UNEXPECTED_WHITESPACE = Message(
        "apps.error.parser.unexpected_whitespace",
        "Unreachable: Unexpected whitespace.")
    MISSING_QUOTE = Message(
        "apps.error.parser.missing_quote",
        "Matching double quote expected before end of input.")
    MISSING_TICK = Message(
        "apps.error.parser.missing_tick",
        "Matching tick quote expected before end of input.")
    EMPTY_VALUE = Message("apps.error.parser.empty_value", "empty values are not allowed")
    MISSING_FIELD_VALUE = Message("apps.error.parser.missing_field_value", "Field value is missing.")
    PARSER_ERROR = Message(
        "apps.error.parser",
        "Parsing error: {error}.\n```\n{command}\n{space}^\n```")
    MISSING_BINDING = Message("apps.error.parser.missing_binding", "Missing command bindings.")
    MISSING_CALL = Message("apps.error.parser.missing_call", "Missing binding call.")
    UNEXPECTED_ERROR = Message("apps.error.parser.unexpected_error", "Unexpected error.")

    # call composition
    FIELD_MISSING = Message("apps.error.command.field_missing", "Required fields missing: `{fieldName}`.")
    UNKNOWN_OPTION = Message(
        "apps.error.command.unknown_option",
        "Unknown option for field `{fieldName}`: `{option}`.")
    UNKNOWN_USER = Message(
        "apps.error.command.unknown_user",
        "Unknown user for field `{fieldName}`: `{option}`.")
    UNKNOWN_CHANNEL = Message(
        "apps.error.command.unknown_channel",
        "Unknown channel for field `{fieldName}`: `{option}`.")

    # responses
    UNKNOWN = Message("apps.error.unknown", "Unknown error.")
    ERROR = Message("apps.error", "Error: {error}")
    UNEXPECTED_RESPONSE_TYPE = Message(
        "apps.error.responses.unexpected_type",
        "App response type was not expected. Response type: {type}")
    UNKNOWN_RESPONSE_TYPE = Message(
        "apps.error.responses.unknown_type",
        "App response type not supported. Response type: {type}.")
    UNKNOWN_FIELD_ERROR = Message(
        "apps.error.responses.unknown_field_error",
        "Received an error for an unknown field. Field name: `{field}`. Error: `{error}`.")
    MALFORMED_FORM = Message(
        "apps.error.responses.form_malformed",
        "App returned a malformed form: {error}")
    MALFORMED_RESPONSE = Message(
        "apps.error.responses.malformed",
        "App returned a malformed response: {error}")
    LOOKUP_PREPARE_ERROR = Message(
        "apps.error.lookup.error_preparing_request",
        "Error preparing lookup request: {errorMessage}")

    # suggestions
    NO_SUGGESTION = Message("apps.suggestion.no_suggestion", "No matching suggestions.")
    PARSER_ERROR_HINT = Message("apps.suggestion.errors.parser_error", "Parsing error")
    NO_STATIC = Message("apps.suggestion.no_static", "No matching options.")
    NO_DYNAMIC = Message("apps.suggestion.no_dynamic", "No data was returned for dynamic suggestions")
    DYNAMIC_ERROR = Message("apps.suggestion.dynamic.error", "Dynamic select error")
    EXECUTE = Message("apps.suggestion.execute", "Execute Current Command")
    EXECUTE_DESCRIPTION = Message(
        "apps.suggestion.execute.description",
        "Select this option or use {key}+Enter to execute the current command.")


class Intl:
    """Renders messages, preferring overrides over default templates."""

    def __init__(self, overrides: Optional[Dict[str, str]] = None, locale: str = "en"):
        self.overrides = dict(overrides or {})
        self.locale = locale

    def format_message(self, message: Message, **values: Any) -> str:
        template = self.overrides.get(message.id, message.default)
        return format_template(template, values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], locale: str = "en") -> "Intl":
        """Load overrides from ``path``; a ``{locale}`` placeholder in it selects the file."""
        return cls(load_message_overrides(format_template(str(path), {"locale": locale})), locale=locale)


def format_template(template: str, values: Dict[str, Any]) -> str:
    """Substitute ``{name}`` placeholders; unknown placeholders are kept as is."""
    def replace(match):
        name = match.group(1)
        if name not in values:
            return match.group(0)
        return str(values[name])

    return _PLACEHOLDER.sub(replace, template)


@handle_configuration_operation("load_messages")
def load_message_overrides(path: Union[str, Path]) -> Dict[str, str]:
    """Load a flat ``message id -> template`` mapping from YAML."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Messages file {path} must contain a mapping of message ids")

    return {str(key): str(value) for key, value in data.items()}
