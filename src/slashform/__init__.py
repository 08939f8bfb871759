"""
slashform - slash command parser and autocomplete engine for app command forms.
"""

from .apps import (
    AppBinding,
    AppCallRequest,
    AppForm,
    AppField,
    AppsClient,
    AutocompleteSuggestion,
    CommandContext,
    EntityStore,
    ReferenceResolver,
)
from .intl import Intl, Messages
from .parser import AppCommandParser, ParsedCommand, ParseState, SubmitResult

__version__ = "0.1.0"

__all__ = [
    "AppBinding",
    "AppCallRequest",
    "AppForm",
    "AppField",
    "AppsClient",
    "AutocompleteSuggestion",
    "CommandContext",
    "EntityStore",
    "ReferenceResolver",
    "Intl",
    "Messages",
    "AppCommandParser",
    "ParsedCommand",
    "ParseState",
    "SubmitResult",
    "__version__",
]
