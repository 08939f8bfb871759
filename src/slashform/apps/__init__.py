"""
App command schema, collaborator interfaces and session state.
"""

from .types import (
    AppFieldType,
    AppCallType,
    AppCallResponseType,
    AppBindingLocation,
    AppSelectOption,
    AppCall,
    AppField,
    AppForm,
    AppBinding,
    AppContext,
    AppCallRequest,
    AppCallResponse,
    User,
    Team,
    Channel,
    AutocompleteSuggestion,
    ComposeResult,
    FormResult,
)
from .interfaces import AppsClient, ReferenceResolver
from .state import CommandContext, EntityStore
from .schema import CommandSchema, load_schema

__all__ = [
    "AppFieldType",
    "AppCallType",
    "AppCallResponseType",
    "AppBindingLocation",
    "AppSelectOption",
    "AppCall",
    "AppField",
    "AppForm",
    "AppBinding",
    "AppContext",
    "AppCallRequest",
    "AppCallResponse",
    "User",
    "Team",
    "Channel",
    "AutocompleteSuggestion",
    "ComposeResult",
    "FormResult",
    "AppsClient",
    "ReferenceResolver",
    "CommandContext",
    "EntityStore",
    "CommandSchema",
    "load_schema",
]
