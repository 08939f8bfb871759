"""
Data model for app command schemas, calls and suggestions.

Schema objects (bindings, forms, fields) arrive from outside - a remote app or
a schema file - so they are pydantic models and get validated on the way in.
Results produced by the parser are plain dataclasses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AppFieldType(str, Enum):
    """Types of form fields."""
    TEXT = "text"
    BOOL = "bool"
    USER = "user"
    CHANNEL = "channel"
    STATIC_SELECT = "static_select"
    DYNAMIC_SELECT = "dynamic_select"
    MARKDOWN = "markdown"


class AppCallType(str, Enum):
    """Modes of a remote app call."""
    SUBMIT = "submit"
    FORM = "form"
    LOOKUP = "lookup"


class AppCallResponseType(str, Enum):
    """Kinds of response a remote app may send."""
    OK = "ok"
    FORM = "form"
    NAVIGATE = "navigate"


class AppBindingLocation(str, Enum):
    COMMAND = "/command"


class _SchemaModel(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=False)


class AppSelectOption(_SchemaModel):
    """One choice of a select field."""

    label: str = ""
    value: str = ""
    icon_data: Optional[str] = None


class AppCall(_SchemaModel):
    """Target of a remote call."""

    path: str
    expand: Optional[Dict[str, Any]] = None
    state: Optional[Any] = None


class AppField(_SchemaModel):
    """One typed argument slot of a form.

    Positional fields carry a 1-based ``position``; flags have none and are
    addressed by ``label`` (which falls back to ``name``).
    """

    name: str
    type: AppFieldType = AppFieldType.TEXT
    label: Optional[str] = None
    hint: Optional[str] = None
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)
    is_required: bool = False
    readonly: bool = False
    value: Optional[Union[AppSelectOption, bool, str]] = None
    options: Optional[List[AppSelectOption]] = None
    refresh: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    @model_validator(mode="after")
    def default_label(self):
        if not self.label:
            self.label = self.name
        return self

    @property
    def is_positional(self) -> bool:
        return self.position is not None


class AppForm(_SchemaModel):
    """Field schema and submit target of a (sub)command."""

    title: Optional[str] = None
    header: Optional[str] = None
    footer: Optional[str] = None
    icon: Optional[str] = None
    fields: List[AppField] = Field(default_factory=list)
    call: Optional[AppCall] = None
    submit_buttons: Optional[str] = None

    @model_validator(mode="after")
    def check_positions(self):
        positions = sorted(f.position for f in self.fields if f.position is not None)
        if positions != list(range(1, len(positions) + 1)):
            raise ValueError(
                f"positional fields must be numbered 1..n without gaps or duplicates, got {positions}"
            )
        return self

    def positional_field(self, position: int) -> Optional[AppField]:
        for f in self.fields:
            if f.position == position:
                return f
        return None


class AppBinding(_SchemaModel):
    """A named node of the command tree."""

    app_id: str = ""
    label: str
    location: Optional[str] = None
    description: Optional[str] = None
    hint: Optional[str] = None
    icon: Optional[str] = None
    call: Optional[AppCall] = None
    form: Optional[AppForm] = None
    bindings: List["AppBinding"] = Field(default_factory=list)

    @model_validator(mode="after")
    def inherit_app_id(self):
        if self.app_id:
            self._propagate_app_id(self.app_id)
        return self

    def _propagate_app_id(self, app_id: str) -> None:
        for child in self.bindings:
            if not child.app_id:
                child.app_id = app_id
            child._propagate_app_id(child.app_id)


AppBinding.model_rebuild()


class AppContext(_SchemaModel):
    """Where a call originates."""

    app_id: str
    location: str = AppBindingLocation.COMMAND.value
    channel_id: Optional[str] = None
    team_id: Optional[str] = None
    root_id: Optional[str] = None


class AppCallRequest(AppCall):
    """A call target bundled with its context and submitted values."""

    context: AppContext
    values: Dict[str, Any] = Field(default_factory=dict)
    raw_command: Optional[str] = None
    selected_field: Optional[str] = None
    query: Optional[str] = None


class AppCallResponse(_SchemaModel):
    """Response of a remote app.

    ``type`` is kept as a plain string: apps may answer with kinds this
    engine does not know, which are reported rather than rejected here.
    ``form`` stays a dict when it does not validate as an AppForm.
    """

    type: str = ""
    text: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None
    navigate_to_url: Optional[str] = None
    form: Optional[Union[AppForm, Dict[str, Any]]] = None


class User(_SchemaModel):
    id: str
    username: str
    first_name: str = ""
    last_name: str = ""


class Team(_SchemaModel):
    id: str
    name: str
    display_name: str = ""


class Channel(_SchemaModel):
    id: str
    name: str
    display_name: str = ""
    team_id: Optional[str] = None


@dataclass
class AutocompleteSuggestion:
    """One dropdown row.

    ``complete`` is the full replacement text for the input (without the
    leading slash) once suggestions have been decorated.
    """

    complete: str
    suggestion: str
    hint: str = ""
    description: str = ""
    icon_data: str = ""


@dataclass
class ComposeResult:
    """Outcome of composing a call: a call or an error message, never both."""

    call: Optional[AppCallRequest] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.call is not None and not self.error_message


@dataclass
class FormResult:
    """Outcome of resolving a form; both empty when the binding has no call."""

    form: Optional[AppForm] = None
    error: Optional[str] = None
