"""
Cursor state for one parse of a slash command.

ParsedCommand drives the transition functions from ``states`` over the
input and performs the effects they request: matching sub-commands against
the binding tree, resolving positional and flag fields, and binding values.
It works in two modes. Complete mode parses a whole command for submission;
autocomplete mode stops cleanly on partial input (an unfinished token, an
unterminated quote) so suggestions can be computed from where it stopped.
"""

from typing import Any, Dict, List, Optional, Protocol

from .states import (
    Effect,
    END,
    LexState,
    ParseState,
    Step,
    binding_transition,
    form_transition,
)
from ..apps.types import AppBinding, AppField, AppFieldType, AppForm, FormResult
from ..intl import Intl, Message, Messages
from ..utils.logging import get_logger

logger = get_logger(__name__)


class FormsProvider(Protocol):
    async def get_form(self, location: str, binding: AppBinding) -> FormResult:
        ...


class ParsedCommand:
    """Mutable parse cursor; one instance per parse, never shared."""

    def __init__(self, command: str, forms: FormsProvider, intl: Optional[Intl] = None):
        self.command = command
        self.forms = forms
        self.intl = intl or Intl()

        self.state = ParseState.START
        self.i = 0
        self.incomplete = ""
        self.incomplete_start = 0
        self.binding: Optional[AppBinding] = None
        self.form: Optional[AppForm] = None
        self.field: Optional[AppField] = None
        self.position = 0
        self.values: Dict[str, Any] = {}
        self.location = ""
        self.error = ""

        self._escaped = False
        self._equals_used = False
        self._candidates: List[AppBinding] = []
        self._fields: List[AppField] = []

    def __repr__(self):
        return (f"ParsedCommand(state={self.state.value}, i={self.i}, "
                f"incomplete={self.incomplete!r}, location={self.location!r})")

    @property
    def is_error(self) -> bool:
        return self.state is ParseState.ERROR

    def as_error(self, message: str) -> "ParsedCommand":
        self.state = ParseState.ERROR
        self.error = message
        return self

    def _format(self, message: Message, **values) -> str:
        return self.intl.format_message(message, **values)

    async def match_binding(self, command_bindings: List[AppBinding],
                            autocomplete: bool = False) -> "ParsedCommand":
        """Find the deepest binding whose labels match the leading tokens.

        The walk stops without error at the first token that is not a
        sub-command of the binding matched so far; that token is left for
        parse_form to read as a parameter. The form of the matched binding is
        taken inline or fetched through the forms provider.
        """
        if not command_bindings:
            return self.as_error(self._format(Messages.NO_BINDINGS))

        self._candidates = list(command_bindings)
        self._run(binding_transition, autocomplete)
        if self.is_error:
            return self

        if self.binding is None:
            return self.as_error(self._format(Messages.NO_MATCH, command=self.command))

        logger.debug(f"Matched binding {self.location} (state={self.state.value})")

        self.form = self.binding.form
        if self.form is None:
            fetched = await self.forms.get_form(self.location, self.binding)
            if fetched.error:
                return self.as_error(fetched.error)
            self.form = fetched.form

        return self

    def parse_form(self, autocomplete: bool = False) -> "ParsedCommand":
        """Read positional and flag parameters against the matched form."""
        if self.is_error or self.form is None:
            return self

        self._fields = [
            f for f in self.form.fields
            if f.type is not AppFieldType.MARKDOWN and not f.readonly
        ]
        self.state = ParseState.START_PARAMETER
        self.i = self.incomplete_start or 0
        self._equals_used = False
        self._escaped = False

        self._run(form_transition, autocomplete)
        logger.debug(f"Parsed form for {self.location}: state={self.state.value}, fields={sorted(self.values)}")
        return self

    def _current_char(self) -> str:
        if self.i < len(self.command):
            return self.command[self.i]
        return END

    def _lex_state(self) -> LexState:
        return LexState(
            escaped=self._escaped,
            equals_used=self._equals_used,
            token_empty=self.incomplete == "",
        )

    def _run(self, transition, autocomplete: bool) -> None:
        while True:
            c = self._current_char()
            previous = self.state
            step: Step = transition(previous, c, autocomplete, self._lex_state())

            if step.error is not None:
                self.as_error(self._format(step.error, **step.error_values))
                return

            self.state = step.state
            stop = step.stop
            for effect in step.effects:
                override = self._apply(effect, c, previous, autocomplete)
                if self.is_error:
                    return
                if override is not None:
                    stop = override

            if step.advance:
                self.i += 1

            for effect in step.after:
                self._apply(effect, c, previous, autocomplete)

            if stop:
                return

    def _apply(self, effect: Effect, c: str, previous: ParseState,
               autocomplete: bool) -> Optional[bool]:
        """Perform one effect. A bool return overrides the step's stop flag."""
        if effect is Effect.APPEND:
            self.incomplete += c
            self._escaped = False
        elif effect is Effect.BEGIN_TOKEN:
            self.incomplete = ""
            self.incomplete_start = self.i
        elif effect is Effect.MARK_START:
            self.incomplete_start = self.i
        elif effect is Effect.BEGIN_FLAG:
            self.incomplete = ""
            self.incomplete_start = self.i
            self._equals_used = False
        elif effect is Effect.FLAG_EQUALS:
            self._equals_used = True
        elif effect is Effect.ESCAPE:
            self._escaped = True
        elif effect is Effect.MATCH_BINDING:
            return self._match_token()
        elif effect is Effect.NEXT_POSITIONAL:
            self._next_positional()
        elif effect is Effect.RESOLVE_FLAG:
            self._resolve_flag()
        elif effect is Effect.BIND_VALUE:
            return self._bind_value(c, previous, autocomplete)
        return None

    def _match_token(self) -> Optional[bool]:
        token = self.incomplete.lower()
        binding = next((b for b in self._candidates if b.label.lower() == token), None)
        if binding is None:
            # not a sub-command: keep the last match, the token is a parameter
            self.state = ParseState.END_COMMAND
            return True

        self.binding = binding
        self.location += "/" + binding.label
        self._candidates = list(binding.bindings)
        return None

    def _next_positional(self) -> None:
        self.position += 1
        field = next((f for f in self._fields if f.position == self.position), None)
        if field is None:
            self.as_error(self._format(Messages.NO_ARGUMENT))
            return
        self.field = field

    def _resolve_flag(self) -> None:
        name = self.incomplete.lower()
        field = next((f for f in self._fields if f.label and f.label.lower() == name), None)
        if field is None:
            self.as_error(self._format(Messages.UNEXPECTED_FLAG, flagName=self.incomplete))
            return
        self.field = field
        self.incomplete = ""

    def _bind_value(self, c: str, previous: ParseState, autocomplete: bool) -> Optional[bool]:
        if self.field is None:
            self.as_error(self._format(Messages.MISSING_FIELD_VALUE))
            return None

        if self.field.type is AppFieldType.BOOL and not _is_boolean_literal(self.incomplete, autocomplete):
            # a bare boolean flag: the token starts the next parameter
            self.i = self.incomplete_start
            self.values[self.field.name] = "true"
            self.state = ParseState.START_PARAMETER
            return False

        if autocomplete and c == END:
            self.state = previous
            return True

        self.values[self.field.name] = self.incomplete
        self.incomplete = ""
        self.incomplete_start = self.i
        if c == END:
            self.state = previous
            return True
        return None


def _is_boolean_literal(token: str, autocomplete: bool) -> bool:
    if autocomplete:
        return "true".startswith(token) or "false".startswith(token)
    return token in ("true", "false")
