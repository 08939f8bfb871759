"""
Autocomplete suggestions for partially typed slash commands.

Every suggestion returned by ``get_suggestions`` carries a full replacement
text for the input box (minus the leading slash), so a client can apply it
without any text manipulation of its own.
"""

from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from .parsed_command import ParsedCommand
from .states import ParseState
from ..apps.types import (
    AppCallResponseType,
    AppCallType,
    AppFieldType,
    AppSelectOption,
    AutocompleteSuggestion,
)
from ..intl import Messages
from ..utils.error_handling import ExternalCallError
from ..utils.logging import performance_timer

ERROR_ICON = "error"

_LOOKUP_ITEMS = TypeAdapter(List[AppSelectOption])

EXECUTABLE_STATES = (
    ParseState.END_COMMAND,
    ParseState.COMMAND_SEPARATOR,
    ParseState.START_PARAMETER,
    ParseState.PARAMETER_SEPARATOR,
    ParseState.END_VALUE,
)


def is_multiword(value: str) -> bool:
    return " " in value or "\t" in value


def _wrap(value: str, delimiter: Optional[str]) -> str:
    if delimiter:
        return delimiter + value + delimiter
    if is_multiword(value):
        return "`" + value + "`"
    return value


class SuggestionsMixin:
    """Suggestion generation for AppCommandParser."""

    def get_suggestions_base(self, pretext: str) -> List[AutocompleteSuggestion]:
        """Top-level commands matching what has been typed so far."""
        command = pretext.lower()
        result = []
        for binding in self.get_command_bindings():
            base = binding.label
            if not base:
                continue
            if not base.startswith("/"):
                base = "/" + base
            if base.startswith(command):
                result.append(AutocompleteSuggestion(
                    complete=binding.label,
                    suggestion=base,
                    description=binding.description or "",
                    hint=binding.hint or "",
                    icon_data=binding.icon or "",
                ))
        return result

    @performance_timer("suggestions")
    async def get_suggestions(self, pretext: str) -> List[AutocompleteSuggestion]:
        """Sub-command and parameter suggestions for ``pretext``."""
        parsed = ParsedCommand(pretext, self.forms, self.intl)
        suggestions: List[AutocompleteSuggestion] = []

        parsed = await parsed.match_binding(self.get_command_bindings(), autocomplete=True)
        if parsed.is_error:
            suggestions = self.get_error_suggestion(parsed)

        if parsed.state is ParseState.COMMAND:
            suggestions = self.get_command_suggestions(parsed)

        if parsed.form is not None or parsed.incomplete:
            parsed = parsed.parse_form(autocomplete=True)
            if parsed.is_error:
                suggestions = self.get_error_suggestion(parsed)
            suggestions = suggestions + await self.get_parameter_suggestions(parsed)

        if self._is_executable(parsed):
            suggestions = [self.get_execute_suggestion(parsed)] + suggestions
        elif not suggestions and not _is_reference_field(parsed):
            suggestions = self.get_no_matching_suggestion()

        return [self.decorate_suggestion_complete(parsed, s) for s in suggestions]

    def _is_executable(self, parsed: ParsedCommand) -> bool:
        if parsed.state not in EXECUTABLE_STATES:
            return False

        call = None
        if parsed.form is not None:
            call = parsed.form.call
        if call is None and parsed.binding is not None:
            call = parsed.binding.call or (parsed.binding.form.call if parsed.binding.form else None)
        if call is None:
            return False

        if self.get_missing_fields(parsed):
            return False

        # a value slot that was just closed must hold a value
        if parsed.state is ParseState.END_VALUE:
            return parsed.field is not None and parsed.values.get(parsed.field.name) is not None
        return True

    def get_execute_suggestion(self, parsed: ParsedCommand) -> AutocompleteSuggestion:
        item_id = self.config.parser.execute_item_id
        return AutocompleteSuggestion(
            complete=parsed.command[1:] + item_id,
            suggestion=self.intl.format_message(Messages.EXECUTE),
            description=self.intl.format_message(Messages.EXECUTE_DESCRIPTION, key="Ctrl"),
            icon_data=item_id,
        )

    def get_error_suggestion(self, parsed: ParsedCommand) -> List[AutocompleteSuggestion]:
        return [AutocompleteSuggestion(
            complete="",
            suggestion="",
            hint=self.intl.format_message(Messages.PARSER_ERROR_HINT),
            description=parsed.error,
            icon_data=ERROR_ICON,
        )]

    def get_no_matching_suggestion(self) -> List[AutocompleteSuggestion]:
        return [AutocompleteSuggestion(
            complete="",
            suggestion="",
            hint=self.intl.format_message(Messages.NO_SUGGESTION),
            icon_data=ERROR_ICON,
        )]

    def decorate_suggestion_complete(self, parsed: ParsedCommand,
                                     choice: AutocompleteSuggestion) -> AutocompleteSuggestion:
        """Splice ``choice`` into the command at the start of the current token."""
        if choice.complete and choice.complete.endswith(self.config.parser.execute_item_id):
            return choice

        # an empty completion also drops the separator before the token
        go_back = 1 if choice.complete == "" else 0
        complete = parsed.command[:max(parsed.incomplete_start - go_back, 0)] + choice.complete

        return AutocompleteSuggestion(
            complete=complete[1:],
            suggestion=choice.suggestion,
            hint=choice.hint or "",
            description=choice.description,
            icon_data=choice.icon_data,
        )

    def get_command_suggestions(self, parsed: ParsedCommand) -> List[AutocompleteSuggestion]:
        if parsed.binding is None or not parsed.binding.bindings:
            return []

        incomplete = parsed.incomplete.lower()
        return [
            AutocompleteSuggestion(
                complete=b.label,
                suggestion=b.label,
                description=b.description or "",
                hint=b.hint or "",
                icon_data=b.icon or "",
            )
            for b in parsed.binding.bindings
            if b.label.lower().startswith(incomplete)
        ]

    async def get_parameter_suggestions(self, parsed: ParsedCommand) -> List[AutocompleteSuggestion]:
        state = parsed.state

        if state is ParseState.START_PARAMETER:
            positional = parsed.form.positional_field(parsed.position + 1) if parsed.form else None
            if positional is not None:
                parsed.field = positional
                return await self.get_value_suggestions(parsed)
            return self.get_flag_name_suggestions(parsed)

        if state is ParseState.FLAG:
            return self.get_flag_name_suggestions(parsed)

        if state in (ParseState.END_VALUE, ParseState.FLAG_VALUE_SEPARATOR, ParseState.NONSPACE_VALUE):
            return await self.get_value_suggestions(parsed)
        if state in (ParseState.END_QUOTED_VALUE, ParseState.QUOTED_VALUE):
            return await self.get_value_suggestions(parsed, '"')
        if state in (ParseState.END_TICKED_VALUE, ParseState.TICK_VALUE):
            return await self.get_value_suggestions(parsed, "`")

        return []

    def get_flag_name_suggestions(self, parsed: ParsedCommand) -> List[AutocompleteSuggestion]:
        if parsed.form is None or not parsed.form.fields:
            return []

        # zero to two dashes have been typed already
        prefix = "--"
        i = parsed.incomplete_start - 1
        while i > 0 and i >= parsed.incomplete_start - 2 and parsed.command[i] == "-":
            prefix = prefix[1:]
            i -= 1

        incomplete = parsed.incomplete.lower()
        icon = parsed.binding.icon if parsed.binding else None
        return [
            AutocompleteSuggestion(
                complete=prefix + (f.label or f.name),
                suggestion="--" + (f.label or f.name),
                description=f.description or "",
                hint=f.hint or "",
                icon_data=icon or "",
            )
            for f in parsed.form.fields
            if f.label and f.label.lower().startswith(incomplete)
            and not f.readonly and f.type is not AppFieldType.MARKDOWN
            and not parsed.values.get(f.name)
        ]

    async def get_value_suggestions(self, parsed: ParsedCommand,
                                    delimiter: Optional[str] = None) -> List[AutocompleteSuggestion]:
        f = parsed.field
        if f is None:
            return []

        if f.type is AppFieldType.USER:
            return self._reference_hint(parsed, self.config.parser.user_hint)
        if f.type is AppFieldType.CHANNEL:
            return self._reference_hint(parsed, self.config.parser.channel_hint)
        if f.type is AppFieldType.BOOL:
            return self.get_boolean_suggestions(parsed)
        if f.type is AppFieldType.DYNAMIC_SELECT:
            return await self.get_dynamic_select_suggestions(parsed, delimiter)
        if f.type is AppFieldType.STATIC_SELECT:
            return self.get_static_select_suggestions(parsed, delimiter)

        complete = parsed.incomplete
        if complete and delimiter:
            complete = delimiter + complete + delimiter

        quote = delimiter or '"'
        return [AutocompleteSuggestion(
            complete=complete,
            suggestion=f"{f.label or f.name}: {quote}{parsed.incomplete}{quote}",
            description=f.description or "",
            icon_data=self._binding_icon(parsed),
        )]

    def _binding_icon(self, parsed: ParsedCommand) -> str:
        if parsed.binding is not None and parsed.binding.icon:
            return parsed.binding.icon
        return ""

    def _reference_hint(self, parsed: ParsedCommand, default_hint: str) -> List[AutocompleteSuggestion]:
        # once typing starts, mention autocomplete takes over
        if parsed.incomplete.strip():
            return []
        return [AutocompleteSuggestion(
            complete="",
            suggestion="",
            description=parsed.field.description or "",
            hint=parsed.field.hint or default_hint,
            icon_data=self._binding_icon(parsed),
        )]

    def get_boolean_suggestions(self, parsed: ParsedCommand) -> List[AutocompleteSuggestion]:
        f = parsed.field
        return [
            AutocompleteSuggestion(
                complete=literal,
                suggestion=literal,
                description=f.description or "",
                hint=f.hint or "",
                icon_data=self._binding_icon(parsed),
            )
            for literal in ("true", "false")
            if literal.startswith(parsed.incomplete)
        ]

    def get_static_select_suggestions(self, parsed: ParsedCommand,
                                      delimiter: Optional[str] = None) -> List[AutocompleteSuggestion]:
        f = parsed.field
        incomplete = parsed.incomplete.lower()
        options = [o for o in f.options or [] if o.label.lower().startswith(incomplete)]
        if not options:
            return [AutocompleteSuggestion(
                complete="",
                suggestion="",
                hint=self.intl.format_message(Messages.NO_STATIC),
                icon_data=ERROR_ICON,
            )]

        return [
            AutocompleteSuggestion(
                complete=_wrap(o.value, delimiter),
                suggestion=o.label,
                hint=f.hint or "",
                description=f.description or "",
                icon_data=o.icon_data or self._binding_icon(parsed),
            )
            for o in options
        ]

    async def get_dynamic_select_suggestions(self, parsed: ParsedCommand,
                                             delimiter: Optional[str] = None) -> List[AutocompleteSuggestion]:
        """Ask the app for options matching the partial value."""
        f = parsed.field
        if f is None:
            return self._dynamic_select_error(self.intl.format_message(Messages.UNEXPECTED_ERROR))

        composed = await self.compose_call_from_parsed(parsed)
        if composed.call is None:
            return self._dynamic_select_error(self.intl.format_message(
                Messages.LOOKUP_PREPARE_ERROR, errorMessage=composed.error_message))

        request = composed.call
        request.selected_field = f.name
        request.query = parsed.incomplete

        try:
            response = await self._call_app(request, AppCallType.LOOKUP)
        except ExternalCallError as e:
            return self._dynamic_select_error(self.call_error_text(e))

        if response.type != AppCallResponseType.OK.value:
            return self._dynamic_select_error(self._response_type_error(response, (
                AppCallResponseType.NAVIGATE.value,
                AppCallResponseType.FORM.value,
            )))

        data = response.data if response.data is not None else {}
        if not isinstance(data, dict):
            self.logger.warning(f"Lookup for {f.name} returned {type(data).__name__} data")
            return self._dynamic_select_error(self.intl.format_message(
                Messages.MALFORMED_RESPONSE, error="lookup data must be a mapping"))
        try:
            items = _LOOKUP_ITEMS.validate_python(data.get("items") or [])
        except ValidationError as e:
            self.logger.warning(f"Lookup for {f.name} returned malformed items: {e.error_count()} errors")
            return self._dynamic_select_error(self.intl.format_message(
                Messages.MALFORMED_RESPONSE, error="lookup items must be a list of options"))

        if not items:
            return [AutocompleteSuggestion(
                complete="",
                suggestion="",
                hint=self.intl.format_message(Messages.NO_STATIC),
                description=self.intl.format_message(Messages.NO_DYNAMIC),
            )]

        suggestions = []
        for item in items:
            suggestions.append(AutocompleteSuggestion(
                complete=_wrap(item.value, delimiter),
                suggestion=item.value,
                description=item.label,
                icon_data=item.icon_data or self._binding_icon(parsed),
            ))
        return suggestions

    def _dynamic_select_error(self, message: str) -> List[AutocompleteSuggestion]:
        return [AutocompleteSuggestion(
            complete="",
            suggestion=self.intl.format_message(Messages.DYNAMIC_ERROR),
            description=self.intl.format_message(Messages.ERROR, error=message),
            icon_data=ERROR_ICON,
        )]


def _is_reference_field(parsed: ParsedCommand) -> bool:
    return parsed.field is not None and parsed.field.type in (AppFieldType.USER, AppFieldType.CHANNEL)
