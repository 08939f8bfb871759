"""
AppCommandParser: turns slash command text into app calls.

The orchestrator owns everything around the character-level parse: it knows
the session (through an explicit CommandContext), fetches and caches forms,
fills in read-only defaults, checks required fields and expands raw values
into the shapes apps expect. Collaborator failures are caught here and
reported as result values, never raised to the caller.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .forms_cache import FormsCache
from .parsed_command import ParsedCommand
from .submission import SubmissionMixin
from .suggestions import SuggestionsMixin
from ..apps.interfaces import AppsClient, ReferenceResolver
from ..apps.state import CommandContext
from ..apps.types import (
    AppBinding,
    AppBindingLocation,
    AppCall,
    AppCallRequest,
    AppCallResponse,
    AppCallResponseType,
    AppCallType,
    AppContext,
    AppField,
    AppFieldType,
    AppForm,
    AppSelectOption,
    ComposeResult,
    FormResult,
)
from ..config.models import SlashFormConfig
from ..intl import Intl, Messages
from ..utils.error_handling import AppCallError, ExternalCallError, handle_external_call
from ..utils.logging import get_logger, performance_timer


class AppCommandParser(SuggestionsMixin, SubmissionMixin):
    """Parses slash commands against the app command bindings of a session.

    One instance serves one edit session: its form cache is never
    invalidated, and it is not safe to use from concurrent tasks.

    Args:
        context: Bindings, channel, team and thread the commands run in
        resolver: User and channel lookups
        client: Performs FORM, LOOKUP and SUBMIT calls; without one, every
            remote call reports an error
        intl: Message renderer; built from ``config.parser`` when omitted
        config: Parser configuration; defaults when omitted
    """

    def __init__(self,
                 context: CommandContext,
                 resolver: ReferenceResolver,
                 client: Optional[AppsClient] = None,
                 intl: Optional[Intl] = None,
                 config: Optional[SlashFormConfig] = None):
        self.context = context
        self.resolver = resolver
        self.client = client
        self.config = config or SlashFormConfig()
        self.intl = intl or self._create_intl()
        self.forms = FormsCache(self.fetch_form)
        self.logger = get_logger(__name__)

    def _create_intl(self) -> Intl:
        parser_config = self.config.parser
        if parser_config.messages_file:
            return Intl.from_yaml(parser_config.messages_file, locale=parser_config.locale)
        return Intl(locale=parser_config.locale)

    # Session

    def get_command_bindings(self) -> List[AppBinding]:
        return self.context.get_command_bindings()

    def set_channel_context(self, channel_id: str, root_post_id: Optional[str] = None) -> None:
        self.context.channel_id = channel_id
        self.context.root_post_id = root_post_id or ""

    def get_app_context(self, app_id: str) -> AppContext:
        """Context sent along with every call made for ``app_id``."""
        root_id = self.context.root_post_id or None
        channel = self.resolver.get_channel(self.context.channel_id) if self.context.channel_id else None
        if channel is None:
            return AppContext(app_id=app_id, location=AppBindingLocation.COMMAND.value, root_id=root_id)

        return AppContext(
            app_id=app_id,
            location=AppBindingLocation.COMMAND.value,
            root_id=root_id,
            channel_id=channel.id,
            team_id=channel.team_id or self.context.team_id or None,
        )

    def is_app_command(self, pretext: str) -> bool:
        """Whether ``pretext`` starts with a known top-level command and a space."""
        command = pretext.lower()
        for binding in self.get_command_bindings():
            base = binding.label
            if not base:
                continue
            if not base.startswith("/"):
                base = "/" + base
            if command.startswith(base.lower() + " "):
                return True
        return False

    # Remote calls

    @staticmethod
    def create_call_request(call: AppCall, context: AppContext,
                            values: Optional[Dict[str, Any]] = None,
                            raw_command: Optional[str] = None) -> AppCallRequest:
        return AppCallRequest(
            path=call.path,
            expand=call.expand,
            state=call.state,
            context=context,
            values=values or {},
            raw_command=raw_command,
        )

    async def _call_app(self, request: AppCallRequest, call_type: AppCallType) -> AppCallResponse:
        timeout = self.config.parser.call_timeout_seconds

        @handle_external_call(f"{call_type.value}_call", timeout=timeout, logger=self.logger)
        async def perform() -> AppCallResponse:
            if self.client is None:
                raise ExternalCallError(
                    "No apps client configured",
                    details={"error_type": "unexpected"}
                )
            response = await self.client.do_app_call(request, call_type)
            if isinstance(response, AppCallResponse):
                return response
            return AppCallResponse.model_validate(response)

        self.logger.debug(f"Calling {request.path} ({call_type.value})")
        return await perform()

    async def _resolve(self, operation: str, fetch: Callable, *args):
        timeout = self.config.parser.call_timeout_seconds

        @handle_external_call(operation, timeout=timeout, logger=self.logger)
        async def perform():
            return await fetch(*args)

        return await perform()

    def call_error_text(self, error: ExternalCallError) -> str:
        """User-facing text for a failed call."""
        if isinstance(error, AppCallError):
            if error.response is not None and error.response.error:
                return error.response.error
            return self.intl.format_message(Messages.UNKNOWN)
        return error.message or self.intl.format_message(Messages.UNKNOWN)

    # Forms

    async def fetch_form(self, binding: AppBinding) -> FormResult:
        """Fetch the form of ``binding`` from its app, bypassing the cache."""
        if binding.call is None:
            return FormResult()

        request = self.create_call_request(binding.call, self.get_app_context(binding.app_id))
        try:
            response = await self._call_app(request, AppCallType.FORM)
        except ExternalCallError as e:
            return FormResult(error=self.call_error_text(e))

        if response.type != AppCallResponseType.FORM.value:
            return FormResult(error=self._response_type_error(response, (
                AppCallResponseType.OK.value,
                AppCallResponseType.NAVIGATE.value,
            )))

        form = response.form
        if form is None:
            return FormResult(error=self.intl.format_message(Messages.MALFORMED_FORM, error="no form returned"))
        if not isinstance(form, AppForm):
            try:
                form = AppForm.model_validate(form)
            except ValidationError as e:
                self.logger.warning(f"Malformed form for {binding.label}: {e}")
                return FormResult(error=self.intl.format_message(Messages.MALFORMED_FORM, error=str(e)))

        return FormResult(form=form)

    async def get_form(self, location: str, binding: AppBinding) -> FormResult:
        return await self.forms.get_form(location, binding)

    def _response_type_error(self, response: AppCallResponse, unexpected) -> str:
        if response.type in unexpected:
            return self.intl.format_message(Messages.UNEXPECTED_RESPONSE_TYPE, type=response.type)
        return self.intl.format_message(Messages.UNKNOWN_RESPONSE_TYPE, type=response.type)

    # Call composition

    @performance_timer("compose call")
    async def compose_call_from_command(self, command: str) -> ComposeResult:
        """Parse ``command`` completely and compose the submit call."""
        _, composed = await self._parse_and_compose(command)
        return composed

    async def _parse_and_compose(self, command: str) -> Tuple[ParsedCommand, ComposeResult]:
        parsed = ParsedCommand(command, self.forms, self.intl)
        parsed = await parsed.match_binding(self.get_command_bindings(), autocomplete=False)
        parsed = parsed.parse_form(autocomplete=False)
        if parsed.is_error:
            return parsed, ComposeResult(error_message=self.parser_error_message(parsed))

        await self.add_default_and_readonly_values(parsed)

        missing = self.get_missing_fields(parsed)
        if missing:
            names = ", ".join(f.label or f.name for f in missing)
            return parsed, ComposeResult(
                error_message=self.intl.format_message(Messages.FIELD_MISSING, fieldName=names))

        return parsed, await self.compose_call_from_parsed(parsed)

    def parser_error_message(self, parsed: ParsedCommand) -> str:
        return self.intl.format_message(
            Messages.PARSER_ERROR,
            error=parsed.error,
            command=parsed.command,
            space=" " * parsed.i,
        )

    async def compose_call_from_parsed(self, parsed: ParsedCommand) -> ComposeResult:
        """Compose a call from an already parsed command, expanding its values."""
        if parsed.binding is None:
            return ComposeResult(error_message=self.intl.format_message(Messages.MISSING_BINDING))

        call = (parsed.form.call if parsed.form else None) or parsed.binding.call
        if call is None:
            return ComposeResult(error_message=self.intl.format_message(Messages.MISSING_CALL))

        values = dict(parsed.values)
        error_message = await self.expand_options(parsed, values)
        if error_message:
            return ComposeResult(error_message=error_message)

        context = self.get_app_context(parsed.binding.app_id)
        return ComposeResult(call=self.create_call_request(call, context, values, parsed.command))

    def get_missing_fields(self, parsed: ParsedCommand) -> List[AppField]:
        if parsed.form is None:
            return []
        return [f for f in parsed.form.fields if f.is_required and not parsed.values.get(f.name)]

    async def add_default_and_readonly_values(self, parsed: ParsedCommand) -> None:
        """Fill read-only fields that carry a value and were not typed in."""
        if parsed.form is None:
            return
        await asyncio.gather(*(self._add_default_value(parsed, f) for f in parsed.form.fields))

    async def _add_default_value(self, parsed: ParsedCommand, f: AppField) -> None:
        if not f.value or not f.readonly or f.name in parsed.values:
            return

        if f.type is AppFieldType.TEXT:
            parsed.values[f.name] = f.value if isinstance(f.value, str) else _option_value(f.value)
        elif f.type is AppFieldType.BOOL:
            parsed.values[f.name] = "true"
        elif f.type is AppFieldType.USER:
            user_id = _option_value(f.value)
            user = self.resolver.get_user(user_id)
            if user is None:
                try:
                    user = await self._resolve("fetch_user", self.resolver.fetch_user, user_id)
                except ExternalCallError as e:
                    self.logger.warning(f"Could not resolve default user {user_id} for field {f.name}: {e}")
                    return
            parsed.values[f.name] = user.username
        elif f.type is AppFieldType.CHANNEL:
            channel_id = _option_value(f.value)
            channel = self.resolver.get_channel(channel_id)
            if channel is None:
                try:
                    channel = await self._resolve("fetch_channel", self.resolver.fetch_channel, channel_id)
                except ExternalCallError as e:
                    self.logger.warning(f"Could not resolve default channel {channel_id} for field {f.name}: {e}")
                    return
            parsed.values[f.name] = channel.name
        elif f.type in (AppFieldType.STATIC_SELECT, AppFieldType.DYNAMIC_SELECT):
            parsed.values[f.name] = _option_value(f.value)

    async def expand_options(self, parsed: ParsedCommand, values: Dict[str, Any]) -> Optional[str]:
        """Expand raw values in place; returns the joined errors, if any."""
        if parsed.form is None or not parsed.form.fields:
            return None

        errors: Dict[str, str] = {}
        await asyncio.gather(*(self._expand_value(f, values, errors) for f in parsed.form.fields))
        if not errors:
            return None

        return "".join(errors[f.name] + "\n" for f in parsed.form.fields if f.name in errors)

    async def _expand_value(self, f: AppField, values: Dict[str, Any], errors: Dict[str, str]) -> None:
        raw = values.get(f.name)
        # already expanded values are left alone
        if not raw or not isinstance(raw, str):
            return

        if f.type is AppFieldType.DYNAMIC_SELECT:
            values[f.name] = AppSelectOption(label="", value=raw)

        elif f.type is AppFieldType.STATIC_SELECT:
            option = next((o for o in f.options or [] if o.value == raw), None)
            if option is None:
                errors[f.name] = self.intl.format_message(Messages.UNKNOWN_OPTION, fieldName=f.name, option=raw)
                return
            values[f.name] = option

        elif f.type is AppFieldType.USER:
            username = raw[1:] if raw.startswith("@") else raw
            user = self.resolver.get_user_by_username(username)
            if user is None:
                try:
                    user = await self._resolve("fetch_user_by_username", self.resolver.fetch_user_by_username, username)
                except ExternalCallError as e:
                    self.logger.debug(f"Unknown user {raw} for field {f.name}: {e}")
                    errors[f.name] = self.intl.format_message(Messages.UNKNOWN_USER, fieldName=f.name, option=raw)
                    return
            values[f.name] = AppSelectOption(label=user.username, value=user.id)

        elif f.type is AppFieldType.CHANNEL:
            name = raw[1:] if raw.startswith("~") else raw
            channel = self.resolver.get_channel_by_name(name, self.context.team_id or None)
            if channel is None:
                try:
                    channel = await self._resolve(
                        "fetch_channel_by_name", self.resolver.fetch_channel_by_name,
                        self.context.team_name, name)
                except ExternalCallError as e:
                    self.logger.debug(f"Unknown channel {raw} for field {f.name}: {e}")
                    errors[f.name] = self.intl.format_message(Messages.UNKNOWN_CHANNEL, fieldName=f.name, option=raw)
                    return
            values[f.name] = AppSelectOption(label=channel.display_name, value=channel.id)


def _option_value(value: Any) -> str:
    if isinstance(value, AppSelectOption):
        return value.value
    return str(value)
