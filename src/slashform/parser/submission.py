"""
Submitting a composed command to its app.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import ValidationError

from ..apps.types import AppCallRequest, AppCallResponse, AppCallResponseType, AppCallType, AppForm
from ..intl import Messages
from ..utils.error_handling import AppCallError, ExternalCallError
from ..utils.logging import performance_timer


@dataclass
class SubmitResult:
    """Outcome of submitting a command.

    ``done`` is set when the app finished the interaction (``ok`` or
    ``navigate``); ``form`` holds a follow-up form the app asked to show.
    Errors are reported in ``error_message`` and, for errors the app tied to
    form fields, ``field_errors``.
    """

    call: Optional[AppCallRequest] = None
    response: Optional[AppCallResponse] = None
    form: Optional[AppForm] = None
    done: bool = False
    error_message: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.error_message and not self.field_errors

    @property
    def text(self) -> Optional[str]:
        return self.response.text if self.response else None

    @property
    def navigate_to_url(self) -> Optional[str]:
        return self.response.navigate_to_url if self.response else None


class SubmissionMixin:
    """Submission path for AppCommandParser."""

    @performance_timer("submit command")
    async def submit_command(self, command: str) -> SubmitResult:
        """Compose ``command`` and perform it as a SUBMIT call."""
        parsed, composed = await self._parse_and_compose(command)
        if composed.call is None:
            return SubmitResult(error_message=composed.error_message)

        call = composed.call
        try:
            response = await self._call_app(call, AppCallType.SUBMIT)
        except AppCallError as e:
            return self._submit_error(call, e, parsed.form)
        except ExternalCallError as e:
            return SubmitResult(call=call, error_message=self.call_error_text(e))

        if response.type in (AppCallResponseType.OK.value, AppCallResponseType.NAVIGATE.value):
            self.logger.info(f"Submitted {call.path}: {response.type}")
            return SubmitResult(call=call, response=response, done=True)

        if response.type == AppCallResponseType.FORM.value:
            form = response.form
            if isinstance(form, dict):
                try:
                    form = AppForm.model_validate(form)
                except ValidationError as e:
                    return SubmitResult(
                        call=call,
                        response=response,
                        error_message=self.intl.format_message(Messages.MALFORMED_FORM, error=str(e)),
                    )
            return SubmitResult(call=call, response=response, form=form)

        return SubmitResult(
            call=call,
            response=response,
            error_message=self.intl.format_message(Messages.UNKNOWN_RESPONSE_TYPE, type=response.type),
        )

    def _submit_error(self, call: AppCallRequest, error: AppCallError,
                      form: Optional[AppForm]) -> SubmitResult:
        response = error.response
        error_message = response.error if response is not None and response.error else None

        errors = {}
        if response is not None and isinstance(response.data, dict):
            errors = response.data.get("errors") or {}

        known = {f.name for f in form.fields} if form is not None else set()
        field_errors = {name: str(text) for name, text in errors.items() if name in known}
        unknown = [name for name in errors if name not in known]

        if unknown and not error_message:
            name = unknown[0]
            error_message = self.intl.format_message(
                Messages.UNKNOWN_FIELD_ERROR, field=name, error=errors[name])
        if not error_message and not field_errors:
            error_message = self.intl.format_message(Messages.UNKNOWN)

        self.logger.debug(f"Submit of {call.path} failed: {error_message or field_errors}")
        return SubmitResult(call=call, response=response, error_message=error_message, field_errors=field_errors)
