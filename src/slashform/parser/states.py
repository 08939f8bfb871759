"""
Character-level automaton for slash commands.

The transition functions here are pure: given the current state, the
character under the cursor (``""`` at end of input) and a little lexical
context, they return a Step describing the next state, whether the cursor
advances, and which side effects the caller must perform. Looking up
bindings and fields, binding values and backtracking live in
ParsedCommand, which interprets the effects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..intl import Message, Messages

WHITESPACE = (" ", "\t")
END = ""


class ParseState(str, Enum):
    START = "Start"
    COMMAND = "Command"
    END_COMMAND = "EndCommand"
    COMMAND_SEPARATOR = "CommandSeparator"
    START_PARAMETER = "StartParameter"
    PARAMETER_SEPARATOR = "ParameterSeparator"
    FLAG1 = "Flag1"
    FLAG = "Flag"
    FLAG_VALUE_SEPARATOR = "FlagValueSeparator"
    START_VALUE = "StartValue"
    NONSPACE_VALUE = "NonspaceValue"
    QUOTED_VALUE = "QuotedValue"
    TICK_VALUE = "TickValue"
    END_VALUE = "EndValue"
    END_QUOTED_VALUE = "EndQuotedValue"
    END_TICKED_VALUE = "EndTickedValue"
    ERROR = "Error"


class Effect(Enum):
    """Side effects a step asks the interpreter to perform."""

    APPEND = "append"                    # add the current character to the token
    BEGIN_TOKEN = "begin_token"          # empty token starting at the cursor
    MARK_START = "mark_start"            # token starts at the cursor
    BEGIN_FLAG = "begin_flag"            # BEGIN_TOKEN and forget any '=' seen
    FLAG_EQUALS = "flag_equals"          # an '=' separated flag and value
    ESCAPE = "escape"                    # next character is literal
    MATCH_BINDING = "match_binding"      # resolve the token as a sub-command
    NEXT_POSITIONAL = "next_positional"  # resolve the next positional field
    RESOLVE_FLAG = "resolve_flag"        # resolve the token as a flag name
    BIND_VALUE = "bind_value"            # bind the token to the current field


@dataclass(frozen=True)
class LexState:
    """Lexical context a transition may depend on."""

    escaped: bool = False
    equals_used: bool = False
    token_empty: bool = True


@dataclass(frozen=True)
class Step:
    """Result of one transition.

    ``effects`` run before the cursor advances, ``after`` once it has.
    A step carrying ``error`` puts the parser in the Error state.
    """

    state: ParseState
    advance: bool = False
    effects: Tuple[Effect, ...] = ()
    after: Tuple[Effect, ...] = ()
    stop: bool = False
    error: Optional[Message] = None
    error_values: Dict[str, Any] = field(default_factory=dict)


def _error(message: Message, **values) -> Step:
    return Step(ParseState.ERROR, error=message, error_values=values)


_DELIMITED = {
    ParseState.QUOTED_VALUE: ('"', ParseState.END_QUOTED_VALUE, Messages.MISSING_QUOTE),
    ParseState.TICK_VALUE: ("`", ParseState.END_TICKED_VALUE, Messages.MISSING_TICK),
}

END_VALUE_STATES = (
    ParseState.END_VALUE,
    ParseState.END_QUOTED_VALUE,
    ParseState.END_TICKED_VALUE,
)


def binding_transition(state: ParseState, c: str, autocomplete: bool = False,
                       lex: LexState = LexState()) -> Step:
    """Transition while walking the command tree (``/cmd sub sub ...``)."""
    if state is ParseState.START:
        if c != "/":
            return _error(Messages.NO_SLASH_START)
        return Step(ParseState.COMMAND, advance=True, after=(Effect.BEGIN_TOKEN,))

    if state is ParseState.COMMAND:
        if c == END:
            if autocomplete:
                # the partial token stays in place for sub-command suggestions
                return Step(ParseState.COMMAND, stop=True)
            return Step(ParseState.END_COMMAND)
        if c in WHITESPACE:
            return Step(ParseState.END_COMMAND)
        return Step(ParseState.COMMAND, advance=True, effects=(Effect.APPEND,))

    if state is ParseState.END_COMMAND:
        return Step(ParseState.COMMAND_SEPARATOR, effects=(Effect.MATCH_BINDING,))

    if state is ParseState.COMMAND_SEPARATOR:
        if c == END:
            return Step(ParseState.COMMAND, effects=(Effect.BEGIN_TOKEN,), stop=True)
        if c in WHITESPACE:
            return Step(ParseState.COMMAND_SEPARATOR, advance=True)
        return Step(ParseState.COMMAND, effects=(Effect.BEGIN_TOKEN,))

    return _error(Messages.UNEXPECTED_STATE, state=state.value)


def form_transition(state: ParseState, c: str, autocomplete: bool = False,
                    lex: LexState = LexState()) -> Step:
    """Transition while reading parameters against a form."""
    if state is ParseState.START_PARAMETER:
        if c == END:
            return Step(ParseState.START_PARAMETER, stop=True)
        if c == "-":
            return Step(ParseState.FLAG1, advance=True)
        return Step(ParseState.START_VALUE, effects=(Effect.NEXT_POSITIONAL,))

    if state is ParseState.PARAMETER_SEPARATOR:
        if c == END:
            return Step(ParseState.START_PARAMETER, effects=(Effect.MARK_START,), stop=True)
        if c in WHITESPACE:
            return Step(ParseState.PARAMETER_SEPARATOR, advance=True, effects=(Effect.MARK_START,))
        return Step(ParseState.START_PARAMETER, effects=(Effect.MARK_START,))

    if state is ParseState.FLAG1:
        # at most one more dash
        if c == "-":
            return Step(ParseState.FLAG, advance=True, after=(Effect.BEGIN_FLAG,))
        return Step(ParseState.FLAG, effects=(Effect.BEGIN_FLAG,))

    if state is ParseState.FLAG:
        if c == END and autocomplete:
            return Step(ParseState.FLAG, stop=True)
        if c == END or c in WHITESPACE or c == "=":
            return Step(ParseState.FLAG_VALUE_SEPARATOR, effects=(Effect.RESOLVE_FLAG,))
        return Step(ParseState.FLAG, advance=True, effects=(Effect.APPEND,))

    if state is ParseState.FLAG_VALUE_SEPARATOR:
        if c == END:
            if autocomplete:
                return Step(ParseState.FLAG_VALUE_SEPARATOR, effects=(Effect.MARK_START,), stop=True)
            return Step(ParseState.START_VALUE, effects=(Effect.MARK_START,))
        if c in WHITESPACE:
            return Step(ParseState.FLAG_VALUE_SEPARATOR, advance=True, effects=(Effect.MARK_START,))
        if c == "=":
            if lex.equals_used:
                return _error(Messages.MULTIPLE_EQUAL)
            return Step(ParseState.FLAG_VALUE_SEPARATOR, advance=True,
                        effects=(Effect.MARK_START, Effect.FLAG_EQUALS))
        return Step(ParseState.START_VALUE, effects=(Effect.MARK_START,))

    if state is ParseState.START_VALUE:
        if c == '"':
            return Step(ParseState.QUOTED_VALUE, advance=True, effects=(Effect.BEGIN_TOKEN,))
        if c == "`":
            return Step(ParseState.TICK_VALUE, advance=True, effects=(Effect.BEGIN_TOKEN,))
        if c in WHITESPACE:
            return _error(Messages.UNEXPECTED_WHITESPACE)
        return Step(ParseState.NONSPACE_VALUE, effects=(Effect.BEGIN_TOKEN,))

    if state is ParseState.NONSPACE_VALUE:
        if c == END or c in WHITESPACE:
            return Step(ParseState.END_VALUE)
        return Step(ParseState.NONSPACE_VALUE, advance=True, effects=(Effect.APPEND,))

    if state in _DELIMITED:
        delimiter, end_state, missing = _DELIMITED[state]
        if c == END:
            if autocomplete:
                return Step(state, stop=True)
            return _error(missing)
        if lex.escaped:
            return Step(state, advance=True, effects=(Effect.APPEND,))
        if c == delimiter:
            if lex.token_empty:
                return _error(Messages.EMPTY_VALUE)
            return Step(end_state, advance=True)
        if c == "\\":
            return Step(state, advance=True, effects=(Effect.ESCAPE,))
        return Step(state, advance=True, effects=(Effect.APPEND,))

    if state in END_VALUE_STATES:
        # BIND_VALUE decides whether to stop, backtrack or carry on
        return Step(ParseState.PARAMETER_SEPARATOR, effects=(Effect.BIND_VALUE,))

    return _error(Messages.UNEXPECTED_STATE, state=state.value)
