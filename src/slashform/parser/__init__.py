"""
Slash command parsing: the character-level automaton, the parse cursor and
the AppCommandParser orchestrator.
"""

from .states import ParseState, Effect, LexState, Step, binding_transition, form_transition
from .parsed_command import ParsedCommand
from .forms_cache import FormsCache
from .submission import SubmitResult
from .app_command_parser import AppCommandParser

__all__ = [
    "ParseState",
    "Effect",
    "LexState",
    "Step",
    "binding_transition",
    "form_transition",
    "ParsedCommand",
    "FormsCache",
    "SubmitResult",
    "AppCommandParser",
]
