"""
CLI module for slashform.

Parses and autocompletes slash commands against a YAML schema file.
"""

from .commands import create_parser, parse_args
from .handlers import handle_cli_command

__all__ = ["create_parser", "parse_args", "handle_cli_command"]
