"""
CLI command handlers for slashform.

The CLI has no connection to remote apps: forms must be inline in the schema
file, and dynamic selects report an error when suggested.
"""

import asyncio
import json
import sys
from dataclasses import asdict

from ..apps.schema import load_schema
from ..config import load_config, ConfigurationError
from ..parser import AppCommandParser
from ..utils import SchemaError, setup_logging, get_logger


def handle_cli_command(args) -> int:
    """
    Handle CLI commands based on parsed arguments.

    Returns:
        int: Exit code (0 for success, non-zero for error)
    """
    try:
        config = load_config(args.config)
        setup_logging(config, verbose=args.verbose)
        logger = get_logger(__name__)

        schema = load_schema(args.schema)
        logger.debug(f"Loaded {len(schema.bindings)} command bindings from {args.schema}")

        parser = AppCommandParser(
            schema.create_context(channel=args.channel, team=args.team),
            schema.create_store(),
            config=config,
        )

        if args.action == "parse":
            return _handle_parse(parser, args.text)
        elif args.action == "suggest":
            return _handle_suggest(parser, args.text)
        elif args.action == "base":
            return _handle_base(parser, args.text)
        else:
            return _handle_interactive(parser)

    except (ConfigurationError, SchemaError) as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1


def _handle_parse(parser: AppCommandParser, text: str) -> int:
    """Compose the call for a complete command."""
    result = asyncio.run(parser.compose_call_from_command(text))
    if result.call is None:
        print(f"❌ {result.error_message}", file=sys.stderr)
        return 1

    print(json.dumps(result.call.model_dump(mode="json", exclude_none=True), indent=2))
    return 0


def _handle_suggest(parser: AppCommandParser, text: str) -> int:
    """Print autocomplete suggestions for partial input."""
    if parser.is_app_command(text):
        suggestions = asyncio.run(parser.get_suggestions(text))
    else:
        suggestions = parser.get_suggestions_base(text)

    print(json.dumps([asdict(s) for s in suggestions], indent=2))
    return 0


def _handle_base(parser: AppCommandParser, text: str) -> int:
    """Print top-level commands matching the input."""
    print(json.dumps([asdict(s) for s in parser.get_suggestions_base(text)], indent=2))
    return 0


def _handle_interactive(parser: AppCommandParser) -> int:
    """Read commands from stdin: end a line with '?' for suggestions."""
    print("⌨️  Type a command to compose its call, or end it with '?' for suggestions. Type 'exit' to quit.")

    while True:
        try:
            line = input("> ")
        except (KeyboardInterrupt, EOFError):
            break

        if line.strip().lower() in ("exit", "quit"):
            break
        if not line.strip():
            continue

        if line.endswith("?"):
            _print_suggestions(parser, line[:-1])
        else:
            _handle_parse(parser, line)

    print("👋 Goodbye!")
    return 0


def _print_suggestions(parser: AppCommandParser, text: str) -> None:
    if parser.is_app_command(text):
        suggestions = asyncio.run(parser.get_suggestions(text))
    else:
        suggestions = parser.get_suggestions_base(text)

    if not suggestions:
        print("  (no suggestions)")
    for s in suggestions:
        line = f"  {s.suggestion or s.hint}"
        if s.description:
            line += f" - {s.description}"
        print(f"{line}\n    → /{s.complete}")
