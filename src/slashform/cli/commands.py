"""
Command-line argument parser for slashform.
"""

import argparse

from .. import __version__

ACTIONS = ("parse", "suggest", "base")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="slashform",
        description="slashform - parse slash commands and compute autocomplete suggestions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  slashform --schema schema.yaml parse "/jira issue create KT --summary \\"Login fails\\""
  slashform --schema schema.yaml suggest "/jira issue create KT --pri"
  slashform --schema schema.yaml base "/ji"
  slashform --schema schema.yaml                 # interactive mode
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"slashform {__version__}"
    )

    parser.add_argument(
        "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="YAML file with command bindings, users, channels and teams"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    # Session
    parser.add_argument(
        "--channel",
        type=str,
        metavar="NAME",
        help="Channel (id or name) the command is typed in"
    )

    parser.add_argument(
        "--team",
        type=str,
        metavar="NAME",
        help="Name of the current team"
    )

    parser.add_argument(
        "action",
        nargs="?",
        choices=ACTIONS,
        help="parse: compose the call, suggest: autocomplete, base: top-level commands"
    )

    parser.add_argument(
        "text",
        nargs="?",
        help="Command text, starting with /"
    )

    return parser


def parse_args(args=None):
    """Parse command line arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)
    if parsed.action and parsed.text is None:
        parser.error(f"{parsed.action} needs the command text")
    return parsed
