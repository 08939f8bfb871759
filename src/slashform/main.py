"""
Main entry point for the slashform CLI.

Called from the installed ``slashform`` console script, or with
``python -m slashform.main``.
"""

import sys

from .cli import parse_args, handle_cli_command


def main() -> int:
    """Main entry point for slashform."""
    try:
        args = parse_args()
        return handle_cli_command(args)

    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        return 0
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
