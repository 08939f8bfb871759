#!/usr/bin/env python3
"""
slashform - slash command parser and autocomplete engine.

Development entry point: runs the CLI from a source checkout without
installing the package.
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from slashform.main import main


if __name__ == "__main__":
    sys.exit(main())
