#!/usr/bin/env python3
"""
featurebin CLI - development entry point.

Thin router over featurebin.cli.main; all logic lives in command classes.
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from featurebin.cli.main import main


if __name__ == "__main__":
    sys.exit(main())
