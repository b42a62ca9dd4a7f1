#!/usr/bin/env python3
"""altsource - Module entry point."""
import sys

from altsource.cli import main

if __name__ == "__main__":
    sys.exit(main())
