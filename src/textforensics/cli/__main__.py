"""Main entry point for the textforensics CLI when run as a module."""

import sys

from textforensics.cli import main

if __name__ == "__main__":
    sys.exit(main())
