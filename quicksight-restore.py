"""
Command-line interface for QuickSight Restore Tool.

This script provides a direct entry point for the QuickSight Restore Tool.
It delegates to the main CLI module in the package.
"""

import sys
from quicksight_restore.cli import main

if __name__ == '__main__':
    sys.exit(main())
