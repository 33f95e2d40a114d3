"""Entry point for missionboard when run as a module.

This allows the package to be run with: python -m missionboard
"""

import sys

from missionboard.cli import main

if __name__ == "__main__":
    sys.exit(main())
