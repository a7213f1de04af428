#!/usr/bin/env python3
"""
tsam - Main entry point.

Reads the argument file named on the command line and prints the JSON
response envelope.
"""

import sys

from tsam.main import main


if __name__ == "__main__":
    sys.exit(main())
