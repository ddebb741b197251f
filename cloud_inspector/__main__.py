"""
Allow running the inspector as a Python module.

Usage:
    python -m cloud_inspector compare -b base.json -c compare.json
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
