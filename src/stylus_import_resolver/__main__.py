"""
Allow running the package as a module.

This module enables running the package with:
    python -m stylus_import_resolver

It simply delegates to the main() function from stylus_import_resolver.py.
"""

import sys

from .stylus_import_resolver import main

if __name__ == "__main__":
    sys.exit(main())
