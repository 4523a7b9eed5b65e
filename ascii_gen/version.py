#!/usr/bin/env python3
# ascii_gen/version.py
"""
Version and build metadata for ASCII Art Generator.
"""

__version__ = "0.3.0"
__build__ = "2026-10-18"
__author__ = "Limpid"
__license__ = "MIT"

GENERATOR_NAME = "ASCII Art Generator"


def version_info() -> str:
    """Return human-readable version string."""
    return f"{GENERATOR_NAME} v{__version__}"
