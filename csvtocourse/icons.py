#!/usr/bin/env python3
"""
icons.py - Centralized icon definitions for csvtocourse CLI and log output

Usage:
    from csvtocourse.icons import icons
    print(f"{icons.SUCCESS} Backup written!")

Or import individual icons:
    from csvtocourse.icons import SUCCESS, WARNING, ERROR

All unicode characters are defined here once. Never edit unicode
characters in other files - import from this module instead.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Icons:
    """
    Centralized icon definitions.

    Categories:
    - Status: SUCCESS, ERROR, WARNING, INFO, DEBUG
    - Actions: PACKAGE, SWEEP
    """

    # =========================================================================
    # Status Icons
    # =========================================================================
    SUCCESS: str = "✅"      # Green checkmark - operation succeeded
    ERROR: str = "❌"        # Red X - operation failed
    WARNING: str = "⚠️"      # Warning triangle
    INFO: str = "ℹ️"         # Information
    DEBUG: str = "🔍"       # Magnifier - debug detail

    # =========================================================================
    # Action Icons
    # =========================================================================
    PACKAGE: str = "📦"     # .mbz archive
    SWEEP: str = "🧹"       # Staging cleanup


# Global singleton instance
icons = Icons()

SUCCESS = icons.SUCCESS
ERROR = icons.ERROR
WARNING = icons.WARNING
INFO = icons.INFO
DEBUG = icons.DEBUG
PACKAGE = icons.PACKAGE
SWEEP = icons.SWEEP
