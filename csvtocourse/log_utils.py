"""
log_utils.py - Logging setup for csvtocourse

Library modules log through ``logging.getLogger(__name__)``; only the CLI
installs a handler. Messages carry no timestamps, just a level icon.
"""

import logging

from csvtocourse.icons import DEBUG, ERROR, INFO, WARNING

# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"

LEVEL_ICONS = {
    logging.DEBUG: DEBUG,
    logging.INFO: INFO,
    logging.WARNING: WARNING,
    logging.ERROR: ERROR,
    logging.CRITICAL: ERROR,
}


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, INFO)
        base = super().format(record)
        return f"{icon} {base}"


def setup_logging(verbosity: int = 0) -> None:
    """
    Install a single icon-prefixed stream handler on the package logger.

    verbosity 0 shows warnings, 1 adds info, 2 and above adds debug.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    handler.setFormatter(IconLogFormatter(LOG_FORMAT))

    root = logging.getLogger("csvtocourse")
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)
