"""
Logging configuration for contiguity_base.

The library only emits records through module loggers; these helpers are
for the debug flag and the CLI.
"""

import logging
import sys

PACKAGE_LOGGER = "contiguity_base"

# Loggers of the HTTP stack that are chatty at INFO
_HTTP_LOGGERS = ("httpx", "httpcore")


def configure_quiet_mode(quiet: bool = True):
    """
    Silence per-request INFO lines from the HTTP stack.

    Args:
        quiet: If True, only warnings and above from httpx/httpcore.
    """
    level = logging.WARNING if quiet else logging.NOTSET
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        logger.addHandler(handler)

    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG)
