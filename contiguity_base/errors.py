"""
Exceptions and error logging for contiguity_base.

Remote failures are not raised: operations return None instead. The
exceptions here cover caller mistakes and local configuration.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class ContiguityError(Exception):
    """Base class for contiguity_base errors."""


class InvalidArgument(ContiguityError, ValueError):
    """A call was made with arguments that can never succeed."""


class ConfigError(ContiguityError):
    """Client configuration is missing or invalid."""


def _error_log_path() -> Path:
    """Error log location, alongside the config file."""
    from .config import get_config_dir
    return get_config_dir() / "contiguity-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}] {type(exc).__name__}")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(exc)))
    except OSError:
        pass  # Can't write error log, don't crash over it
    return log_path
