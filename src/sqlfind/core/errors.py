"""Error types and reporting helpers shared by the core services.

Backend failures are converted into empty results or fallback scripts at the
smallest enclosing operation; only configuration problems propagate as
exceptions.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

NO_CONNECTION_MESSAGE = (
    "No active database connection. "
    "Please configure a SQL Server profile in ~/.sqlfindcfg first."
)


class ConfigError(RuntimeError):
    """Raised when the tool is misconfigured (missing profile, invalid value)."""


class FetchCancelled(RuntimeError):
    """Raised when a bulk fetch is cancelled before its result is stored."""


class Notifier(Protocol):
    """User-facing sink for non-fatal notices."""

    def warn(self, msg: str) -> None:
        ...

    def error(self, msg: str) -> None:
        ...


class NullNotifier:
    """Notifier that drops every notice (used when no UI is attached)."""

    def warn(self, msg: str) -> None:
        return None

    def error(self, msg: str) -> None:
        return None


def describe_error(error: object) -> str:
    """Extract a readable message from an exception or arbitrary value."""
    if isinstance(error, str):
        return error
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    message = getattr(error, "message", None)
    if message:
        return str(message)
    return "Unknown error"


def report_error(notifier: Notifier, error: BaseException, context: str | None = None) -> str:
    """Log an error with its traceback and show it to the user as a notice."""
    message = describe_error(error)
    full_message = f"{context}: {message}" if context else message
    logger.error(full_message, exc_info=error)
    notifier.error(full_message)
    return full_message


def report_no_connection(notifier: Notifier) -> None:
    logger.warning(NO_CONNECTION_MESSAGE)
    notifier.warn(NO_CONNECTION_MESSAGE)
