"""Scrape failure taxonomy.

Every fatal failure of a scrape is a :class:`ScrapeError`; the API layer turns
it into a ``{"error": message}`` envelope using ``status_code``.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ScrapeError):
    """Malformed target URL or selector. Raised before any browser starts."""

    status_code = 400


class SessionError(ScrapeError):
    """The browser or its page could not be started."""

    status_code = 503


class NavigationError(ScrapeError):
    """The page did not load in time or answered with a non-2xx status."""

    status_code = 502


class SelectorTimeoutError(ScrapeError):
    """The selector never appeared (strict selector policy only)."""

    status_code = 504


class CleanupError(ScrapeError):
    """Closing the page or browser failed. Logged, never raised to callers."""


def is_selector_syntax_error(exc: Exception) -> bool:
    """True when the driver rejected a selector as unparseable."""
    message = str(exc)
    return "while parsing" in message or "is not a valid selector" in message
