"""Headless-browser scraping core: session, navigation, serialization, coordination."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .coordinator import ScrapeCoordinator
from .errors import (
    CleanupError,
    NavigationError,
    ScrapeError,
    SelectorTimeoutError,
    SessionError,
    ValidationError,
)
from .models import ContentNode, ElementKind, ScrapeConfig, ScrapeRequest, ScrapeResult

if TYPE_CHECKING:
    from src.config import Settings

__all__ = [
    "CleanupError",
    "ContentNode",
    "ElementKind",
    "NavigationError",
    "ScrapeConfig",
    "ScrapeCoordinator",
    "ScrapeError",
    "ScrapeRequest",
    "ScrapeResult",
    "SelectorTimeoutError",
    "SessionError",
    "ValidationError",
    "build_coordinator",
]


def build_coordinator(settings: Settings) -> ScrapeCoordinator:
    """Build a coordinator from application settings."""
    return ScrapeCoordinator(settings.scrape_config())
