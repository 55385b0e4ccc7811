"""Data models for the scraper core."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Literal, NotRequired, TypedDict
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, Field

from .errors import ValidationError

DEFAULT_SELECTOR = "body"

_VALID_SCHEMES = {"http", "https"}
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class ScrapeConfig:
    """Launch options and per-stage timeouts for one scrape."""

    navigation_timeout_ms: int = 30000
    default_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    settle_delay_ms: int = 2000
    viewport_width: int = 1280
    viewport_height: int = 720
    device_scale_factor: float = 1
    headless: bool = True
    executable_path: str | None = None
    selector_policy: Literal["soft", "strict"] = "soft"


@dataclass(frozen=True)
class ScrapeRequest:
    """A validated scrape target and the selector to extract."""

    target_url: str
    selector: str = DEFAULT_SELECTOR

    @classmethod
    def from_encoded(cls, target: str, selector: str | None = None) -> ScrapeRequest:
        """Decode a URL-encoded target and validate it.

        Raises :class:`ValidationError` for malformed escapes, non-UTF-8
        payloads, schemes other than http/https, or a missing host.
        """
        if _BAD_ESCAPE_RE.search(target):
            raise ValidationError("Invalid URL encoding")
        try:
            target_url = unquote(target, errors="strict")
        except UnicodeDecodeError:
            raise ValidationError("Invalid URL encoding") from None

        try:
            parsed = urlparse(target_url)
            hostname = parsed.hostname
        except ValueError:
            raise ValidationError(f"Invalid URL: {target_url}") from None
        if parsed.scheme.lower() not in _VALID_SCHEMES:
            raise ValidationError("Invalid URL protocol. Must be http or https.")
        if not hostname:
            raise ValidationError(f"Invalid URL: {target_url}")

        return cls(target_url=target_url, selector=(selector or "").strip() or DEFAULT_SELECTOR)


class ElementKind(str, Enum):
    """Closed set of element variants the serializer distinguishes."""

    GENERIC = "generic"
    IMAGE = "image"
    ANCHOR = "anchor"
    SVG = "svg"


class ContentNode(TypedDict):
    """One serialized DOM element."""

    tag: str
    text: str
    attributes: NotRequired[dict[str, str]]
    src: NotRequired[str]
    alt: NotRequired[str]
    href: NotRequired[str]
    children: list[ContentNode]


@dataclass(frozen=True)
class NavigationOutcome:
    url: str
    status: int


@dataclass(frozen=True)
class SerializedPage:
    """Plain data handed back from the page context."""

    url: str
    title: str
    content: ContentNode | None
    error: str | None = None


class ScrapeResult(BaseModel):
    """Outcome of a scrape whose page loaded."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    title: str = ""
    target_selector: str = Field(alias="targetSelector")
    # A ContentNode tree; kept as plain data so deep markup is not re-validated node by node
    content: dict[str, Any] | None = None
    duration: int
    timestamp: datetime
    error: str | None = None
