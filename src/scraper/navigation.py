"""Navigation and readiness gating for a scrape session."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import NavigationError, ValidationError, is_selector_syntax_error
from .models import NavigationOutcome, ScrapeConfig
from .session import BrowserSession

logger = logging.getLogger(__name__)

# Same matching rules as the serializer: plain CSS against the light DOM
_SELECTOR_PRESENT_SCRIPT = "(selector) => document.querySelector(selector) !== null"


async def navigate(
    session: BrowserSession, url: str, config: ScrapeConfig
) -> NavigationOutcome:
    """Load *url* up to DOMContentLoaded, then wait out the settle delay.

    Raises :class:`NavigationError` on timeout, on a driver navigation error,
    or on a non-2xx response.
    """
    page = session.page
    try:
        response = await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=config.navigation_timeout_ms,
        )
    except PlaywrightTimeoutError:
        raise NavigationError(
            f"Navigation timed out after {config.navigation_timeout_ms}ms"
        ) from None
    except PlaywrightError as exc:
        raise NavigationError(f"Navigation failed: {exc.message}") from exc

    if response is None:
        raise NavigationError("Failed to load page: no response")
    if not response.ok:
        raise NavigationError(f"Failed to load page: {response.status}")

    logger.debug(
        "page loaded",
        extra={"url": url, "final_url": page.url, "status": response.status},
    )

    # Late client-side rendering gets a fixed grace period before extraction
    if config.settle_delay_ms > 0:
        await asyncio.sleep(config.settle_delay_ms / 1000)

    return NavigationOutcome(url=page.url, status=response.status)


async def await_selector(
    session: BrowserSession, selector: str, config: ScrapeConfig
) -> bool:
    """Wait until ``document.querySelector(selector)`` matches.

    Returns ``False`` on timeout rather than raising. A selector the page
    cannot parse raises :class:`ValidationError`.
    """
    try:
        await session.page.wait_for_function(
            _SELECTOR_PRESENT_SCRIPT, arg=selector, timeout=config.selector_timeout_ms
        )
    except PlaywrightTimeoutError:
        logger.debug(
            "selector wait timed out",
            extra={"selector": selector, "timeout_ms": config.selector_timeout_ms},
        )
        return False
    except PlaywrightError as exc:
        if is_selector_syntax_error(exc):
            raise ValidationError(f"Invalid selector: {selector}") from exc
        raise
    return True

