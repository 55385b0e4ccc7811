"""Playwright browser session lifecycle: one driver, browser and page per scrape."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from playwright.async_api import Browser, Page, Playwright, async_playwright

from .errors import CleanupError, SessionError
from .models import ScrapeConfig

logger = logging.getLogger(__name__)

# Flags for running Chromium inside a container without a usable sandbox or /dev/shm
CHROMIUM_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
)


@dataclass
class BrowserSession:
    playwright: Playwright
    browser: Browser
    page: Page


async def acquire(config: ScrapeConfig) -> BrowserSession:
    """Start Playwright, launch Chromium and open a single page.

    Anything started before a failure is torn down again before
    :class:`SessionError` is raised.
    """
    playwright: Playwright | None = None
    browser: Browser | None = None
    try:
        playwright = await async_playwright().start()

        launch_kwargs: dict[str, Any] = {
            "headless": config.headless,
            "args": list(CHROMIUM_ARGS),
        }
        if config.executable_path:
            launch_kwargs["executable_path"] = config.executable_path
        browser = await playwright.chromium.launch(**launch_kwargs)

        context = await browser.new_context(
            viewport={"width": config.viewport_width, "height": config.viewport_height},
            device_scale_factor=config.device_scale_factor,
            ignore_https_errors=True,
        )
        page = await context.new_page()
        page.set_default_navigation_timeout(config.navigation_timeout_ms)
        page.set_default_timeout(config.default_timeout_ms)
    except asyncio.CancelledError:
        await _teardown(playwright, browser)
        raise
    except Exception as exc:
        logger.error("browser session failed to start", exc_info=True)
        await _teardown(playwright, browser)
        raise SessionError(f"Failed to start browser session: {exc}") from exc

    logger.debug("browser session started", extra={"browser_version": browser.version})
    return BrowserSession(playwright=playwright, browser=browser, page=page)


async def release(session: BrowserSession) -> None:
    """Close the page, then the browser, then the driver. Never raises."""
    await _close_quietly("page", session.page.close)
    await _close_quietly("browser", session.browser.close)
    await _close_quietly("playwright", session.playwright.stop)
    logger.debug("browser session released")


@asynccontextmanager
async def open_session(config: ScrapeConfig) -> AsyncIterator[BrowserSession]:
    """Acquire a session and release it however the body exits."""
    session = await acquire(config)
    try:
        yield session
    finally:
        await release(session)


async def _close_quietly(what: str, close) -> None:
    try:
        await close()
    except Exception as exc:
        error = CleanupError(f"Failed to close {what}: {exc}")
        logger.warning(error.message, extra={"resource": what}, exc_info=True)


async def _teardown(playwright: Playwright | None, browser: Browser | None) -> None:
    if browser is not None:
        await _close_quietly("browser", browser.close)
    if playwright is not None:
        await _close_quietly("playwright", playwright.stop)
