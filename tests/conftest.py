"""Fixtures — fake Playwright driver stack, scrape config, real Chromium page."""

import os
import subprocess
import sys

# src.main reads settings at import time to configure CORS
os.environ.setdefault("API_KEY", "test-secret-key")

from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.scraper.models import ScrapeConfig
from src.scraper.session import BrowserSession


@dataclass
class FakeBrowserStack:
    """MagicMocks standing in for async_playwright() and everything it hands out."""

    starter: MagicMock
    playwright: MagicMock
    browser: MagicMock
    context: MagicMock
    page: MagicMock
    response: MagicMock

    @property
    def session(self) -> BrowserSession:
        return BrowserSession(playwright=self.playwright, browser=self.browser, page=self.page)

    @property
    def launches(self) -> int:
        return self.playwright.chromium.launch.await_count

    @property
    def releases(self) -> int:
        return self.browser.close.await_count


def page_payload(
    nodes: list[dict[str, Any]] | None = None,
    *,
    url: str = "https://example.com/",
    title: str = "Example Domain",
    error: str | None = None,
) -> dict[str, Any]:
    """Shape of what the in-page serialization script returns."""
    payload: dict[str, Any] = {"url": url, "title": title, "nodes": nodes or []}
    if error is not None:
        payload["error"] = error
    return payload


def make_browser_stack(
    *,
    status: int = 200,
    final_url: str = "https://example.com/",
    evaluate_result: Any = None,
    selector_found: bool = True,
) -> FakeBrowserStack:
    response = MagicMock()
    response.status = status
    response.ok = 200 <= status < 300

    page = MagicMock()
    page.url = final_url
    page.goto = AsyncMock(return_value=response)
    if selector_found:
        page.wait_for_function = AsyncMock(return_value=MagicMock())
    else:
        page.wait_for_function = AsyncMock(
            side_effect=PlaywrightTimeoutError("Timeout 10000ms exceeded.")
        )
    page.evaluate = AsyncMock(
        return_value=evaluate_result
        if evaluate_result is not None
        else page_payload([{"tag": "body", "text": "", "parent": -1}], url=final_url)
    )
    page.close = AsyncMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.version = "120.0.6099.28"
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)

    return FakeBrowserStack(
        starter=starter,
        playwright=playwright,
        browser=browser,
        context=context,
        page=page,
        response=response,
    )


@pytest.fixture
def scrape_config() -> ScrapeConfig:
    """Default timeouts, but no settle delay so tests do not sleep."""
    return ScrapeConfig(settle_delay_ms=0)


@pytest.fixture
def browser_stack():
    """A fake driver stack patched in place of async_playwright."""
    stack = make_browser_stack()
    with patch("src.scraper.session.async_playwright", return_value=stack.starter):
        yield stack


def page_session(page) -> BrowserSession:
    """Wrap a bare page; the serializer and readiness checks only touch ``page``."""
    return BrowserSession(playwright=None, browser=None, page=page)  # type: ignore[arg-type]


# Opt-out for environments that deliberately cannot run a browser
SKIP_BROWSER_ENV = "SCRAPER_SKIP_BROWSER_TESTS"

_install_attempted = False


def _install_chromium() -> bool:
    """Run ``playwright install chromium`` once per test session."""
    global _install_attempted
    if _install_attempted:
        return False
    _install_attempted = True
    try:
        proc = subprocess.run(
            [sys.executable, "-m", "playwright", "install", "chromium"],
            capture_output=True,
            timeout=600,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return proc.returncode == 0


async def _launch(playwright):
    try:
        return await playwright.chromium.launch(headless=True)
    except PlaywrightError:
        if not _install_chromium():
            raise
        return await playwright.chromium.launch(headless=True)


@pytest_asyncio.fixture
async def chromium_page():
    """A real Chromium page.

    The in-page DOM walk only runs in a browser, so a missing Chromium fails
    the test unless SCRAPER_SKIP_BROWSER_TESTS=1 is set.
    """
    from playwright.async_api import async_playwright

    playwright = await async_playwright().start()
    try:
        browser = await _launch(playwright)
    except PlaywrightError as exc:
        await playwright.stop()
        reason = exc.message.splitlines()[0]
        if os.environ.get(SKIP_BROWSER_ENV) == "1":
            pytest.skip(f"Chromium not available: {reason}")
        pytest.fail(
            f"Chromium not available ({reason}). Run `playwright install chromium`, "
            f"or set {SKIP_BROWSER_ENV}=1 to skip browser tests."
        )
    page = await browser.new_page()
    yield page
    await browser.close()
    await playwright.stop()
