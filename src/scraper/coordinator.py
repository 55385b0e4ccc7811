"""Scrape coordinator — sequences session, navigation and serialization."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from .errors import ScrapeError, SelectorTimeoutError
from .models import ScrapeConfig, ScrapeRequest, ScrapeResult
from .navigation import await_selector, navigate
from .serializer import serialize
from .session import open_session

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return round((time.monotonic() - started) * 1000)


class ScrapeCoordinator:
    """Runs a single scrape: validate -> acquire -> navigate -> wait -> serialize.

    The browser session is released on every exit path. Failures surface as
    :class:`ScrapeError` subclasses; anything else is wrapped in a plain
    ``ScrapeError`` after its traceback is logged. Nothing is retried.
    """

    def __init__(self, config: ScrapeConfig) -> None:
        self._config = config

    @property
    def config(self) -> ScrapeConfig:
        return self._config

    async def scrape(self, target: str, selector: str | None = None) -> ScrapeResult:
        """Validate a URL-encoded *target* and run the scrape."""
        request = ScrapeRequest.from_encoded(target, selector)
        return await self.run(request)

    async def run(self, request: ScrapeRequest) -> ScrapeResult:
        config = self._config
        log_ctx = {"url": request.target_url, "selector": request.selector}
        logger.info("scrape started", extra=log_ctx)

        started = time.monotonic()
        try:
            async with open_session(config) as session:
                logger.debug("navigating", extra=log_ctx)
                await navigate(session, request.target_url, config)

                logger.debug("awaiting selector", extra=log_ctx)
                if not await await_selector(session, request.selector, config):
                    if config.selector_policy == "strict":
                        raise SelectorTimeoutError(
                            f"Timed out waiting for selector: {request.selector}"
                        )
                    logger.info("selector absent after wait, serializing anyway", extra=log_ctx)

                logger.debug("serializing", extra=log_ctx)
                page = await serialize(session, request.selector)
                duration = _elapsed_ms(started)
        except ScrapeError as exc:
            logger.warning(
                "scrape failed",
                extra={
                    **log_ctx,
                    "error_type": type(exc).__name__,
                    "error": exc.message,
                    "duration_ms": _elapsed_ms(started),
                },
            )
            raise
        except Exception as exc:
            logger.exception(
                "scrape failed unexpectedly",
                extra={**log_ctx, "duration_ms": _elapsed_ms(started)},
            )
            raise ScrapeError(str(exc) or type(exc).__name__) from exc

        logger.info(
            "scrape completed",
            extra={**log_ctx, "final_url": page.url, "duration_ms": duration, "found": page.content is not None},
        )
        return ScrapeResult(
            url=page.url,
            title=page.title,
            target_selector=request.selector,
            content=page.content,
            duration=duration,
            timestamp=datetime.now(timezone.utc),
            error=page.error,
        )
