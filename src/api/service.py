"""Service layer — runs scrapes for the API routes under a wall-clock budget."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.api.schemas import ErrorResponse
from src.scraper import ScrapeCoordinator, ScrapeError, ScrapeResult

logger = logging.getLogger(__name__)

_SUCCESS_HEADERS = {"Cache-Control": "no-store"}


def result_payload(result: ScrapeResult) -> dict[str, Any]:
    """JSON-ready dict with camelCase keys; ``error`` only when set."""
    exclude = {"content"} if result.error is not None else {"content", "error"}
    payload = result.model_dump(mode="json", by_alias=True, exclude=exclude)
    payload["content"] = result.content
    return payload


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


async def run_scrape(
    coordinator: ScrapeCoordinator,
    target: str,
    selector: str | None,
    timeout_seconds: float,
) -> JSONResponse:
    """Scrape *target* and return the JSON response for it.

    Every failure becomes a ``{"error": ...}`` body. Exceeding
    *timeout_seconds* cancels the scrape; its session is released by the
    coordinator's scoped cleanup.
    """
    try:
        async with asyncio.timeout(timeout_seconds):
            result = await coordinator.scrape(target, selector)
    except ScrapeError as exc:
        return error_response(exc.message, exc.status_code)
    except TimeoutError:
        logger.warning(
            "scrape exceeded request budget",
            extra={"target": target[:200], "timeout_seconds": timeout_seconds},
        )
        return error_response(
            f"Scrape exceeded the {timeout_seconds:g}s request budget", 504
        )

    return JSONResponse(result_payload(result), headers=_SUCCESS_HEADERS)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render framework-level HTTP errors in the same ``{"error": ...}`` shape."""
    return JSONResponse(
        ErrorResponse(error=str(exc.detail)).model_dump(),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )
