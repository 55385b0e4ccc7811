"""GET /scrape/{target} endpoint handler."""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request

from src.api.service import run_scrape
from src.auth.dependencies import require_api_key
from src.config import Settings
from src.scraper import ScrapeCoordinator

router = APIRouter(dependencies=[Depends(require_api_key)])

SCRAPE_PREFIX = "/scrape/"


def _get_coordinator(request: Request) -> ScrapeCoordinator:
    return request.app.state.coordinator


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _encoded_target(request: Request, target: str) -> str:
    """The target segment as the client sent it, before any percent-decoding.

    The path parameter has already been decoded once by the server; the
    scraper decodes the target itself, so it gets the raw segment instead.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1")
        index = path.find(SCRAPE_PREFIX)
        if index >= 0:
            return path[index + len(SCRAPE_PREFIX):]
    return quote(target, safe="")


@router.get(SCRAPE_PREFIX + "{target:path}")
async def scrape(
    request: Request,
    target: str,
    selector: str | None = Query(default=None),
    coordinator: ScrapeCoordinator = Depends(_get_coordinator),
    settings: Settings = Depends(_get_settings),
):
    return await run_scrape(
        coordinator,
        _encoded_target(request, target),
        selector,
        timeout_seconds=settings.request_timeout_seconds,
    )
