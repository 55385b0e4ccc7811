"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routes import router
from src.api.service import http_exception_handler
from src.config import get_settings
from src.logging_config import setup_logging
from src.scraper import build_coordinator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Initialize logging FIRST so all subsequent operations produce JSON logs
    setup_logging(settings.log_level)
    logger.info("starting scrape service")

    coordinator = build_coordinator(settings)

    app.state.settings = settings
    app.state.coordinator = coordinator

    config = coordinator.config
    logger.info(
        "scrape service ready",
        extra={
            "selector_policy": config.selector_policy,
            "navigation_timeout_ms": config.navigation_timeout_ms,
            "selector_timeout_ms": config.selector_timeout_ms,
            "settle_delay_ms": config.settle_delay_ms,
            "custom_browser": bool(config.executable_path),
        },
    )

    yield

    logger.info("shutting down scrape service")


app = FastAPI(title="Scrape Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins(),
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "X-API-Key"],
)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
