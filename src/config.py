"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from src.scraper.models import ScrapeConfig


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    api_key: str

    cors_allow_origins: str = "*"
    log_level: str = "INFO"

    chrome_path: str = ""
    headless: bool = True
    navigation_timeout_ms: int = 30000
    default_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    settle_delay_ms: int = 2000
    selector_policy: Literal["soft", "strict"] = "soft"
    request_timeout_seconds: float = 60.0

    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    def scrape_config(self) -> ScrapeConfig:
        """Build the immutable per-scrape configuration."""
        return ScrapeConfig(
            navigation_timeout_ms=self.navigation_timeout_ms,
            default_timeout_ms=self.default_timeout_ms,
            selector_timeout_ms=self.selector_timeout_ms,
            settle_delay_ms=self.settle_delay_ms,
            headless=self.headless,
            executable_path=self.chrome_path or None,
            selector_policy=self.selector_policy,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
