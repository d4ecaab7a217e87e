"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    match_service_url: str
    match_service_token: str = ""
    request_timeout: float = 10.0
    max_workers: int = 4


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    match_service_url = os.getenv("MATCH_SERVICE_URL", "").rstrip("/")
    match_service_token = os.getenv("MATCH_SERVICE_TOKEN", "")
    request_timeout = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    max_workers = int(os.getenv("SEARCH_MAX_WORKERS", "4"))

    if not database_url:
        logger.warning("DATABASE_URL is not set; catalog and location lookups will fail.")
    if not match_service_url:
        logger.warning("MATCH_SERVICE_URL is not configured; pathology matching will fail.")

    return Settings(
        database_url=database_url,
        match_service_url=match_service_url,
        match_service_token=match_service_token,
        request_timeout=request_timeout,
        max_workers=max_workers,
    )


def require(value: str, name: str) -> str:
    if not value:
        raise ConfigError(f"{name} must be set in the environment for doctor search to run.")
    return value
