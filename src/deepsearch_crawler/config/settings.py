"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
Never call ``os.getenv`` directly elsewhere in the codebase; read
configuration through this module instead.

Usage::

    from deepsearch_crawler.config.settings import get_settings

    settings = get_settings()
    ttl = settings.cache_ttl_seconds
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from deepsearch_crawler.scraper.config import (
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    ROBOTS_USER_AGENT,
    USER_AGENT,
)


class Settings(BaseSettings):
    """Crawler configuration backed by environment variables and an optional .env file.

    Every field has a default so the crawler runs out of the box against a
    local Redis.  Variables are read case-insensitively, e.g.
    ``CACHE_TTL_SECONDS=3600``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "DeepSearch Crawler"
    """Human-readable application name shown in the OpenAPI docs."""

    debug: bool = False
    """Enable FastAPI debug mode.  Never True in production."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    # ------------------------------------------------------------------
    # Redis / cache
    # ------------------------------------------------------------------

    redis_url: str = "redis://localhost:6379/0"
    """Redis connection URL for the shared crawl cache."""

    cache_enabled: bool = True
    """Memoize per-URL crawl outcomes.  When ``False`` every call fetches live."""

    cache_backend: Literal["redis", "memory"] = "redis"
    """``redis`` shares entries across processes; ``memory`` is process-local."""

    cache_ttl_seconds: int = Field(default=DEFAULT_CACHE_TTL, ge=1)
    """Lifetime of a cached crawl outcome.  Defaults to 6 hours."""

    robots_cache_ttl_seconds: int = Field(default=0, ge=0)
    """Lifetime of a cached robots.txt body, per origin.

    ``0`` (the default) checks robots.txt fresh on every fetch.
    """

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    user_agent: str = USER_AGENT
    """User-Agent header sent with page requests."""

    robots_user_agent: str = ROBOTS_USER_AGENT
    """User-agent token evaluated against robots.txt rules."""

    request_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    """Per-request HTTP timeout, applied to page and robots.txt fetches."""

    # ------------------------------------------------------------------
    # Crawl behaviour
    # ------------------------------------------------------------------

    default_max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    """Attempts per URL when the caller does not supply ``max_retries``."""

    overall_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    """Deadline applied to every URL of a batch.  ``None`` disables it."""

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    metrics_enabled: bool = True
    """Record crawl metrics and expose them at ``GET /metrics``."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    In tests, call ``get_settings.cache_clear()`` after patching environment
    variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
