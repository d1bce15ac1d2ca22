"""Configuration management for the shortlink service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shortlink.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

**Step 3 — Override in tests**::
    settings = Settings(DATABASE_URL="sqlite+aiosqlite:///./test.db", ENABLE_METRICS=False)

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- Code length, alphabet, retry ceiling and expiry window all live here so the
  creation and redirect paths agree on them.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

import string
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "shortlink"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://shortlink:shortlink@db:5432/shortlink"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Short code config
    SHORT_CODE_ALPHABET: str = string.ascii_letters + string.digits
    SHORT_CODE_LENGTH: int = 6
    CODE_GENERATOR: str = "random"
    MAX_CREATE_ATTEMPTS: int = 5

    # Link lifetime and validation
    LINK_TTL_DAYS: int = 7
    MAX_URL_LENGTH: int = 2048

    # Cache-aside redirect path
    CACHE_KEY_PREFIX: str = "link"
    DEFAULT_CACHE_TTL_SECONDS: int = 7 * 24 * 60 * 60
    CACHE_TIMEOUT_SECONDS: float = 0.25
    STORE_TIMEOUT_SECONDS: float = 5.0

    # Listing
    RECENT_LINKS_LIMIT: int = 10

    # Deferred work
    SHUTDOWN_DRAIN_SECONDS: float = 5.0

    # Observability
    LOG_LEVEL: str = "INFO"
    ENABLE_METRICS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
