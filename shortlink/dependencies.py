"""Dependency injection around one explicitly built service container.

This module provides the long-lived shared handles (engine, store, cache,
background runner) and the per-request context handed to every endpoint.
The container is built once in the application lifespan, stored on
``app.state.services`` and read back per request; nothing is kept in module
globals.
"""

import datetime
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from shortlink.background import BackgroundTaskRunner
from shortlink.cache import LinkCache, create_redis
from shortlink.codegen import CodeGenerator, build_code_generator
from shortlink.config import Settings
from shortlink.creator import LinkCreator
from shortlink.database import close_db, create_engine, create_session_factory, init_db
from shortlink.log import ContextAdapter, setup_logging
from shortlink.resolver import RedirectResolver
from shortlink.store import LinkStore

__all__ = [
    "ServiceContainer",
    "RequestContext",
    "get_services",
    "get_request_context",
    "get_link_creator",
    "get_redirect_resolver",
    "get_link_store",
]


# ============================================================================
# SHARED SERVICE CONTAINER
# ============================================================================


class ServiceContainer:
    """Shared resources built once per process.

    The store and cache wrap thread/task-safe clients, so a single container
    serves every request and every background task.
    """

    def __init__(
        self,
        settings: Settings,
        store: LinkStore,
        cache: LinkCache,
        generator: CodeGenerator,
        runner: BackgroundTaskRunner | None = None,
        engine: AsyncEngine | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.cache = cache
        self.generator = generator
        self.runner = runner or BackgroundTaskRunner()
        self.engine = engine
        self.logger = logger or setup_logging(settings)
        self.creator = LinkCreator(
            store,
            generator,
            max_attempts=settings.MAX_CREATE_ATTEMPTS,
            link_ttl=datetime.timedelta(days=settings.LINK_TTL_DAYS),
            max_url_length=settings.MAX_URL_LENGTH,
        )
        self.resolver = RedirectResolver(
            cache,
            store,
            self.runner,
            default_cache_ttl=settings.DEFAULT_CACHE_TTL_SECONDS,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        """Build production handles; no connection is opened until first use."""
        engine = create_engine(settings)
        store = LinkStore(create_session_factory(engine), timeout=settings.STORE_TIMEOUT_SECONDS)
        cache = LinkCache(
            create_redis(settings.REDIS_URL),
            key_prefix=settings.CACHE_KEY_PREFIX,
            timeout=settings.CACHE_TIMEOUT_SECONDS,
        )
        return cls(settings, store, cache, build_code_generator(settings), engine=engine)

    async def initialize(self) -> None:
        """Create tables at startup."""
        if self.engine is not None:
            await init_db(self.engine)
        self.logger.info(f"{self.settings.APP_NAME} services initialized ({self.settings.APP_ENV})")

    async def cleanup(self) -> None:
        """Drain deferred work, then release shared resources."""
        pending = await self.runner.drain(timeout=self.settings.SHUTDOWN_DRAIN_SECONDS)
        if pending:
            self.logger.warning(f"Shutting down with {pending} deferred tasks unfinished")
        await self.cache.close()
        if self.engine is not None:
            await close_db(self.engine)
        self.logger.info("Services shut down")


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking on top of the shared container.

    Attributes:
        services: Shared service container
        request_id: Unique identifier for this request
        trace_id: Correlation ID for distributed tracing
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    services: ServiceContainer
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace_id: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.services.settings

    @property
    def logger(self) -> ContextAdapter:
        """Get shared logger with request context."""
        return ContextAdapter(
            self.services.logger,
            {
                "request_id": self.request_id,
                "trace_id": self.trace_id or self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_request_context(
    request: Request,
    services: ServiceContainer = Depends(get_services),
) -> RequestContext:
    client_ip = request.headers.get("x-forwarded-for") or (request.client.host if request.client else None)
    return RequestContext(
        services=services,
        trace_id=request.headers.get("x-trace-id"),
        user_agent=request.headers.get("user-agent"),
        client_ip=client_ip,
    )


def get_link_creator(services: ServiceContainer = Depends(get_services)) -> LinkCreator:
    return services.creator


def get_redirect_resolver(services: ServiceContainer = Depends(get_services)) -> RedirectResolver:
    return services.resolver


def get_link_store(services: ServiceContainer = Depends(get_services)) -> LinkStore:
    return services.store
