"""FastAPI application entry point for the shortlink service.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ create_app() │
    │ CORS, routes │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ startup:     │
    │ build +      │
    │ init services│
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan()   │
    │ shutdown:    │
    │ drain tasks, │
    │ close redis, │
    │ dispose db   │
    └──────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn shortlink.main:app --host 0.0.0.0 --port 8080

**Step 2 — Shorten a URL**::
    curl -X POST http://localhost:8080/api/links \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com"}'

**Step 3 — Follow it**::
    curl -i http://localhost:8080/AbC123

Key Behaviours
===============
- Services are built once in the lifespan unless a container is passed in.
- Shutdown waits (bounded) for deferred click increments before exiting.
- Prometheus metrics are exposed at /metrics when ENABLE_METRICS is set.
"""

__all__ = ["app", "create_app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from shortlink.config import Settings, get_settings
from shortlink.dependencies import ServiceContainer
from shortlink.routes import router


def create_app(settings: Settings | None = None, services: ServiceContainer | None = None) -> FastAPI:
    settings = settings or (services.settings if services else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        owned = getattr(app.state, "services", None) is None
        if owned:
            app.state.services = ServiceContainer.from_settings(settings)
        await app.state.services.initialize()
        yield
        # Shutdown
        await app.state.services.cleanup()
        if owned:
            app.state.services = None

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Short link creation and redirect service",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.ENABLE_METRICS:
        Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=False,
            should_respect_env_var=False,
        ).instrument(app).expose(app)

    app.include_router(router)
    return app


app = create_app()
