"""HTTP entry points for the shortlink service.

Route Map
=========
::
    GET  /health        → database + cache health
    POST /api/links     → create a short link ({success, link} | {success, error})
    GET  /api/links     → most recent links, newest first
    GET  /{short_code}  → 307 redirect | 404 | 410 | 500

Key Behaviours
===============
- Creation failures are returned as ``{"success": false, "error": ...}``
  bodies, never as unhandled exceptions.
- The creation body may be JSON or form-encoded. A missing or unreadable
  body is answered like a missing URL, never with a framework 422.
- The redirect response is sent as soon as the code is resolved; click
  counting and cache population are already deferred by the resolver.
- /{short_code} is registered last so it never shadows the fixed paths.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from shortlink.creator import LinkCreator
from shortlink.dependencies import (
    RequestContext,
    get_link_creator,
    get_link_store,
    get_redirect_resolver,
    get_request_context,
)
from shortlink.enums import HealthStatus, RedirectOutcome
from shortlink.errors import CacheUnavailable, CollisionExhausted, LinkValidationError, StoreError
from shortlink.resolver import RedirectResolver
from shortlink.schemas import CreateLinkResult, HealthResponse, LinkCreate, LinkResponse, RecentLinksResponse
from shortlink.store import LinkStore

__all__ = ["router"]

COLLISION_MESSAGE = "Failed to generate a unique short code. Please try again."
UNEXPECTED_MESSAGE = "An unexpected error occurred"

router = APIRouter()


def _creation_failure(status_code: int, message: str) -> JSONResponse:
    result = CreateLinkResult(success=False, error=message)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json", exclude_none=True))


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    cache_status = HealthStatus.HEALTHY

    try:
        await ctx.services.store.ping()
    except StoreError as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    try:
        await ctx.services.cache.ping()
    except CacheUnavailable as e:
        ctx.logger.error(f"Cache health check failed: {e}")
        cache_status = HealthStatus.UNHEALTHY

    status = (
        HealthStatus.HEALTHY
        if db_status is HealthStatus.HEALTHY and cache_status is HealthStatus.HEALTHY
        else HealthStatus.UNHEALTHY
    )
    return HealthResponse(status=status, database=db_status, cache=cache_status)


@router.post(
    "/api/links",
    status_code=201,
    tags=["links"],
    openapi_extra={
        "requestBody": {
            "required": False,
            "content": {
                "application/json": {"schema": LinkCreate.model_json_schema()},
                "application/x-www-form-urlencoded": {"schema": LinkCreate.model_json_schema()},
            },
        }
    },
)
async def create_link(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    creator: LinkCreator = Depends(get_link_creator),
) -> JSONResponse:
    try:
        payload = LinkCreate.from_body(await request.body(), request.headers.get("content-type"))
    except LinkValidationError as exc:
        return _creation_failure(400, str(exc))

    ctx.logger.info(
        f"Link creation requested: {payload.url}",
        extra={"operation": "create_link", "target_url": payload.url},
    )

    try:
        link = await creator.create_link(payload.url)
    except LinkValidationError as exc:
        return _creation_failure(400, str(exc))
    except CollisionExhausted as exc:
        ctx.logger.error(f"Link creation failed: {exc}", extra={"operation": "create_link"})
        return _creation_failure(503, COLLISION_MESSAGE)
    except StoreError as exc:
        ctx.logger.error(f"Failed to create short link: {exc}", extra={"operation": "create_link"})
        return _creation_failure(500, UNEXPECTED_MESSAGE)

    ctx.logger.info(
        f"Link created: {link.short_code}",
        extra={
            "operation": "create_link",
            "short_code": link.short_code,
            "link_id": link.id,
            "duration_ms": ctx.get_duration(),
        },
    )
    result = CreateLinkResult(success=True, link=LinkResponse.from_link(link, ctx.settings.BASE_URL))
    return JSONResponse(status_code=201, content=result.model_dump(mode="json", by_alias=True, exclude_none=True))


@router.get("/api/links", tags=["links"])
async def list_recent_links(
    ctx: RequestContext = Depends(get_request_context),
    store: LinkStore = Depends(get_link_store),
) -> JSONResponse:
    try:
        links = await store.list_recent(ctx.settings.RECENT_LINKS_LIMIT)
    except StoreError as exc:
        ctx.logger.error(f"Failed to fetch recent links: {exc}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch recent links"})

    response = RecentLinksResponse(links=[LinkResponse.from_link(link, ctx.settings.BASE_URL) for link in links])
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))


@router.get("/{short_code}", tags=["redirect"])
async def redirect_to_target(
    short_code: str,
    ctx: RequestContext = Depends(get_request_context),
    resolver: RedirectResolver = Depends(get_redirect_resolver),
) -> RedirectResponse:
    try:
        resolution = await resolver.resolve(short_code)
    except StoreError as exc:
        ctx.logger.error(
            f"Failed to process redirect for code: {short_code}: {exc}",
            extra={"operation": "redirect", "short_code": short_code},
        )
        raise HTTPException(status_code=500, detail="Internal Server Error") from exc

    if resolution.outcome is RedirectOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Short link not found")
    if resolution.outcome is RedirectOutcome.GONE:
        raise HTTPException(status_code=410, detail="This short link has expired.")

    ctx.logger.info(
        f"Redirect: {short_code} -> {resolution.target_url}",
        extra={
            "operation": "redirect",
            "short_code": short_code,
            "cache_hit": resolution.cache_status,
            "duration_ms": ctx.get_duration(),
        },
    )
    return RedirectResponse(url=resolution.target_url, status_code=307)
