"""FastAPI route definitions for the URL shortener REST API.

API Endpoint Overview
=====================
::
    GET  /
        └─ MessageResponse (200)

    GET  /health
        └─ HealthResponse (200)

    POST /api/shorten
        ├─ ShortenRequest (request body)
        └─ ShortenResponse (201) or 400/500

    GET  /api/stats/{short_code}
        └─ URLStats (200) or 404/500

    GET  /{code}
        └─ 302 Redirect or 404/500

Key Behaviours
===============
- Every error response is ``{"error": "<message>"}``; see shortener.main for
  the exception handlers.
- The short URL is built from the serving request's own scheme and host unless
  BASE_URL is configured.
- Redirect increments the click counter before the response is returned.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from shortener.dependencies import RequestContext, get_request_context, get_url_service
from shortener.enums import HealthStatus
from shortener.exceptions import URLNotFoundError
from shortener.schemas import (
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    ShortenRequest,
    ShortenResponse,
    URLStats,
)
from shortener.url_service import URLShorteningService

__all__ = ["SHORTEN_PATH", "router"]

router = APIRouter()

SHORTEN_PATH = "/api/shorten"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def build_short_url(request: Request, base_url: str | None, short_code: str) -> str:
    prefix = base_url or str(request.base_url)
    return f"{prefix.rstrip('/')}/{short_code}"


@router.get("/", response_model=MessageResponse, tags=["health"])
async def root() -> MessageResponse:
    return MessageResponse(message="URL Shortener API is running!")


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> HealthResponse:
    db_status = await service.check_database()
    status = HealthStatus.HEALTHY if db_status is HealthStatus.HEALTHY else HealthStatus.UNHEALTHY
    ctx.logger.info(f"Health check completed: {status.value}")
    return HealthResponse(status=status, database=db_status)


@router.post(
    SHORTEN_PATH,
    response_model=ShortenResponse,
    status_code=201,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    tags=["urls"],
)
async def shorten_url(
    payload: ShortenRequest,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> ShortenResponse:
    ctx.logger.info(f"URL shortening requested: {payload.original_url}")
    url = await service.create_short_url(payload)
    ctx.logger.info(f"URL shortened in {ctx.get_duration():.1f}ms: {url.short_code}")
    return ShortenResponse(
        short_url=build_short_url(request, ctx.settings.BASE_URL, url.short_code),
        short_code=url.short_code,
    )


@router.get(
    "/api/stats/{short_code}",
    response_model=URLStats,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    tags=["urls"],
)
async def get_stats(
    short_code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> URLStats:
    ctx.logger.info(f"Stats requested for short code: {short_code}")
    url = await service.get_url_statistics(short_code)
    if not url:
        ctx.logger.warning(f"Stats not found for short code: {short_code}")
        raise URLNotFoundError()
    return URLStats.model_validate(url)


@router.get(
    "/{code}",
    status_code=302,
    response_class=RedirectResponse,
    responses={404: ERROR_RESPONSES[404], 500: ERROR_RESPONSES[500]},
    tags=["redirect"],
)
async def redirect_to_url(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> RedirectResponse:
    ctx.logger.info(f"Redirect requested for short code: {code}")
    try:
        result = await service.resolve_short_code(code)
    except URLNotFoundError:
        ctx.logger.warning(f"Redirect failed - short code not found: {code}")
        raise

    ctx.logger.info(f"Redirect: {code} -> {result.original_url} ({ctx.get_duration():.1f}ms)")
    return RedirectResponse(url=result.original_url, status_code=302)
