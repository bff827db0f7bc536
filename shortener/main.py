"""FastAPI application entry point for the URL shortener service.

This module configures the FastAPI application with middleware, error
handlers, lifecycle management, metrics and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ init_db()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ close_db()  │
    └─────────────┘

How to Use
===========
**Step 1 — Run**::
    url-shortener
    # or
    uvicorn shortener.main:app --host 0.0.0.0 --port 3000

**Step 2 — Make API calls**::
    curl -X POST http://localhost:3000/api/shorten \
         -H "Content-Type: application/json" \
         -d '{"originalUrl": "https://example.com"}'

Key Behaviours
===============
- The `urls` table is created automatically on startup.
- CORS is enabled for all origins by default (CORS_ORIGINS).
- Every error is rendered as ``{"error": "<message>"}``; internal details are
  only logged.
- Prometheus metrics are exposed at /metrics.
"""

__all__ = ["app", "run"]

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortener.config import get_settings
from shortener.database import close_db, init_db
from shortener.dependencies import _service_manager
from shortener.enums import RequestStatus
from shortener.exceptions import INTERNAL_ERROR_MESSAGE, ShortenerError, URLValidationError
from shortener.routes import SHORTEN_PATH, router
from shortener.schemas import URL_REQUIRED_MESSAGE
from shortener.url_service import URL_CREATION_REQUESTS_TOTAL

settings = get_settings()
logger = logging.getLogger("urlshortener")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    _service_manager.initialize()
    await init_db()
    logger.info(f"{settings.APP_NAME} ready on port {settings.PORT}")
    yield
    # Shutdown
    _service_manager.cleanup()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="A small URL shortener API with click counting",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def validation_error_message(exc: RequestValidationError) -> str:
    """Pick the client message for the first body validation failure.

    A body that is absent or not a JSON object (form data, an array) carries no
    originalUrl at all, so it is reported as missing.
    """
    for error in exc.errors():
        if error.get("type") == "value_error":
            return str(error.get("msg", "")).removeprefix("Value error, ")
        if error.get("type") == "missing" or tuple(error.get("loc", ())) == ("body",):
            return URL_REQUIRED_MESSAGE
    return URLValidationError.message


@app.exception_handler(ShortenerError)
async def shortener_error_handler(request: Request, exc: ShortenerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if request.url.path == SHORTEN_PATH:
        URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
    return error_response(400, validation_error_message(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, INTERNAL_ERROR_MESSAGE)


Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app, include_in_schema=False)

app.include_router(router)


def run() -> None:
    uvicorn.run(
        "shortener.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
