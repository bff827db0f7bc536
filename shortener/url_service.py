"""URL Shortener Service Layer - Core Business Logic

This module holds the short code generator, the uniqueness resolver and the
service class that route handlers call for creation, redirect resolution and
statistics.

Architecture Overview
==================
::
    ┌──────────────────────────────────────────────────────┐
    │                   Service Layer                      │
    │  ┌─────────────────┐  ┌─────────────────┐            │
    │  │   URL Service   │  │  Code Generator │            │
    │  │                 │  │                 │            │
    │  │ • Create URLs   │  │ • nanoid over   │            │
    │  │ • Resolve codes │  │   [a-zA-Z0-9]   │            │
    │  │ • Statistics    │  │ • Uniqueness    │            │
    │  └─────────────────┘  └─────────────────┘            │
    └──────────────────────────────────────────────────────┘
                │
                ▼
    ┌─────────────────┐
    │  URLRepository  │
    │  (PostgreSQL)   │
    └─────────────────┘

URL Creation Flow
-----------------
::
    ┌─────────────┐
    │ Generate    │◄──────────────┐
    │ candidate   │               │ taken / reserved
    └──────┬──────┘               │
           ▼                      │
    ┌─────────────┐               │
    │ find_by_code│───────────────┘
    └──────┬──────┘
           ▼ free
    ┌─────────────┐  ShortCodeConflict (race)
    │ INSERT      │──────────────► retry, up to
    └──────┬──────┘                SHORT_CODE_MAX_INSERT_ATTEMPTS
           ▼
    ┌─────────────┐
    │ 201 Created │
    └─────────────┘

Redirect Flow
-------------
::
    UPDATE urls SET clicks = clicks + 1
    WHERE short_code = :code
    RETURNING original_url, clicks
           │
    ┌──────┴──────┐
    │ no row      │ row
    ▼             ▼
   404       log clicks → 302

Every repository call is bounded by STORE_TIMEOUT_SECONDS. Timeouts and
SQLAlchemy or connection (OSError) errors are logged and re-raised as StoreError.
"""

import asyncio
import time
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Optional, TypeVar

from nanoid import generate
from prometheus_client import Counter, Histogram
from sqlalchemy.exc import SQLAlchemyError

from shortener.enums import CollisionStage, HealthStatus, RequestStatus
from shortener.exceptions import ShortCodeConflict, StoreError, URLNotFoundError
from shortener.models import URL
from shortener.repository import ClickResult, URLRepository
from shortener.schemas import ShortenRequest

if TYPE_CHECKING:
    from shortener.dependencies import RequestContext

__all__ = [
    "ALPHABET",
    "RESERVED_SHORT_CODES",
    "generate_short_code",
    "URLShorteningService",
]

T = TypeVar("T")


# ============================================================================
# CONSTANTS
# ============================================================================

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_SHORT_CODE_LENGTH = 6

# Paths served by fixed routes; a short code equal to one would be unreachable.
RESERVED_SHORT_CODES = frozenset({"health", "metrics", "docs", "redoc"})


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

URL_CREATION_REQUESTS_TOTAL = Counter(
    "url_shortener_creation_requests_total",
    "Total URL creation requests",
    ["status"],
)
URL_CREATION_DURATION = Histogram(
    "url_shortener_creation_duration_seconds",
    "Time taken to create short URLs",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)
URL_REDIRECT_REQUESTS_TOTAL = Counter(
    "url_shortener_redirect_requests_total",
    "Total URL redirect requests",
    ["status"],
)
SHORT_CODE_COLLISIONS_TOTAL = Counter(
    "url_shortener_short_code_collisions_total",
    "Generated short codes that were already taken",
    ["stage"],
)
DATABASE_ERRORS_TOTAL = Counter(
    "url_shortener_database_errors_total",
    "Database operations that failed or timed out",
)


# ============================================================================
# CODE GENERATOR
# ============================================================================


def generate_short_code(length: int = DEFAULT_SHORT_CODE_LENGTH) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class URLShorteningService:
    """Core service class for URL shortening operations.

    One instance lives for one request. It owns the repository bound to the
    request's database session and logs through the request's logger.

    Example:
        >>> service = URLShorteningService.from_context(ctx)
        >>> url = await service.create_short_url(ShortenRequest(originalUrl="https://example.com"))
        >>> print(f"Shortened: {url.short_code}")
    """

    def __init__(self, ctx: "RequestContext", repository: Optional[URLRepository] = None):
        self._repository = repository or URLRepository(ctx.database)
        self._logger = ctx.logger
        self._settings = ctx.settings
        self._ctx = ctx

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "URLShorteningService":
        return cls(ctx)

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create_short_url(self, request: ShortenRequest) -> URL:
        """Persist ``request.original_url`` under a freshly generated short code.

        A code that passed the lookup can still lose an insert race against a
        concurrent request; the unique constraint then rejects it and a new
        code is resolved. After SHORT_CODE_MAX_INSERT_ATTEMPTS lost races the
        request fails.

        Raises:
            StoreError: On database failure, timeout, or exhausted retries.
        """
        start_time = time.perf_counter()
        max_attempts = self._settings.SHORT_CODE_MAX_INSERT_ATTEMPTS

        try:
            for attempt in range(1, max_attempts + 1):
                short_code = await self._resolve_unique_short_code()
                try:
                    url = await self._call_store(
                        "insert", self._repository.create(request.original_url, short_code)
                    )
                except ShortCodeConflict:
                    SHORT_CODE_COLLISIONS_TOTAL.labels(stage=CollisionStage.INSERT).inc()
                    self._logger.warning(
                        f"Short code {short_code} taken at insert (attempt {attempt}/{max_attempts})"
                    )
                    continue

                URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
                self._logger.info(f"URL created: {short_code} -> {request.original_url}")
                return url

            self._logger.error(f"Could not insert a unique short code after {max_attempts} attempts")
            raise StoreError()

        except StoreError:
            URL_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise

        finally:
            URL_CREATION_DURATION.observe(time.perf_counter() - start_time)

    async def resolve_short_code(self, short_code: str) -> ClickResult:
        """Count a visit to ``short_code`` and return where it points.

        Raises:
            URLNotFoundError: If the code was never issued.
            StoreError: On database failure or timeout.
        """
        try:
            result = await self._call_store("increment", self._repository.increment_clicks(short_code))
        except URLNotFoundError:
            URL_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise
        except StoreError:
            URL_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise

        URL_REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Short code {short_code} has been clicked {result.clicks} times.")
        return result

    async def get_url_statistics(self, short_code: str) -> Optional[URL]:
        return await self._call_store("lookup", self._repository.find_by_code(short_code))

    async def check_database(self) -> HealthStatus:
        try:
            await self._call_store("ping", self._repository.ping())
        except StoreError:
            return HealthStatus.UNHEALTHY
        except Exception as exc:
            self._logger.error(f"Database health check failed: {exc}")
            return HealthStatus.UNHEALTHY
        return HealthStatus.HEALTHY

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    async def _resolve_unique_short_code(self) -> str:
        """Generate candidates until one is neither reserved nor stored."""
        while True:
            candidate = generate_short_code(self._settings.SHORT_CODE_LENGTH)
            if candidate in RESERVED_SHORT_CODES:
                continue
            existing = await self._call_store("lookup", self._repository.find_by_code(candidate))
            if existing is None:
                return candidate
            SHORT_CODE_COLLISIONS_TOTAL.labels(stage=CollisionStage.LOOKUP).inc()
            self._logger.debug(f"Short code {candidate} already exists, regenerating")

    async def _call_store(self, operation: str, call: Awaitable[T]) -> T:
        """Await a repository call under the store deadline.

        Domain errors (not found, conflict) pass through untouched. Driver
        connection failures surface as OSError subclasses and are wrapped too.
        """
        timeout = self._settings.STORE_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            DATABASE_ERRORS_TOTAL.inc()
            self._logger.error(f"Database {operation} timed out after {timeout}s")
            raise StoreError() from exc
        except (SQLAlchemyError, OSError) as exc:
            DATABASE_ERRORS_TOTAL.inc()
            self._logger.exception(f"Database {operation} failed: {exc}")
            raise StoreError() from exc
