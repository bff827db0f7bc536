"""Dependency injection with a singleton service manager.

This module provides a centralized way to inject the database session, settings
and logger into API endpoints, using a singleton for process-wide resources to
minimize per-request overhead.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.config import Settings, get_settings
from shortener.database import get_db
from shortener.url_service import URLShorteningService

__all__ = [
    "LOG_FORMAT",
    "ServiceManager",
    "RequestContext",
    "get_service_manager",
    "get_request_context",
    "get_url_service",
]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# ============================================================================
# SINGLETON SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Singleton holder for resources shared by every request."""

    _instance: Optional["ServiceManager"] = None
    _initialized: bool = False

    def __new__(cls) -> "ServiceManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def initialize(self) -> None:
        """Load settings and configure logging once."""
        if not self._initialized:
            self.settings = get_settings()
            self.logger = self._setup_logger()
            self._initialized = True

    def _setup_logger(self) -> logging.Logger:
        logger = logging.getLogger("urlshortener")
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.setLevel(self.settings.LOG_LEVEL.upper())
        return logger

    def cleanup(self) -> None:
        self._initialized = False


# Global singleton instance
_service_manager = ServiceManager()


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request view over shared resources.

    Attributes:
        database: Async database session (the only per-request resource)
        service_manager: Singleton service manager with shared resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    database: AsyncSession
    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def logger(self) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager._initialized:
        _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    return RequestContext(
        database=db,
        service_manager=manager,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_url_service(ctx: RequestContext = Depends(get_request_context)) -> URLShorteningService:
    return URLShorteningService.from_context(ctx)
