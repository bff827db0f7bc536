"""Shared enums for the URL shortener service.

Using enums instead of string literals keeps metric labels and health payloads
consistent across the codebase.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "CollisionStage"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Outcome label for request counters."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    ERROR = "error"


class CollisionStage(StrEnum):
    """Where a short code collision was detected."""

    LOOKUP = "lookup"
    INSERT = "insert"
