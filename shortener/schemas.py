"""Pydantic schemas for request/response validation in the URL shortener.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    └─ originalUrl: str (required, http:// or https://)

    ShortenResponse (Output)
    ├─ shortUrl: str
    └─ shortCode: str

    URLStats (Output)
    ├─ id: int
    ├─ short_code: str
    ├─ original_url: str
    ├─ clicks: int
    └─ created_at: datetime

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

Key Behaviours
===============
- The shorten payload speaks camelCase on the wire and snake_case in Python.
- originalUrl is validated even when absent, so a missing field and an empty
  string produce the same "Original URL is required" error.
- Only the scheme prefix is checked; no further URL validation is applied.
- Stats mirror the persisted row and keep its snake_case column names.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shortener.enums import HealthStatus

__all__ = [
    "ALLOWED_URL_SCHEMES",
    "URL_REQUIRED_MESSAGE",
    "URL_SCHEME_MESSAGE",
    "ShortenRequest",
    "ShortenResponse",
    "URLStats",
    "MessageResponse",
    "HealthResponse",
    "ErrorResponse",
]

ALLOWED_URL_SCHEMES = ("http://", "https://")
URL_REQUIRED_MESSAGE = "Original URL is required"
URL_SCHEME_MESSAGE = "URL must start with http:// or https://"


class ShortenRequest(BaseModel):
    original_url: str | None = Field(default=None, alias="originalUrl", validate_default=True)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("original_url")
    @classmethod
    def validate_original_url(cls, v: str | None) -> str:
        if not v:
            raise ValueError(URL_REQUIRED_MESSAGE)
        if not v.startswith(ALLOWED_URL_SCHEMES):
            raise ValueError(URL_SCHEME_MESSAGE)
        return v


class ShortenResponse(BaseModel):
    short_url: str
    short_code: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class URLStats(BaseModel):
    id: int
    short_code: str
    original_url: str
    clicks: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus


class ErrorResponse(BaseModel):
    error: str
