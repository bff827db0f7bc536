"""Exception types raised by the URL shortener service.

Every client-visible error carries an HTTP status and a message that is safe to
return as ``{"error": message}``. Internal details stay in the logs.
"""

__all__ = [
    "ShortenerError",
    "URLValidationError",
    "URLNotFoundError",
    "StoreError",
    "ShortCodeConflict",
]

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ShortenerError(Exception):
    """Base class for errors rendered as JSON error responses."""

    status_code: int = 500
    message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class URLValidationError(ShortenerError):
    status_code = 400
    message = "Invalid request body"


class URLNotFoundError(ShortenerError):
    status_code = 404
    message = "Short URL not found"


class StoreError(ShortenerError):
    """The database failed, timed out, or could not allocate a free short code."""

    status_code = 500
    message = INTERNAL_ERROR_MESSAGE


class ShortCodeConflict(Exception):
    """Insert hit the unique constraint on short_code."""

    def __init__(self, short_code: str) -> None:
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' is already taken")
