"""
Custom Exceptions

This module defines custom exceptions for the short link registry.

Validation and lookup errors are raised to the caller, which turns them
into user-facing messages (HTTP status codes in the API layer).
PersistenceError is raised by key-value stores and contained by the
registry: it is logged and never fails the triggering operation.
"""


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidValidityError(URLShortenerException):
    """Raised when the validity period is not a positive integer."""

    def __init__(self, validity):
        self.validity = validity
        super().__init__(
            f"Validity period must be a positive integer (minutes), got {validity!r}"
        )


class InvalidShortcodeError(URLShortenerException):
    """Raised when a custom shortcode does not match the allowed format."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(
            f"Invalid shortcode format '{short_code}'. Use 3-20 alphanumeric characters"
        )


class ShortcodeTakenError(URLShortenerException):
    """Raised when a custom shortcode has already been assigned."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Shortcode '{short_code}' is already in use")


class ShortCodeNotFoundError(URLShortenerException):
    """Raised when a short code is not tracked by the registry."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' not found")


class ShortCodeExpiredError(URLShortenerException):
    """Raised when a short code is tracked but past its expiry."""

    def __init__(self, short_code: str, expires_at=None):
        self.short_code = short_code
        self.expires_at = expires_at
        super().__init__(f"Short code '{short_code}' has expired")


class PersistenceError(URLShortenerException):
    """Raised when the key-value store cannot be read or written."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Persistence error: {message}")


class ServiceUnavailableError(URLShortenerException):
    """Raised when a required service is unavailable."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"Service '{service_name}' is unavailable")
