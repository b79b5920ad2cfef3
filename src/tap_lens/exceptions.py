"""Custom exceptions for tap-lens."""


class TapLensError(Exception):
    """Base exception for tap-lens."""

    pass


class AuthenticationError(TapLensError):
    """Raised when an API key or credential is invalid or missing."""

    pass


class RateLimitError(TapLensError):
    """Raised when an upstream rate limit or quota is exceeded."""

    pass


class ImageError(TapLensError):
    """Raised when a menu image cannot be read or is invalid."""

    pass
