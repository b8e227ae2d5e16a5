"""
Error types raised while fetching and exposing Nextcloud server info.
"""
from typing import Optional


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ExporterError):
    """Invalid or incomplete exporter configuration."""


class TransportError(ExporterError):
    """Network level failure (DNS, connect, TLS, timeout)."""


class AuthorizationError(ExporterError):
    """The server rejected the configured credentials (HTTP 401)."""

    def __init__(self, message: str = "wrong credentials"):
        super().__init__(message)


class RateLimitError(ExporterError):
    """The server asked us to slow down (HTTP 429)."""

    def __init__(self, message: str = "too many requests"):
        super().__init__(message)


class UnexpectedStatusError(ExporterError):
    """Any other non-200 response."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"unexpected status code: {status_code}")


class ParseError(ExporterError):
    """The response body is not a valid server info document."""


class MappingError(ExporterError):
    """A metric sample could not be built from the server info."""
