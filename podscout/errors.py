"""Exception hierarchy shared by the scraper components."""

from __future__ import annotations


class ScraperError(RuntimeError):
    """Base error for anything that should skip the current work item."""


class ValidationError(ScraperError, ValueError):
    """Raised for malformed input or configuration, never retried."""


class InvalidIdentifierError(ValidationError):
    """Raised when a value cannot be turned into a Spotify identifier."""


class MissingCredentialsError(ValidationError):
    """Raised at startup when the auth headers are not configured."""


class UpstreamError(ScraperError):
    """Raised when the GraphQL response carries an ``errors`` array."""


class AuthError(UpstreamError):
    """Spotify rejected the supplied bearer or client token."""


class GenericError(UpstreamError):
    """Any other upstream-reported GraphQL error."""


class TransportError(ScraperError):
    """Raised when a request fails at the HTTP level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class RelayError(TransportError):
    """Raised when the relay reply does not wrap a usable upstream body."""
