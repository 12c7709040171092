"""
Error types shared by the conversational proxy, the relays and the routes.

Every error carries the HTTP status the API layer should answer with, so a
single exception handler can render the `{"error": ...}` envelope.
"""

from typing import Optional


class ProxyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ConfigurationError(ProxyError):
    """
    Raised when a required secret or service is not configured.

    The message names the missing environment variable so operators can
    tell it apart from a failing provider.
    """

    status_code = 500

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"Configuration Error: {variable} is missing.")


class ValidationError(ProxyError):
    """Raised when a required input field is missing or malformed."""

    status_code = 400


class UpstreamError(ProxyError):
    """
    Raised when a provider answers with a non-success status or a payload
    that cannot be read. `status_code` mirrors the provider's status; 502
    is used when no response was received at all.
    """

    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, status_code=status_code)


class GenerationFailed(ProxyError):
    """Raised when the provider succeeded but produced nothing usable."""

    status_code = 422
