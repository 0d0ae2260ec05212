"""Library exceptions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import AADEError


class AADEClientError(Exception):
    """Base exception for the library."""


class ConfigError(AADEClientError):
    """Raised when required configuration or credentials are missing."""


class ValidationError(AADEClientError):
    """Raised when inputs fail validation."""


class ProtocolError(AADEClientError):
    """Raised when a response does not match the expected wire format."""


class DomainError(AADEClientError):
    """Raised when AADE answers with a non-success status code."""

    def __init__(
        self,
        message: str,
        *,
        status_code: str | None = None,
        errors: Sequence[AADEError] = (),
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = list(errors)


class TransportError(AADEClientError):
    """Raised when an HTTP request fails or returns a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason


class AuthError(TransportError):
    """Raised when AADE rejects the credentials."""


class NetworkError(TransportError):
    """Raised when network communication fails."""
