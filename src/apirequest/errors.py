"""
Custom exceptions raised by the apirequest package.
"""

from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any


class ApiRequestError(Exception):
    """Base exception for all errors raised by ``apirequest``."""


class MissingParametersError(ApiRequestError, ValueError):
    """
    Raised before any request is built when required parameters are absent.

    Attributes:
        missing: Names of the missing parameters, in declaration order.
    """

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__("Missing required parameters: " + ", ".join(self.missing))


class APIError(ApiRequestError):
    """
    Raised when the status validation predicate rejects a response.

    Attributes:
        status_code: HTTP status code returned by the server.
        code: Optional application-level error code from the payload.
        message: Human readable message if provided by the server.
        error: Raw error field from the payload.
        payload: The full parsed JSON payload.
    """

    def __init__(
        self,
        *,
        status_code: int,
        code: int | None = None,
        message: str | None = None,
        error: Any = None,
        payload: Mapping[str, Any] | MutableMapping[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.error = error
        self.payload = payload
        details = message or error or "API request failed"
        super().__init__(f"{status_code}: {details}")


class TransportError(ApiRequestError):
    """Raised when the underlying HTTP transport failed before receiving a response."""
