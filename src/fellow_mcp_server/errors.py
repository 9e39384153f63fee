"""Error classes and helpers for the Fellow MCP Server.

Defines structured exceptions for configuration, remote API, and sync
failures, and a function to convert exceptions to serializable error
payloads suitable for tool responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, TypedDict


class ErrorPayload(TypedDict, total=False):
    code: str
    message: str
    details: Dict[str, Any]


@dataclass
class AppError(Exception):
    """Base application error with a code and optional details."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorPayload:
        payload: ErrorPayload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class BadRequestError(AppError):
    """Raised when a request is invalid or missing required parameters."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("BAD_REQUEST", message, details)


class ConfigError(AppError):
    """Raised at startup when the API key or subdomain is missing."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("CONFIG_ERROR", message, details)


class FellowApiError(AppError):
    """Raised on any non-2xx response (or transport failure) from Fellow.

    ``status_code`` is 0 when no HTTP response was received at all.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(
            "REMOTE_ERROR",
            f"Fellow API error ({status_code}): {body}",
            {"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class SyncError(AppError):
    """Raised when a sync pass cannot complete, e.g. runaway pagination."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("SYNC_ERROR", message, details)


def to_error_payload(error: Exception) -> ErrorPayload:
    """Convert an exception into a structured error payload.

    Examples:
        >>> payload = to_error_payload(BadRequestError("bad date", {"field": "since"}))
        >>> payload["code"]
        'BAD_REQUEST'
    """

    if isinstance(error, AppError):
        return error.to_payload()
    # Fallback: wrap generic exceptions
    return {"code": "INTERNAL", "message": str(error)}
