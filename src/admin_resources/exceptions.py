"""Error taxonomy for resource reads and writes.

Every failure that reaches a caller of the query or mutation executors is a
``ResourceError``. ``classify_error`` normalises whatever the transport raised
(our own errors, httpx errors, plain network errors) into that tree so the
retry policy only has to ask one question: ``is_retryable``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import httpx


class ResourceError(Exception):
    """Terminal failure talking to the backend."""

    def __init__(
        self,
        message: str = "Request failed",
        *,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code!r})"


class ClientError(ResourceError):
    """4xx family; the request itself is wrong and retrying cannot help."""


class ValidationError(ClientError):
    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field_errors: Optional[Dict[str, List[str]]] = None,
        status_code: Optional[int] = 422,
        body: Any = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body=body)
        self.field_errors: Dict[str, List[str]] = dict(field_errors or {})


class NotFoundError(ClientError):
    def __init__(self, message: str = "Not found", *, status_code: Optional[int] = 404, body: Any = None):
        super().__init__(message, status_code=status_code, body=body)


class PermissionDeniedError(ClientError):
    pass


class TransientError(ResourceError):
    """5xx, throttling or network failure; safe to retry."""


class ConfigurationError(ResourceError):
    """Misuse of the library (e.g. restore on an entity without restore support)."""


_TRANSIENT_STATUSES = {408, 425, 429}


def _message_from_body(body: Any, default: str) -> str:
    if isinstance(body, dict):
        msg = body.get("message") or body.get("detail") or body.get("error")
        if isinstance(msg, str) and msg:
            return msg
    return default


def _field_errors_from_body(body: Any) -> Dict[str, List[str]]:
    if not isinstance(body, dict):
        return {}
    errors = body.get("errors")
    if not isinstance(errors, dict):
        return {}
    out: Dict[str, List[str]] = {}
    for field, value in errors.items():
        if isinstance(value, (list, tuple)):
            out[str(field)] = [str(v) for v in value]
        else:
            out[str(field)] = [str(value)]
    return out


def error_for_status(status_code: int, body: Any = None, *, reason: str = "") -> ResourceError:
    """Build the ``ResourceError`` subclass matching an HTTP status."""
    message = _message_from_body(body, reason or f"HTTP {status_code}")
    if status_code == 404:
        return NotFoundError(message, status_code=status_code, body=body)
    if status_code in (400, 422):
        return ValidationError(
            message,
            field_errors=_field_errors_from_body(body),
            status_code=status_code,
            body=body,
        )
    if status_code in (401, 403):
        return PermissionDeniedError(message, status_code=status_code, body=body)
    if status_code >= 500 or status_code in _TRANSIENT_STATUSES:
        return TransientError(message, status_code=status_code, body=body)
    if 400 <= status_code < 500:
        return ClientError(message, status_code=status_code, body=body)
    return ResourceError(message, status_code=status_code, body=body)


def classify_error(exc: BaseException) -> ResourceError:
    """Map any exception raised by a transport onto the taxonomy."""
    if isinstance(exc, ResourceError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        try:
            body = response.json()
        except ValueError:
            body = None
        return error_for_status(response.status_code, body, reason=response.reason_phrase)
    if isinstance(exc, (httpx.TransportError, asyncio.TimeoutError, ConnectionError, OSError)):
        return TransientError(str(exc) or type(exc).__name__)
    return ResourceError(str(exc) or type(exc).__name__)


def is_retryable(exc: BaseException) -> bool:
    return isinstance(classify_error(exc), TransientError)


__all__ = [
    "ResourceError",
    "ClientError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "TransientError",
    "ConfigurationError",
    "classify_error",
    "error_for_status",
    "is_retryable",
]
