"""Classification of call failures into retryable and permanent."""

from __future__ import annotations

import requests

from bulkrecords.models.errors import (
    RECORD_NOT_FOUND,
    RECORD_NOT_FOUND_CODE,
    OperationCancelledError,
    RecordValidationError,
    RetryExhaustedError,
)

# Matched case-insensitively against the error message.
_TRANSIENT_MARKERS: tuple[str, ...] = (
    "timeout",
    "connection",
    "network",
    "throttle",
    "rate limit",
    "service unavailable",
    "503",
    "502",
    "429",
)

_TRANSIENT_HTTP_MARKERS: tuple[str, ...] = ("502", "503", "504", "429")
_TRANSIENT_HTTP_STATUS: frozenset[int] = frozenset({429, 502, 503, 504})

_NEVER_TRANSIENT: tuple[type[BaseException], ...] = (
    RecordValidationError,
    OperationCancelledError,
    RetryExhaustedError,
    ValueError,
    TypeError,
    KeyError,
)

_NOT_FOUND_CODES: frozenset[str] = frozenset({RECORD_NOT_FOUND, str(RECORD_NOT_FOUND_CODE)})


def _is_not_found(error: BaseException) -> bool:
    code = getattr(error, "error_code", None)
    return code is not None and str(code) in _NOT_FOUND_CODES


def _is_transient_http(error: requests.exceptions.RequestException) -> bool:
    message = str(error).lower()
    if any(marker in message for marker in _TRANSIENT_HTTP_MARKERS):
        return True
    response = getattr(error, "response", None)
    status_code = getattr(response, "status_code", None)
    return status_code in _TRANSIENT_HTTP_STATUS


def is_transient(error: BaseException | None) -> bool:
    """Return True when ``error`` is expected to succeed on retry.

    Timeouts, connection and network failures, throttling and
    502/503/504/429 responses are transient. Argument errors, validation
    errors and not-found errors never are.
    """
    if error is None:
        return False
    if isinstance(error, _NEVER_TRANSIENT) or _is_not_found(error):
        return False

    if isinstance(error, (TimeoutError, ConnectionError, requests.exceptions.Timeout)):
        return True
    if isinstance(error, requests.exceptions.ConnectionError):
        return True

    message = str(error).lower()
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return True

    if isinstance(error, requests.exceptions.RequestException):
        return _is_transient_http(error)
    return False
