"""Map any failure signal onto the closed :class:`ErrorKind` taxonomy.

:func:`classify` is total and never raises: transport errors, protocol
errors, library exceptions and arbitrary objects all come out as exactly
one :class:`~closedloop.exceptions.ClosedLoopError`.

Decision order
--------------
1. Already classified → returned unchanged.
2. HTTP-like status (401, 404, 429, 5xx, anything else).
3. Connection refused / host not found.
4. Timeout.
5. Anything else → ``UNKNOWN`` with the signal's own message.
"""

from __future__ import annotations

import errno
import socket
from typing import Any

from closedloop.exceptions import ClosedLoopError, ErrorKind

_SERVER_ERROR_STATUSES: frozenset[int] = frozenset({500, 502, 503, 504})
_CONNECTION_CODES: frozenset[str] = frozenset({"ECONNREFUSED", "ENOTFOUND"})
_TIMEOUT_CODES: frozenset[str] = frozenset({"ETIMEDOUT"})

_STATUS_OUTCOMES: dict[int, tuple[ErrorKind, str]] = {
    401: (ErrorKind.UNAUTHORIZED, "Invalid API key. Please check your configuration."),
    404: (ErrorKind.NOT_FOUND, "Resource not found. Please check the ID and try again."),
    429: (
        ErrorKind.RATE_LIMITED,
        "Rate limit exceeded. Please wait a moment and try again.",
    ),
}

CONNECTION_MESSAGE = (
    "Cannot connect to ClosedLoop servers. Please check your internet connection."
)
TIMEOUT_MESSAGE = "Request timed out. Please try again."
UNKNOWN_MESSAGE = "An unknown error occurred"


# ---------------------------------------------------------------------------
# Signal inspection (duck-typed, no transport library imports)
# ---------------------------------------------------------------------------

def _as_status(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _extract_status(signal: object) -> int | None:
    """Read an HTTP-like status from the signal or its ``response``."""
    status = _as_status(getattr(signal, "status", None))
    if status is not None:
        return status
    response = getattr(signal, "response", None)
    if response is None:
        return None
    for attr in ("status_code", "status"):
        status = _as_status(getattr(response, attr, None))
        if status is not None:
            return status
    return None


def _extract_body(signal: object) -> dict[str, Any] | None:
    body = getattr(signal, "body", None)
    if isinstance(body, dict):
        return body
    response = getattr(signal, "response", None)
    json_method = getattr(response, "json", None)
    if callable(json_method):
        try:
            decoded = json_method()
        except Exception:  # noqa: BLE001
            return None
        if isinstance(decoded, dict):
            return decoded
    return None


def _server_message(body: dict[str, Any] | None) -> str | None:
    if not body:
        return None
    for key in ("message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _code_of(signal: object) -> str | None:
    code = getattr(signal, "code", None)
    return code.upper() if isinstance(code, str) else None


def _is_connection_failure(signal: object) -> bool:
    if _code_of(signal) in _CONNECTION_CODES:
        return True
    if isinstance(signal, (ConnectionRefusedError, socket.gaierror)):
        return True
    return getattr(signal, "errno", None) == errno.ECONNREFUSED


def _is_timeout(signal: object) -> bool:
    if _code_of(signal) in _TIMEOUT_CODES:
        return True
    if isinstance(signal, (TimeoutError, socket.timeout)):
        return True
    return getattr(signal, "errno", None) == errno.ETIMEDOUT


def _message_of(signal: object) -> str | None:
    if isinstance(signal, BaseException):
        text = str(signal)
    elif isinstance(signal, str):
        text = signal
    else:
        text = getattr(signal, "message", None) or ""
        if not isinstance(text, str):
            text = str(text)
    return text if text.strip() else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify(signal: object) -> ClosedLoopError:
    """Return the :class:`ClosedLoopError` that represents *signal*.

    Never raises: a signal whose attributes cannot even be inspected is
    reported as ``UNKNOWN``.
    """
    try:
        return _classify(signal)
    except Exception:  # noqa: BLE001
        return ClosedLoopError(UNKNOWN_MESSAGE, kind=ErrorKind.UNKNOWN)


def _classify(signal: object) -> ClosedLoopError:
    if isinstance(signal, ClosedLoopError):
        return signal

    status = _extract_status(signal)
    if status is not None:
        if status in _STATUS_OUTCOMES:
            kind, message = _STATUS_OUTCOMES[status]
            return ClosedLoopError(message, kind=kind)
        if status in _SERVER_ERROR_STATUSES:
            return ClosedLoopError(
                "Server error. Please try again later.",
                kind=ErrorKind.SERVER_ERROR,
            )
        message = _server_message(_extract_body(signal)) or f"API error ({status})"
        return ClosedLoopError(message, kind=ErrorKind.API_ERROR)

    if _is_connection_failure(signal):
        return ClosedLoopError(CONNECTION_MESSAGE, kind=ErrorKind.CONNECTION_ERROR)

    if _is_timeout(signal):
        return ClosedLoopError(TIMEOUT_MESSAGE, kind=ErrorKind.CONNECTION_ERROR)

    return ClosedLoopError(
        _message_of(signal) or UNKNOWN_MESSAGE,
        kind=ErrorKind.UNKNOWN,
    )
