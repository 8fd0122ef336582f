"""Error taxonomy for closedloop-cli.

Every user-visible failure is represented by exactly one
:class:`ClosedLoopError` before it reaches the CLI error boundary.  The
error carries an :class:`ErrorKind` from a closed set, a message, and
the process exit code to use.

Raw third-party exceptions (e.g. from ``requests``) must NEVER
propagate beyond the infrastructure layer — they are re-raised as
:class:`TransportError`, an *unclassified* failure signal, and turned
into a :class:`ClosedLoopError` by
:func:`~closedloop.core.error_classifier.classify`.

Hierarchy
---------
ClosedLoopError           (kind, message, exit_code, hint)
TransportError            (status, body, code), pre-classification signal
MissingDependencyError    (ClosedLoopError subclass, missing UI or HTTP library)
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of error categories with stable string codes."""

    NO_API_KEY = "NO_API_KEY"
    INVALID_API_KEY = "INVALID_API_KEY"
    INVALID_INPUT = "INVALID_INPUT"
    API_ERROR = "API_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"


class ClosedLoopError(Exception):
    """Base exception for all classified closedloop-cli errors.

    The CLI error boundary renders :attr:`message` (and :attr:`hint` when
    present) and exits with :attr:`exit_code`.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        exit_code: int = 1,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.kind: ErrorKind = kind
        self.exit_code: int = exit_code
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""

    @property
    def code(self) -> str:
        """Stable string code, e.g. ``"UNAUTHORIZED"``."""
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        """Machine-readable form used by ``--json`` output."""
        return {"success": False, "error": self.message, "code": self.code}


class MissingDependencyError(ClosedLoopError):
    """Raised when a required runtime dependency is not available."""


class TransportError(Exception):
    """Unclassified failure signal raised by the HTTP transport.

    Parameters
    ----------
    message:
        Human-readable description from the transport.
    status:
        HTTP status code when the server answered, else ``None``.
    body:
        Decoded JSON body of the error response, if any.
    code:
        Errno-style name for network failures (``"ECONNREFUSED"``,
        ``"ENOTFOUND"``, ``"ETIMEDOUT"``), else ``None``.
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: int | None = None,
        body: dict[str, Any] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status: int | None = status
        self.body: dict[str, Any] | None = body
        self.code: str | None = code


# --- Direct constructors ---------------------------------------------------

def validation_error(message: str) -> ClosedLoopError:
    """Build a :data:`ErrorKind.VALIDATION_ERROR` outcome."""
    return ClosedLoopError(message, kind=ErrorKind.VALIDATION_ERROR)


def input_error(message: str) -> ClosedLoopError:
    """Build an :data:`ErrorKind.INVALID_INPUT` outcome."""
    return ClosedLoopError(message, kind=ErrorKind.INVALID_INPUT)


def processing_error(message: str) -> ClosedLoopError:
    """Build a :data:`ErrorKind.PROCESSING_ERROR` outcome."""
    return ClosedLoopError(message, kind=ErrorKind.PROCESSING_ERROR)


def no_api_key_error() -> ClosedLoopError:
    """Build the :data:`ErrorKind.NO_API_KEY` outcome with setup guidance."""
    return ClosedLoopError(
        "No API key configured.",
        kind=ErrorKind.NO_API_KEY,
        hint="\n".join(
            (
                "Get your free API key at https://closedloop.sh, then either:",
                "    export CLOSEDLOOP_API_KEY=<your-key>",
                "    cl --api-key <your-key> <command>",
            )
        ),
    )
