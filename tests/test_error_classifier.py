"""Tests for the failure-signal classifier.

Signals are built from plain exceptions and :class:`TransportError`;
requests is not needed because the classifier is duck-typed.
"""

from __future__ import annotations

import errno
import socket
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from closedloop.core.error_classifier import (
    CONNECTION_MESSAGE,
    TIMEOUT_MESSAGE,
    UNKNOWN_MESSAGE,
    classify,
)
from closedloop.exceptions import ClosedLoopError, ErrorKind, TransportError


class _HttpLikeError(Exception):
    """Mimics a library error carrying a ``response`` object."""

    def __init__(self, response: Any) -> None:
        super().__init__("http error")
        self.response = response


# ---------------------------------------------------------------------------
# Status mapping
# ---------------------------------------------------------------------------

class TestStatusMapping:
    @pytest.mark.parametrize(
        ("status", "kind", "fragment"),
        [
            (401, ErrorKind.UNAUTHORIZED, "Invalid API key"),
            (404, ErrorKind.NOT_FOUND, "Resource not found"),
            (429, ErrorKind.RATE_LIMITED, "Rate limit exceeded"),
            (500, ErrorKind.SERVER_ERROR, "Server error"),
            (502, ErrorKind.SERVER_ERROR, "Server error"),
            (503, ErrorKind.SERVER_ERROR, "Server error"),
            (504, ErrorKind.SERVER_ERROR, "Server error"),
        ],
    )
    def test_known_statuses(self, status: int, kind: ErrorKind, fragment: str) -> None:
        err = classify(TransportError("x", status=status))
        assert err.kind is kind
        assert fragment in err.message

    def test_other_status_uses_server_message(self) -> None:
        err = classify(TransportError("x", status=422, body={"message": "Content is required"}))
        assert err.kind is ErrorKind.API_ERROR
        assert err.message == "Content is required"

    def test_other_status_uses_error_field(self) -> None:
        err = classify(TransportError("x", status=400, body={"error": "Bad payload"}))
        assert err.message == "Bad payload"

    def test_other_status_without_body(self) -> None:
        err = classify(TransportError("x", status=418))
        assert err.kind is ErrorKind.API_ERROR
        assert err.message == "API error (418)"

    def test_status_read_from_response(self) -> None:
        response = MagicMock(status_code=404)
        assert classify(_HttpLikeError(response)).kind is ErrorKind.NOT_FOUND

    def test_body_read_from_response_json(self) -> None:
        response = MagicMock(status_code=409)
        response.json.return_value = {"message": "Duplicate input"}
        assert classify(_HttpLikeError(response)).message == "Duplicate input"

    def test_response_json_failure_is_tolerated(self) -> None:
        response = MagicMock(status_code=409)
        response.json.side_effect = ValueError("not json")
        assert classify(_HttpLikeError(response)).message == "API error (409)"

    def test_bool_status_is_not_a_status(self) -> None:
        err = classify(SimpleNamespace(status=True, message="odd"))
        assert err.kind is ErrorKind.UNKNOWN


# ---------------------------------------------------------------------------
# Network failures
# ---------------------------------------------------------------------------

class TestNetworkFailures:
    @pytest.mark.parametrize("code", ["ECONNREFUSED", "ENOTFOUND", "econnrefused"])
    def test_connection_codes(self, code: str) -> None:
        err = classify(TransportError("down", code=code))
        assert err.kind is ErrorKind.CONNECTION_ERROR
        assert err.message == CONNECTION_MESSAGE

    @pytest.mark.parametrize(
        "signal",
        [
            ConnectionRefusedError(errno.ECONNREFUSED, "refused"),
            socket.gaierror(-2, "Name or service not known"),
            OSError(errno.ECONNREFUSED, "refused"),
        ],
    )
    def test_os_connection_errors(self, signal: Exception) -> None:
        assert classify(signal).message == CONNECTION_MESSAGE

    @pytest.mark.parametrize(
        "signal",
        [
            TransportError("slow", code="ETIMEDOUT"),
            TimeoutError("slow"),
            socket.timeout("slow"),
            OSError(errno.ETIMEDOUT, "slow"),
        ],
    )
    def test_timeouts(self, signal: Exception) -> None:
        err = classify(signal)
        assert err.kind is ErrorKind.CONNECTION_ERROR
        assert err.message == TIMEOUT_MESSAGE

    def test_status_wins_over_code(self) -> None:
        err = classify(TransportError("x", status=401, code="ECONNREFUSED"))
        assert err.kind is ErrorKind.UNAUTHORIZED


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------

class TestFallbacks:
    def test_classified_error_unchanged(self) -> None:
        original = ClosedLoopError("keep me", kind=ErrorKind.NO_API_KEY)
        assert classify(original) is original

    def test_plain_exception_message(self) -> None:
        err = classify(RuntimeError("weird"))
        assert err.kind is ErrorKind.UNKNOWN
        assert err.message == "weird"

    @pytest.mark.parametrize("signal", [None, 42, object(), RuntimeError(""), "   "])
    def test_opaque_signals(self, signal: object) -> None:
        err = classify(signal)
        assert err.kind is ErrorKind.UNKNOWN
        assert err.message == UNKNOWN_MESSAGE

    def test_string_signal(self) -> None:
        assert classify("socket hang up").message == "socket hang up"

    def test_never_raises_on_hostile_signal(self) -> None:
        class Hostile:
            def __getattr__(self, name: str) -> Any:
                raise RuntimeError("no attributes for you")

        err = classify(Hostile())
        assert isinstance(err, ClosedLoopError)
        assert err.kind is ErrorKind.UNKNOWN
