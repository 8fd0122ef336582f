"""Tests for the submission service.

All tests mock the :class:`ClosedLoopProvider` — no HTTP requests are
made and no real waiting happens.
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from closedloop.core.completion_poller import CompletionPoller
from closedloop.core.models import SubmissionPayload, TerminalState
from closedloop.core.submission_service import SubmissionService
from closedloop.exceptions import ClosedLoopError, ErrorKind, TransportError
from closedloop.settings import Settings

from conftest import FEEDBACK_ID, INPUT_ID, status_sequence


def _service(provider: MagicMock, settings: Settings) -> SubmissionService:
    poller = CompletionPoller(provider, settings, sleep=lambda _: None)
    return SubmissionService(provider, settings, poller=poller)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class TestSubmit:
    def test_submit_returns_id(self, provider: MagicMock, settings: Settings) -> None:
        service = _service(provider, settings)
        assert service.submit(SubmissionPayload(content="hi", title="t")) == INPUT_ID
        provider.submit.assert_called_once_with({"content": "hi", "title": "t"})

    def test_missing_id_is_api_error(self, provider: MagicMock, settings: Settings) -> None:
        provider.submit.return_value = {"status": "processing"}
        with pytest.raises(ClosedLoopError, match="did not include an id") as exc_info:
            _service(provider, settings).submit(SubmissionPayload(content="hi"))
        assert exc_info.value.kind is ErrorKind.API_ERROR

    def test_transport_failure_is_classified(
        self, provider: MagicMock, settings: Settings,
    ) -> None:
        provider.submit.side_effect = TransportError("nope", status=401)
        with pytest.raises(ClosedLoopError) as exc_info:
            _service(provider, settings).submit(SubmissionPayload(content="hi"))
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
        assert isinstance(exc_info.value.__cause__, TransportError)

    def test_classified_error_propagates_unchanged(
        self, provider: MagicMock, settings: Settings,
    ) -> None:
        original = ClosedLoopError("already", kind=ErrorKind.NO_API_KEY)
        provider.submit.side_effect = original
        with pytest.raises(ClosedLoopError) as exc_info:
            _service(provider, settings).submit(SubmissionPayload(content="hi"))
        assert exc_info.value is original


class TestSubmitAndTrack:
    def test_invalid_input_never_submits(self, provider: MagicMock, settings: Settings) -> None:
        with pytest.raises(ClosedLoopError, match="Content cannot be empty"):
            _service(provider, settings).submit_and_track({"content": "  "})
        provider.submit.assert_not_called()

    def test_fire_and_forget(self, provider: MagicMock, settings: Settings) -> None:
        submitted: list[str] = []
        outcome = _service(provider, settings).submit_and_track(
            {"content": "hi"}, on_submitted=submitted.append,
        )
        assert outcome.state is TerminalState.SUBMITTED
        assert outcome.submission_id == INPUT_ID
        assert submitted == [INPUT_ID]
        provider.get_status.assert_not_called()

    def test_wait_until_completed(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_status.side_effect = status_sequence("processing", "completed")
        attempts: list[int] = []
        outcome = _service(provider, settings).submit_and_track(
            {"content": "hi"},
            wait=True,
            on_attempt=lambda state: attempts.append(state.attempt_count),
        )
        assert outcome.state is TerminalState.COMPLETED
        assert attempts == [1, 2]
        provider.submit.assert_called_once()

    def test_failed_outcome_is_returned(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_status.return_value = {"id": INPUT_ID, "status": "failed"}
        outcome = _service(provider, settings).submit_and_track({"content": "hi"}, wait=True)
        assert outcome.state is TerminalState.FAILED

    def test_timeout_uses_settings_budget(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_status.return_value = {"status": "processing"}
        settings = settings.with_overrides(max_poll_attempts=3)
        outcome = _service(provider, settings).submit_and_track({"content": "hi"}, wait=True)
        assert outcome.state is TerminalState.TIMED_OUT
        assert provider.get_status.call_count == 3
        provider.submit.assert_called_once()

    def test_cancel_event(self, provider: MagicMock, settings: Settings) -> None:
        event = threading.Event()
        event.set()
        service = SubmissionService(provider, settings)
        outcome = service.submit_and_track({"content": "hi"}, wait=True, cancel_event=event)
        assert outcome.state is TerminalState.CANCELLED
        provider.get_status.assert_not_called()


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

class TestLookups:
    def test_get_status(self, provider: MagicMock, settings: Settings) -> None:
        record = _service(provider, settings).get_status(INPUT_ID)
        assert record["status"] == "completed"
        provider.get_status.assert_called_once_with(INPUT_ID)

    @pytest.mark.parametrize("method", ["get_status", "get_input", "watch"])
    def test_input_id_must_be_uuid(
        self, provider: MagicMock, settings: Settings, method: str,
    ) -> None:
        with pytest.raises(ClosedLoopError, match="Invalid input ID format") as exc_info:
            getattr(_service(provider, settings), method)("abc")
        assert exc_info.value.kind is ErrorKind.INVALID_INPUT
        provider.get_status.assert_not_called()
        provider.get_input.assert_not_called()

    def test_feedback_id_must_be_uuid(self, provider: MagicMock, settings: Settings) -> None:
        with pytest.raises(ClosedLoopError, match="Invalid feedback ID format"):
            _service(provider, settings).get_feedback("nope")

    def test_get_feedback(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_feedback.return_value = {"id": FEEDBACK_ID}
        assert _service(provider, settings).get_feedback(FEEDBACK_ID) == {"id": FEEDBACK_ID}

    def test_list_inputs_clamps_pagination(
        self, provider: MagicMock, settings: Settings,
    ) -> None:
        provider.list_inputs.return_value = {"inputs": []}
        _service(provider, settings).list_inputs(0, 1000)
        provider.list_inputs.assert_called_once_with(1, 100)

    def test_list_inputs_defaults(self, provider: MagicMock, settings: Settings) -> None:
        _service(provider, settings).list_inputs()
        provider.list_inputs.assert_called_once_with(1, 20)

    @pytest.mark.parametrize(
        ("search", "expected"),
        [(None, None), ("", None), ("   ", None), ("  export ", "export")],
    )
    def test_list_feedback_search(
        self, provider: MagicMock, settings: Settings, search: str | None, expected: str | None,
    ) -> None:
        _service(provider, settings).list_feedback(2, 10, search)
        provider.list_feedback.assert_called_once_with(2, 10, expected)

    def test_lookup_failure_is_classified(
        self, provider: MagicMock, settings: Settings,
    ) -> None:
        provider.get_input.side_effect = TransportError("gone", status=404)
        with pytest.raises(ClosedLoopError) as exc_info:
            _service(provider, settings).get_input(INPUT_ID)
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_watch_polls(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_status.side_effect = status_sequence("processing", "completed")
        outcome = _service(provider, settings).watch(INPUT_ID)
        assert outcome.state is TerminalState.COMPLETED
        assert outcome.attempts == 2


class TestCheckApiKey:
    def test_accepted(self, provider: MagicMock, settings: Settings) -> None:
        _service(provider, settings).check_api_key()

    def test_rejected(self, provider: MagicMock, settings: Settings) -> None:
        provider.check_api_key.return_value = False
        with pytest.raises(ClosedLoopError, match="Invalid API key") as exc_info:
            _service(provider, settings).check_api_key()
        assert exc_info.value.kind is ErrorKind.INVALID_API_KEY

    def test_connection_failure(self, provider: MagicMock, settings: Settings) -> None:
        provider.check_api_key.side_effect = TransportError("x", code="ECONNREFUSED")
        with pytest.raises(ClosedLoopError) as exc_info:
            _service(provider, settings).check_api_key()
        assert exc_info.value.kind is ErrorKind.CONNECTION_ERROR


class TestTeamWebsite:
    def test_get(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_team_website.return_value = {"website": None, "updated_at": None}
        assert _service(provider, settings).get_team_website() == {
            "website": None, "updated_at": None,
        }

    def test_update_sends_canonical_url(self, provider: MagicMock, settings: Settings) -> None:
        provider.update_team_website.return_value = {"website": "https://acme.io/"}
        _service(provider, settings).update_team_website("  HTTPS://Acme.io ")
        provider.update_team_website.assert_called_once_with("https://acme.io/")

    @pytest.mark.parametrize("value", ["acme.io", "ftp://acme.io", "   "])
    def test_invalid_url_never_reaches_provider(
        self, provider: MagicMock, settings: Settings, value: str,
    ) -> None:
        with pytest.raises(ClosedLoopError) as exc_info:
            _service(provider, settings).update_team_website(value)
        assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR
        provider.update_team_website.assert_not_called()

    def test_failure_is_classified(self, provider: MagicMock, settings: Settings) -> None:
        provider.get_team_website.side_effect = TransportError("nope", status=401)
        with pytest.raises(ClosedLoopError) as exc_info:
            _service(provider, settings).get_team_website()
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
