"""Core submission service — validation, submit and completion tracking.

This is the central service class consumed by the CLI layer.  It
depends on a :class:`~closedloop.core.protocols.ClosedLoopProvider`
injected at construction time, keeping the core free of any transport
imports.

Guarantees
----------
* Only :class:`~closedloop.exceptions.ClosedLoopError` escapes: every
  provider failure goes through
  :func:`~closedloop.core.error_classifier.classify`.
* Input is assembled (validated + sanitized) before any request is made.
* The submit call is made exactly once; only status lookups repeat.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from closedloop.core.completion_poller import CompletionPoller
from closedloop.core.error_classifier import classify
from closedloop.core.input_assembler import assemble
from closedloop.core.models import PollOutcome, PollState, SubmissionPayload, TerminalState
from closedloop.core.protocols import ClosedLoopProvider
from closedloop.core.validation import is_valid_uuid, validate_pagination, validate_url
from closedloop.exceptions import ClosedLoopError, ErrorKind, input_error
from closedloop.settings import DEFAULT_SETTINGS, Settings

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class SubmissionService:
    """Stateless facade over a :class:`ClosedLoopProvider`.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`ClosedLoopProvider` protocol.
    settings:
        Bounds for validation and polling.
    poller:
        Optional pre-built :class:`CompletionPoller` (tests inject one
        with a fake ``sleep``).
    """

    def __init__(
        self,
        provider: ClosedLoopProvider,
        settings: Settings = DEFAULT_SETTINGS,
        *,
        poller: CompletionPoller | None = None,
    ) -> None:
        self._provider: ClosedLoopProvider = provider
        self._settings: Settings = settings
        self._poller: CompletionPoller = poller or CompletionPoller(provider, settings)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def prepare(self, raw_fields: Mapping[str, str | None]) -> SubmissionPayload:
        """Validate and sanitize *raw_fields* without contacting the service."""
        return assemble(raw_fields, self._settings)

    def submit(self, payload: SubmissionPayload) -> str:
        """Submit *payload* once and return the new submission id.

        Raises
        ------
        ClosedLoopError
            The classified submit failure, or ``API_ERROR`` when the
            response carries no id.
        """
        record = self._call(self._provider.submit, payload.to_dict())
        submission_id = record.get("id") if isinstance(record, dict) else None
        if not submission_id:
            raise ClosedLoopError(
                "Submission response did not include an id.",
                kind=ErrorKind.API_ERROR,
            )
        logger.debug("Submitted input %s", submission_id)
        return str(submission_id)

    def submit_and_track(
        self,
        raw_fields: Mapping[str, str | None],
        *,
        wait: bool = False,
        on_submitted: Callable[[str], None] | None = None,
        on_attempt: Callable[[PollState], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PollOutcome:
        """Assemble, submit and optionally wait for processing to settle.

        Without *wait* the outcome is ``SUBMITTED`` immediately.  With it,
        the :class:`CompletionPoller` runs with the configured budget.

        Raises
        ------
        ClosedLoopError
            When assembly or the submit call fails.  Poll outcomes
            (including ``FAILED``) are returned, not raised.
        """
        payload = self.prepare(raw_fields)
        submission_id = self.submit(payload)
        if on_submitted is not None:
            on_submitted(submission_id)

        if not wait:
            return PollOutcome(state=TerminalState.SUBMITTED, submission_id=submission_id)

        return self._poller.wait_for_completion(
            submission_id,
            on_attempt=on_attempt,
            cancel_event=cancel_event,
        )

    def watch(
        self,
        submission_id: str,
        *,
        on_attempt: Callable[[PollState], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PollOutcome:
        """Track an existing submission until it settles."""
        self._require_uuid(submission_id, "input")
        return self._poller.wait_for_completion(
            submission_id,
            on_attempt=on_attempt,
            cancel_event=cancel_event,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_status(self, submission_id: str) -> dict[str, Any]:
        self._require_uuid(submission_id, "input")
        return self._call(self._provider.get_status, submission_id)

    def get_input(self, input_id: str) -> dict[str, Any]:
        self._require_uuid(input_id, "input")
        return self._call(self._provider.get_input, input_id)

    def list_inputs(
        self,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        pagination = validate_pagination(page, limit, self._settings)
        return self._call(self._provider.list_inputs, pagination.page, pagination.limit)

    def get_feedback(self, feedback_id: str) -> dict[str, Any]:
        self._require_uuid(feedback_id, "feedback")
        return self._call(self._provider.get_feedback, feedback_id)

    def list_feedback(
        self,
        page: int | None = None,
        limit: int | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        pagination = validate_pagination(page, limit, self._settings)
        query = search.strip() if search and search.strip() else None
        return self._call(
            self._provider.list_feedback,
            pagination.page,
            pagination.limit,
            query,
        )

    # ------------------------------------------------------------------
    # Team settings
    # ------------------------------------------------------------------

    def get_team_website(self) -> dict[str, Any]:
        return self._call(self._provider.get_team_website)

    def update_team_website(self, raw_website: str | None) -> dict[str, Any]:
        """Validate *raw_website* and store its canonical form for the team."""
        website = validate_url(raw_website)
        return self._call(self._provider.update_team_website, website)

    def check_api_key(self) -> None:
        """Raise ``INVALID_API_KEY`` when the service rejects the key."""
        if not self._call(self._provider.check_api_key):
            raise ClosedLoopError(
                "Invalid API key.",
                kind=ErrorKind.INVALID_API_KEY,
                hint="Get your free API key at https://closedloop.sh",
            )

    # ------------------------------------------------------------------
    # Provider delegation (safe boundary)
    # ------------------------------------------------------------------

    @staticmethod
    def _require_uuid(value: str, label: str) -> None:
        if not is_valid_uuid(value):
            err = input_error(f"Invalid {label} ID format: {value}")
            err.hint = "IDs look like 2ea8f556-052b-4f5c-bf86-833780b3d00d"
            raise err

    @staticmethod
    def _call(method: Callable[..., _T], *args: Any) -> _T:
        """Call the provider and ensure only our exceptions escape."""
        try:
            return method(*args)
        except ClosedLoopError:
            # Already classified; propagate unchanged.
            raise
        except Exception as exc:
            raise classify(exc) from exc
