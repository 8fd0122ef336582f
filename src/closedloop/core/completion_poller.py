"""Fixed-interval completion tracking for a single submission.

State machine
-------------
``Submitted → Polling → Completed | Failed | TimedOut | Cancelled``

Each attempt is *wait, then query*: the status is never looked up
before the interval has elapsed.  The wait is the only suspension point
and can be cut short by a :class:`threading.Event` or by
``KeyboardInterrupt``; either ends the run as ``CANCELLED``, which is
not an error.

Guarantees
----------
* No I/O of its own — status comes from an injected
  :class:`~closedloop.core.protocols.StatusProvider`.
* One outstanding lookup at a time; :class:`PollState` is never shared.
* A failing lookup counts as a non-terminal attempt and is not raised.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from closedloop.core.models import PollOutcome, PollState, TerminalState
from closedloop.core.protocols import StatusProvider
from closedloop.settings import DEFAULT_SETTINGS, Settings

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


class CompletionPoller:
    """Poll a :class:`StatusProvider` until a submission settles.

    Parameters
    ----------
    provider:
        Source of status records.
    settings:
        Supplies the default attempt budget and interval.
    sleep:
        Blocking wait used when no *cancel_event* is given.  Injected so
        tests can run without real delays.
    clock:
        Monotonic clock used for :attr:`PollState.started_at`.
    """

    def __init__(
        self,
        provider: StatusProvider,
        settings: Settings = DEFAULT_SETTINGS,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider: StatusProvider = provider
        self._settings: Settings = settings
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def wait_for_completion(
        self,
        submission_id: str,
        *,
        max_attempts: int | None = None,
        interval: float | None = None,
        on_attempt: Callable[[PollState], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PollOutcome:
        """Track *submission_id* until it completes, fails or runs out of attempts.

        Parameters
        ----------
        submission_id:
            Identifier returned by the submit call.
        max_attempts:
            Status lookups to perform before giving up
            (default :attr:`Settings.max_poll_attempts`).
        interval:
            Seconds to wait before each lookup
            (default :attr:`Settings.poll_interval`).
        on_attempt:
            Called with the live :class:`PollState` after every lookup.
        cancel_event:
            When set, the pending wait ends and the run is ``CANCELLED``.

        Returns
        -------
        PollOutcome
            ``COMPLETED`` or ``FAILED`` with the final status record,
            ``TIMED_OUT`` after the budget is spent, or ``CANCELLED``.
        """
        budget = self._settings.max_poll_attempts if max_attempts is None else max_attempts
        delay = self._settings.poll_interval if interval is None else interval
        state = PollState(submission_id=submission_id, started_at=self._clock())
        last_record: dict[str, Any] | None = None

        try:
            while state.attempt_count < budget:
                if self._wait(delay, cancel_event):
                    return self._finish(TerminalState.CANCELLED, state, last_record)

                record = self._lookup(submission_id)
                state.attempt_count += 1

                if record is not None:
                    last_record = record
                    state.last_observed_status = str(record.get("status", ""))

                if on_attempt is not None:
                    on_attempt(state)

                if state.last_observed_status == STATUS_COMPLETED:
                    return self._finish(TerminalState.COMPLETED, state, last_record)
                if state.last_observed_status == STATUS_FAILED:
                    return self._finish(TerminalState.FAILED, state, last_record)
        except KeyboardInterrupt:
            return self._finish(TerminalState.CANCELLED, state, last_record)

        return self._finish(TerminalState.TIMED_OUT, state, last_record)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _wait(self, delay: float, cancel_event: threading.Event | None) -> bool:
        """Suspend for *delay* seconds; return ``True`` if cancelled."""
        if cancel_event is None:
            self._sleep(delay)
            return False
        return cancel_event.wait(delay)

    def _lookup(self, submission_id: str) -> dict[str, Any] | None:
        """Query the provider, treating any failure as "no news yet"."""
        try:
            record = self._provider.get_status(submission_id)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Status lookup for %s failed: %s", submission_id, exc)
            return None
        if not isinstance(record, dict):
            logger.debug("Ignoring malformed status record for %s", submission_id)
            return None
        return record

    def _finish(
        self,
        terminal: TerminalState,
        state: PollState,
        record: dict[str, Any] | None,
    ) -> PollOutcome:
        logger.debug(
            "Submission %s finished as %s after %d attempt(s) in %.1fs",
            state.submission_id,
            terminal.value,
            state.attempt_count,
            self._clock() - state.started_at,
        )
        return PollOutcome(
            state=terminal,
            submission_id=state.submission_id,
            attempts=state.attempt_count,
            payload=record,
        )
