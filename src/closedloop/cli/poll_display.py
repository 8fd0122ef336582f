"""Rich spinner driven by completion-poller attempts.

This module bridges the poller's ``on_attempt`` callback with a Rich
:class:`~rich.progress.Progress` display.  The core layer only hands
over the live :class:`~closedloop.core.models.PollState`.

Design
------
* :class:`RichPollHook` manages a Rich Progress context.
* :meth:`__call__` is the callback passed to the poller.
* Shutdown-safe: calls after :meth:`stop` are silently ignored.
"""

from __future__ import annotations

from typing import Any

from closedloop.cli.console import get_rich_console
from closedloop.core.models import PollState
from closedloop.exceptions import MissingDependencyError


class RichPollHook:
    """Callable poll-attempt adapter for Rich.

    Usage::

        with RichPollHook(max_attempts=100) as hook:
            service.submit_and_track(fields, wait=True, on_attempt=hook)
    """

    def __init__(self, max_attempts: int) -> None:
        try:
            from rich.progress import (
                BarColumn,
                MofNCompleteColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeElapsedColumn,
            )
        except ModuleNotFoundError as exc:
            raise MissingDependencyError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=get_rich_console(),
            transient=True,
        )
        self._max_attempts: int = max_attempts
        self._task_id: Any = None
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichPollHook:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._task_id = self._progress.add_task(
                "Processing...",
                total=self._max_attempts,
            )
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Hook callback
    # ------------------------------------------------------------------

    def __call__(self, state: PollState) -> None:
        """Poller ``on_attempt`` callback."""
        if not self._started:
            return

        self._progress.update(
            self._task_id,
            completed=state.attempt_count,
            description=describe_attempt(state),
        )


def describe_attempt(state: PollState) -> str:
    """Return the spinner label for the latest attempt."""
    if state.last_observed_status:
        return f"Processing... ({state.last_observed_status})"
    return "Processing... (checking status)"
