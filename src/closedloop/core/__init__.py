"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
"""

from closedloop.core.completion_poller import CompletionPoller
from closedloop.core.error_classifier import classify
from closedloop.core.input_assembler import assemble
from closedloop.core.models import (
    Pagination,
    PollOutcome,
    PollState,
    SubmissionPayload,
    TerminalState,
)
from closedloop.core.protocols import ClosedLoopProvider, StatusProvider
from closedloop.core.sanitizer import sanitize
from closedloop.core.submission_service import SubmissionService

__all__: list[str] = [
    "ClosedLoopProvider",
    "CompletionPoller",
    "Pagination",
    "PollOutcome",
    "PollState",
    "StatusProvider",
    "SubmissionPayload",
    "SubmissionService",
    "TerminalState",
    "assemble",
    "classify",
    "sanitize",
]
