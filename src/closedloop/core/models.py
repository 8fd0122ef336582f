"""Domain models for closedloop-cli.

Value objects are **frozen** dataclasses.  The one exception is
:class:`PollState`, which is mutated once per poll attempt and owned
exclusively by the poller call that created it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Submission payload
# ---------------------------------------------------------------------------

OPTIONAL_FIELDS: tuple[str, ...] = (
    "title",
    "source_url",
    "customer_id",
    "reporter_name",
    "reporter_email",
)
"""Wire names of the optional payload fields, in submission order."""


@dataclass(frozen=True, slots=True)
class SubmissionPayload:
    """Validated, sanitized input ready for the submit call.

    Optional fields are ``None`` when the user did not supply them; they
    never hold empty strings.
    """

    content: str
    title: str | None = None
    source_url: str | None = None
    customer_id: str | None = None
    reporter_name: str | None = None
    reporter_email: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Return the wire mapping, omitting absent optional fields."""
        data: dict[str, str] = {"content": self.content}
        for name in OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Pagination:
    """Clamped page/limit pair for list endpoints."""

    page: int
    limit: int


# ---------------------------------------------------------------------------
# Completion tracking
# ---------------------------------------------------------------------------

class TerminalState(str, Enum):
    """Where a tracked submission ended up."""

    SUBMITTED = "submitted"
    """Fire-and-forget: the caller did not ask to wait."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    """Attempt budget exhausted; processing is still running server-side."""

    CANCELLED = "cancelled"
    """Stopped by the user before a terminal status was observed."""


@dataclass(slots=True)
class PollState:
    """Mutable progress record for a single wait-for-completion run."""

    submission_id: str
    started_at: float
    attempt_count: int = 0
    last_observed_status: str | None = None


@dataclass(frozen=True, slots=True)
class PollOutcome:
    """Terminal result of tracking one submission."""

    state: TerminalState
    submission_id: str
    attempts: int = 0
    payload: dict[str, Any] | None = field(default=None, compare=False)
    """Last status record returned by the service, if any."""

    @property
    def is_success(self) -> bool:
        return self.state in (TerminalState.SUBMITTED, TerminalState.COMPLETED)
