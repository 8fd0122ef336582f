"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from typing import Any, Protocol


class StatusProvider(Protocol):
    """Contract for anything that can report a submission's status.

    This is all the :class:`~closedloop.core.completion_poller.CompletionPoller`
    needs, so tests can drive the poller with a tiny fake.
    """

    def get_status(self, submission_id: str) -> dict[str, Any]:
        """Return the current status record for *submission_id*.

        The returned dict must contain at least a ``"status"`` key
        (``"processing"``, ``"completed"``, ``"failed"``, ...).
        """
        ...  # pragma: no cover


class ClosedLoopProvider(StatusProvider, Protocol):
    """Contract for ClosedLoop API backends.

    Implementations return the ``data`` member of the service's response
    envelope and raise :class:`~closedloop.exceptions.TransportError` (or
    any other exception) on failure; the core layer classifies whatever
    escapes.
    """

    def submit(self, payload: dict[str, str]) -> dict[str, Any]:
        """Submit *payload* and return a record containing at least ``"id"``."""
        ...  # pragma: no cover

    def list_inputs(self, page: int, limit: int) -> dict[str, Any]:
        """Return one page of submitted inputs plus pagination info."""
        ...  # pragma: no cover

    def get_input(self, input_id: str) -> dict[str, Any]:
        """Return the full record for one submitted input."""
        ...  # pragma: no cover

    def list_feedback(
        self,
        page: int,
        limit: int,
        search: str | None = None,
    ) -> dict[str, Any]:
        """Return one page of AI-generated feedback plus pagination info."""
        ...  # pragma: no cover

    def get_feedback(self, feedback_id: str) -> dict[str, Any]:
        """Return the full record for one feedback item."""
        ...  # pragma: no cover

    def check_api_key(self) -> bool:
        """Return ``False`` when the service rejects the configured key."""
        ...  # pragma: no cover

    def get_team_website(self) -> dict[str, Any]:
        """Return the team's website record (``website``, ``updated_at``)."""
        ...  # pragma: no cover

    def update_team_website(self, website: str) -> dict[str, Any]:
        """Set the team's website and return the updated record."""
        ...  # pragma: no cover
