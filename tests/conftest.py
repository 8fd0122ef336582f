"""Shared pytest fixtures and configuration for the closedloop-cli test suite.

Guidelines
----------
* No internet access in any test.
* requests must be mocked at the infra boundary.
* Core tests must be pure — no real sleeping, no network.
* Tests must not depend on the caller's ``CLOSEDLOOP_*`` environment.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from closedloop.settings import Settings

INPUT_ID = "2ea8f556-052b-4f5c-bf86-833780b3d00d"
FEEDBACK_ID = "9b1deb4d-3b7d-4bad-9bdd-2b0d7b3dcb6d"
API_KEY = "cl_live_1234567890abcdef"


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CLOSEDLOOP_API_URL",
        "CLOSEDLOOP_API_KEY",
        "CLOSEDLOOP_TIMEOUT",
        "CLOSEDLOOP_POLL_INTERVAL",
        "CLOSEDLOOP_MAX_POLL_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key=API_KEY, poll_interval=0.0)


@pytest.fixture
def provider() -> MagicMock:
    """A ClosedLoopProvider double with sensible happy-path answers."""
    fake = MagicMock()
    fake.submit.return_value = {"id": INPUT_ID, "status": "processing"}
    fake.get_status.return_value = {"id": INPUT_ID, "status": "completed"}
    fake.check_api_key.return_value = True
    return fake


def status_sequence(*statuses: Any) -> list[Any]:
    """Build ``get_status`` side effects; exceptions are passed through."""
    return [
        status if isinstance(status, BaseException) else {"id": INPUT_ID, "status": status}
        for status in statuses
    ]
