"""Regression tests for optional CLI UI dependencies (rich/questionary).

These tests verify bootstrap commands are resilient when optional UI
packages are missing, and interactive flows fail cleanly only when UI
paths are actually exercised.
"""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from closedloop.cli import exit_codes
from closedloop.cli.app import main
from closedloop.exceptions import MissingDependencyError

from conftest import API_KEY


def _hide_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "rich", None)
    monkeypatch.setitem(sys.modules, "rich.console", None)
    monkeypatch.setitem(sys.modules, "rich.markup", None)
    monkeypatch.setitem(sys.modules, "rich.table", None)
    monkeypatch.setitem(sys.modules, "rich.progress", None)


def _hide_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "questionary", None)


def test_help_works_without_rich_or_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)
    _hide_questionary(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0


def test_version_works_without_rich_or_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)
    _hide_questionary(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0


def test_config_works_without_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)

    code = main(["config"])
    assert code in (exit_codes.SUCCESS, exit_codes.GENERAL_ERROR)


def test_submit_works_without_rich(
    monkeypatch: pytest.MonkeyPatch, provider: MagicMock,
) -> None:
    _hide_rich(monkeypatch)
    monkeypatch.setenv("CLOSEDLOOP_API_KEY", API_KEY)

    with patch("closedloop.infra.http_client.ClosedLoopClient", return_value=provider):
        assert main(["submit", "hi"]) == exit_codes.SUCCESS


def test_wait_errors_cleanly_when_rich_missing(
    monkeypatch: pytest.MonkeyPatch, provider: MagicMock,
) -> None:
    _hide_rich(monkeypatch)
    monkeypatch.setenv("CLOSEDLOOP_API_KEY", API_KEY)

    with patch("closedloop.infra.http_client.ClosedLoopClient", return_value=provider):
        with pytest.raises(MissingDependencyError, match="rich is not installed"):
            main(["submit", "hi", "--wait"])


def test_prompt_errors_cleanly_when_questionary_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _hide_questionary(monkeypatch)

    with pytest.raises(MissingDependencyError, match="questionary is not installed"):
        main(["submit"])


def test_requests_missing_is_dependency_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setitem(sys.modules, "requests", None)
    monkeypatch.setenv("CLOSEDLOOP_API_KEY", API_KEY)

    with pytest.raises(MissingDependencyError, match="requests is not installed"):
        main(["status", "2ea8f556-052b-4f5c-bf86-833780b3d00d"])
