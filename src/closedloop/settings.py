"""Immutable runtime configuration.

A single :class:`Settings` value is built once at the CLI boundary and
passed explicitly to every validator, service and poller.  There is no
module-level mutable state; tests construct their own instances with
alternate bounds via :meth:`Settings.with_overrides`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass

from closedloop.exceptions import validation_error
from closedloop.version import __version__


@dataclass(frozen=True, slots=True)
class Settings:
    """Bounds, defaults and endpoint configuration for one CLI run."""

    api_base_url: str = "https://mcp.closedloop.sh"
    api_key: str | None = None
    user_agent: str = f"closedloop-cli/{__version__}"
    request_timeout: float = 30.0
    """Per-request HTTP timeout in seconds."""

    max_poll_attempts: int = 100
    poll_interval: float = 3.0
    """Seconds to wait before each status lookup."""

    default_page_size: int = 20
    max_page_size: int = 100

    min_api_key_length: int = 10
    max_content_length: int = 10_000
    max_title_length: int = 200
    max_customer_id_length: int = 100
    max_name_length: int = 100

    def with_overrides(self, **changes: object) -> Settings:
        """Return a copy with *changes* applied; ``None`` values are ignored."""
        applied = {key: value for key, value in changes.items() if value is not None}
        return dataclasses.replace(self, **applied)  # type: ignore[arg-type]


DEFAULT_SETTINGS = Settings()


# ---------------------------------------------------------------------------
# Environment loading
# ---------------------------------------------------------------------------

_ENV_PREFIX = "CLOSEDLOOP_"


def _parse_number(name: str, raw: str, kind: type[int] | type[float]) -> int | float:
    try:
        value = kind(raw.strip())
    except ValueError as exc:
        raise validation_error(
            f"Invalid value for {_ENV_PREFIX}{name}: {raw!r}",
        ) from exc
    if value <= 0:
        raise validation_error(f"{_ENV_PREFIX}{name} must be greater than zero")
    return value


def load_settings(environ: Mapping[str, str]) -> Settings:
    """Build :class:`Settings` from ``CLOSEDLOOP_*`` environment variables.

    Recognised variables: ``CLOSEDLOOP_API_URL``, ``CLOSEDLOOP_API_KEY``,
    ``CLOSEDLOOP_TIMEOUT`` (seconds), ``CLOSEDLOOP_POLL_INTERVAL``
    (seconds) and ``CLOSEDLOOP_MAX_POLL_ATTEMPTS``.  Unset or empty
    variables fall back to the defaults.

    Raises
    ------
    ClosedLoopError
        ``VALIDATION_ERROR`` when a numeric variable is malformed or not
        positive.
    """

    def _get(name: str) -> str | None:
        value = environ.get(_ENV_PREFIX + name)
        if value is None or not value.strip():
            return None
        return value

    overrides: dict[str, object] = {}

    api_url = _get("API_URL")
    if api_url is not None:
        overrides["api_base_url"] = api_url.strip().rstrip("/")

    api_key = _get("API_KEY")
    if api_key is not None:
        overrides["api_key"] = api_key.strip()

    timeout = _get("TIMEOUT")
    if timeout is not None:
        overrides["request_timeout"] = float(_parse_number("TIMEOUT", timeout, float))

    interval = _get("POLL_INTERVAL")
    if interval is not None:
        overrides["poll_interval"] = float(
            _parse_number("POLL_INTERVAL", interval, float),
        )

    attempts = _get("MAX_POLL_ATTEMPTS")
    if attempts is not None:
        overrides["max_poll_attempts"] = int(
            _parse_number("MAX_POLL_ATTEMPTS", attempts, int),
        )

    return DEFAULT_SETTINGS.with_overrides(**overrides)
