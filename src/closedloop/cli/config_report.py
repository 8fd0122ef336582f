"""``cl config`` — effective configuration report.

Gathers the settings this run will use and renders a Rich table
summarising them, falling back to plain text when Rich is missing.
Nothing is written to disk; configuration comes from flags and
``CLOSEDLOOP_*`` environment variables.
"""

from __future__ import annotations

import platform
import sys
from typing import Any

from closedloop.cli import exit_codes
from closedloop.cli.console import console, escape
from closedloop.settings import Settings
from closedloop.version import __version__

_OK = "[green]OK[/green]"
_MISSING = "[red]MISSING[/red]"


def mask_api_key(api_key: str | None) -> str | None:
    """Return the first 8 characters of *api_key* followed by ``...``."""
    if not api_key:
        return None
    return api_key[:8] + "..."


# ---------------------------------------------------------------------------
# Collectors
# ---------------------------------------------------------------------------

def collect_config_rows(
    settings: Settings,
    *,
    key_check: bool | None = None,
) -> list[tuple[str, str, str]]:
    """Return (label, value, status) rows describing *settings*.

    *key_check* is the result of a ``/health`` check, or ``None`` when
    no check was made.
    """
    masked = mask_api_key(settings.api_key)
    rows = [
        ("closedloop-cli", __version__, _OK),
        ("Python", platform.python_version(), _OK),
        ("API URL", settings.api_base_url, _OK),
        ("API key", masked or "not configured", _OK if masked else _MISSING),
        ("Timeout", f"{settings.request_timeout:g}s", _OK),
        ("Poll interval", f"{settings.poll_interval:g}s", _OK),
        ("Max poll attempts", str(settings.max_poll_attempts), _OK),
    ]
    if key_check is not None:
        rows.append(
            ("API key check", "accepted" if key_check else "rejected",
             _OK if key_check else "[red]FAIL[/red]"),
        )
    return rows


def config_document(settings: Settings) -> dict[str, Any]:
    """Machine-readable configuration for ``--json``."""
    return {
        "success": True,
        "data": {
            "apiKey": mask_api_key(settings.api_key),
            "apiUrl": settings.api_base_url,
            "configured": bool(settings.api_key),
            "pollInterval": settings.poll_interval,
            "maxPollAttempts": settings.max_poll_attempts,
            "timeout": settings.request_timeout,
        },
    }


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    for word in ("FAIL", "MISSING", "OK"):
        if word in status:
            return word
    return status


def _print_plain_table(rows: list[tuple[str, str, str]]) -> None:
    """Render the report without Rich."""
    print("\ncl config", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    for label, value, status in rows:
        print(f"{label:<18} {value:<36} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_config_report(settings: Settings, *, key_check: bool | None = None) -> int:
    """Render the configuration table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when an API key is configured,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    rows = collect_config_rows(settings, key_check=key_check)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_table(rows)
    else:
        table = Table(
            title="cl config",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Setting", style="bold", min_width=18)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in rows:
            table.add_row(label, escape(value), status)
        console.print()
        console.print(table)
        console.print()

    if not settings.api_key:
        console.print("Get your free API key at https://closedloop.sh, then run:")
        console.print("    export CLOSEDLOOP_API_KEY=<your-key>")
        return exit_codes.GENERAL_ERROR
    return exit_codes.SUCCESS
