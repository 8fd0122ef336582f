"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.

Human-readable output goes to stderr; ``--json`` documents go to stdout
via :func:`emit_json` so they can be piped.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from closedloop.exceptions import MissingDependencyError


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``MissingDependencyError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise MissingDependencyError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console() -> Any:
    """Create a Rich console instance targeting stderr."""
    console_class = _load_rich_console_class()
    return console_class(stderr=True)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy with Rich fallback."""

    def print(self, *objects: object) -> None:
        """Render with Rich when available, else plain stderr print."""
        try:
            rich_console = get_rich_console()
        except MissingDependencyError:
            print(*objects, file=sys.stderr)
            return
        rich_console.print(*objects)


console = _ConsoleProxy()


def escape(value: object) -> str:
    """Return ``str(value)`` safe to embed in Rich markup.

    Without Rich the console prints plain text, so nothing needs escaping.
    """
    text = str(value)
    try:
        from rich.markup import escape as rich_escape
    except ModuleNotFoundError:
        return text
    return rich_escape(text)


def emit_json(document: Any) -> None:
    """Write *document* to stdout as indented JSON."""
    sys.stdout.write(json.dumps(document, indent=2, default=str))
    sys.stdout.write("\n")
    sys.stdout.flush()
