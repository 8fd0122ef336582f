"""Allow ``python -m closedloop`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m closedloop`` behaves identically to the ``cl``
console script.
"""

from __future__ import annotations

from closedloop.cli.app import cli

if __name__ == "__main__":
    cli()
