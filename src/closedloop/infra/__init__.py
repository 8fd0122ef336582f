"""Infrastructure layer — external system integration.

This layer wraps all interaction with the ClosedLoop HTTP API.  Every
raw third-party exception must be caught here and re-raised as a
:class:`~closedloop.exceptions.TransportError`.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from closedloop.infra.http_client import ClosedLoopClient

__all__: list[str] = ["ClosedLoopClient"]
