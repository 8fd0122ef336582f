"""Best-effort removal of markup and script-like fragments from free text.

This is NOT a markup parser and does not neutralise every injection
vector.  It strips a fixed set of patterns:

* ``<`` and ``>`` characters,
* the ``javascript:`` scheme (any case),
* inline event-handler tokens such as ``onclick=`` (any case).

Removal repeats until the text stops changing, so fragments cannot be
nested to reassemble a pattern after one pass.
"""

from __future__ import annotations

import re

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def sanitize(text: str | None) -> str:
    """Return *text* with unsafe fragments removed and whitespace trimmed.

    Never raises; ``None`` and empty input yield ``""``.
    """
    if not text:
        return ""

    cleaned = _ANGLE_BRACKETS.sub("", text)
    while True:
        stripped = _EVENT_HANDLER.sub("", _JAVASCRIPT_SCHEME.sub("", cleaned))
        if stripped == cleaned:
            break
        cleaned = stripped
    return cleaned.strip()
