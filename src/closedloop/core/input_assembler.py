"""Compose raw user fields into a :class:`SubmissionPayload`.

Pipeline order (enforced by :func:`assemble`):

1. **Content** — validate, then sanitize.  Failure aborts immediately.
2. **Free-text optionals** — ``title``, ``customer_id``,
   ``reporter_name``: validate, then sanitize.
3. **Structured optionals** — ``source_url``, ``reporter_email``:
   validate only; the validators already canonicalise or reject.

Optional fields that are absent, ``None`` or empty never reach the
payload.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from closedloop.core.models import SubmissionPayload
from closedloop.core.sanitizer import sanitize
from closedloop.core.validation import (
    validate_content,
    validate_customer_id,
    validate_email,
    validate_name,
    validate_title,
    validate_url,
)
from closedloop.exceptions import input_error, validation_error
from closedloop.settings import DEFAULT_SETTINGS, Settings


def _clean(value: str, label: str) -> str:
    """Sanitize an already-validated free-text value.

    A value made only of markup would sanitize to nothing; that is
    rejected rather than submitted as an empty field.
    """
    cleaned = sanitize(value)
    if not cleaned:
        raise validation_error(f"{label} is empty after removing unsafe markup")
    return cleaned


def _optional_rules(
    settings: Settings,
) -> tuple[tuple[str, Callable[[str], str]], ...]:
    """Return ``(field, rule)`` pairs for every optional payload field."""
    return (
        ("title", lambda raw: _clean(validate_title(raw, settings), "Title")),
        ("source_url", validate_url),
        ("customer_id", lambda raw: _clean(validate_customer_id(raw, settings), "Customer ID")),
        ("reporter_name", lambda raw: _clean(validate_name(raw, settings), "Name")),
        ("reporter_email", validate_email),
    )


def assemble(
    raw_fields: Mapping[str, str | None],
    settings: Settings = DEFAULT_SETTINGS,
) -> SubmissionPayload:
    """Validate and sanitize *raw_fields* into a submission payload.

    Keys not part of the payload contract are ignored.

    Raises
    ------
    ClosedLoopError
        On the first field that fails validation; no partial payload is
        ever returned.
    """
    content = sanitize(validate_content(raw_fields.get("content"), settings))
    if not content:
        raise input_error("Content is empty after removing unsafe markup")

    optional: dict[str, str] = {}
    for name, rule in _optional_rules(settings):
        raw = raw_fields.get(name)
        if not raw:
            continue
        optional[name] = rule(raw)

    return SubmissionPayload(content=content, **optional)
