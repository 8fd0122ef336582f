"""Per-field acceptance rules.

Each ``validate_*`` function either returns the normalized value or
raises a :class:`~closedloop.exceptions.ClosedLoopError` on the first
violation.  The exceptions are :func:`is_valid_uuid`, a plain predicate,
and :func:`validate_pagination`, which clamps instead of rejecting.

All bounds come from the :class:`~closedloop.settings.Settings` passed
in, defaulting to :data:`~closedloop.settings.DEFAULT_SETTINGS`.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from closedloop.core.models import Pagination
from closedloop.exceptions import input_error, validation_error
from closedloop.settings import DEFAULT_SETTINGS, Settings

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def is_valid_uuid(value: object) -> bool:
    """Return ``True`` for canonical 8-4-4-4-12 hex UUID strings."""
    return isinstance(value, str) and _UUID_RE.match(value) is not None


# ---------------------------------------------------------------------------
# Content & credentials
# ---------------------------------------------------------------------------

def validate_content(raw: str | None, settings: Settings = DEFAULT_SETTINGS) -> str:
    """Validate the required submission text.

    The length bound applies to *raw* as given, before trimming.

    Raises
    ------
    ClosedLoopError
        ``INVALID_INPUT`` if *raw* is blank or too long.
    """
    if raw is None or not raw.strip():
        raise input_error("Content cannot be empty")
    if len(raw) > settings.max_content_length:
        raise input_error(
            f"Content too long (max {settings.max_content_length} characters)",
        )
    return raw.strip()


def validate_api_key(raw: str | None, settings: Settings = DEFAULT_SETTINGS) -> str:
    """Return the trimmed API key, rejecting blank or too-short keys."""
    if raw is None or len(raw.strip()) < settings.min_api_key_length:
        err = validation_error("Invalid API key format.")
        err.hint = "Get your free API key at https://closedloop.sh"
        raise err
    return raw.strip()


# ---------------------------------------------------------------------------
# Contact & source
# ---------------------------------------------------------------------------

def validate_email(raw: str | None) -> str:
    """Return the trimmed, lower-cased address if it looks like ``a@b.c``."""
    if raw is None or not raw.strip():
        raise validation_error("Email cannot be empty")
    trimmed = raw.strip()
    if not _EMAIL_RE.match(trimmed):
        raise validation_error("Invalid email format")
    return trimmed.lower()


def validate_url(raw: str | None) -> str:
    """Return the canonical absolute form of an http(s) URL.

    Canonicalisation lower-cases the scheme and host and normalises an
    empty path to ``/``.
    """
    if raw is None or not raw.strip():
        raise validation_error("URL cannot be empty")
    candidate = raw.strip()

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise validation_error("Invalid URL format") from exc

    if parts.scheme and parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise validation_error("URL must use HTTP or HTTPS protocol")
    if not parts.scheme or not hostname or any(ch.isspace() for ch in candidate):
        raise validation_error("Invalid URL format")

    netloc = hostname.lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit(
        (parts.scheme.lower(), netloc, parts.path or "/", parts.query, parts.fragment),
    )


# ---------------------------------------------------------------------------
# Short text fields
# ---------------------------------------------------------------------------

def _validate_short_text(raw: str | None, label: str, max_length: int) -> str:
    if raw is None or not raw.strip():
        raise validation_error(f"{label} cannot be empty")
    if len(raw) > max_length:
        raise validation_error(f"{label} too long (max {max_length} characters)")
    return raw.strip()


def validate_title(raw: str | None, settings: Settings = DEFAULT_SETTINGS) -> str:
    return _validate_short_text(raw, "Title", settings.max_title_length)


def validate_customer_id(raw: str | None, settings: Settings = DEFAULT_SETTINGS) -> str:
    return _validate_short_text(raw, "Customer ID", settings.max_customer_id_length)


def validate_name(raw: str | None, settings: Settings = DEFAULT_SETTINGS) -> str:
    return _validate_short_text(raw, "Name", settings.max_name_length)


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

def validate_pagination(
    page: int | None = None,
    limit: int | None = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> Pagination:
    """Clamp *page* and *limit* into range; never raises.

    Only ``None`` means "unset".  An explicit ``0`` or negative limit is
    floored to 1 rather than replaced with the default page size.
    """
    validated_page = 1 if page is None else max(1, page)
    requested_limit = settings.default_page_size if limit is None else limit
    validated_limit = min(max(1, requested_limit), settings.max_page_size)
    return Pagination(page=validated_page, limit=validated_limit)
