"""requests-backed implementation of :class:`~closedloop.core.protocols.ClosedLoopProvider`.

This module is the **only** place in the codebase that imports
``requests``.  Every ``requests`` exception is caught here and re-raised
as :class:`~closedloop.exceptions.TransportError`, an unclassified
failure signal the core layer turns into a
:class:`~closedloop.exceptions.ClosedLoopError`.
"""

from __future__ import annotations

import logging
from typing import Any

from closedloop.exceptions import MissingDependencyError, TransportError, no_api_key_error
from closedloop.settings import Settings

logger = logging.getLogger(__name__)


def _import_requests() -> Any:
    """Import requests lazily so ``--help`` works without it."""
    try:
        import requests
    except ModuleNotFoundError as exc:
        raise MissingDependencyError(
            "requests is not installed. Install with: pip install requests",
        ) from exc
    return requests


class ClosedLoopClient:
    """Concrete :class:`ClosedLoopProvider` talking JSON over HTTPS.

    Usage::

        client = ClosedLoopClient(settings)
        record = client.submit({"content": "Dashboard is confusing"})

    Parameters
    ----------
    settings:
        Base URL, API key, user agent and timeout.
    session:
        Optional pre-configured ``requests.Session`` (tests pass a mock).

    Raises
    ------
    ClosedLoopError
        ``NO_API_KEY`` when *settings* carries no key.
    """

    # Substrings of requests/urllib3 error text that identify DNS failures.
    _HOST_NOT_FOUND_SIGNALS: tuple[str, ...] = (
        "name or service not known",
        "nodename nor servname",
        "getaddrinfo failed",
        "name resolution",
        "no address associated",
    )

    def __init__(self, settings: Settings, *, session: Any | None = None) -> None:
        if not settings.api_key:
            raise no_api_key_error()

        self._requests: Any = _import_requests()
        self._settings: Settings = settings
        self._base_url: str = settings.api_base_url.rstrip("/")
        self._session: Any = session if session is not None else self._requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {settings.api_key}",
                "Content-Type": "application/json",
                "User-Agent": settings.user_agent,
            }
        )

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def submit(self, payload: dict[str, str]) -> dict[str, Any]:
        return self._request("POST", "/feedbacks", json=payload)

    def get_status(self, submission_id: str) -> dict[str, Any]:
        return self._request("GET", f"/inputs/{submission_id}")

    def list_inputs(self, page: int, limit: int) -> dict[str, Any]:
        return self._request("GET", "/inputs", params={"page": page, "limit": limit})

    def get_input(self, input_id: str) -> dict[str, Any]:
        return self._request("GET", f"/inputs/{input_id}")

    def list_feedback(
        self,
        page: int,
        limit: int,
        search: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        return self._request("GET", "/feedbacks", params=params)

    def get_feedback(self, feedback_id: str) -> dict[str, Any]:
        return self._request("GET", f"/feedbacks/{feedback_id}")

    def get_team_website(self) -> dict[str, Any]:
        return self._request("GET", "/team/website")

    def update_team_website(self, website: str) -> dict[str, Any]:
        return self._request("POST", "/team/website", json={"website": website})

    def check_api_key(self) -> bool:
        """Call ``/health``; ``False`` only when the key is rejected (401)."""
        try:
            self._send("GET", "/health")
        except TransportError as exc:
            if exc.status == 401:
                return False
            raise
        return True

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and unwrap the ``{"success", "data"}`` envelope."""
        body = self._decode(self._send(method, path, **kwargs))
        if body.get("success") is False:
            raise TransportError(
                str(body.get("error") or body.get("message") or "Request was not successful"),
                body=body,
            )
        data = body.get("data", body)
        if not isinstance(data, dict):
            return {"items": data}
        return data

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        exceptions = self._requests.exceptions

        try:
            response = self._session.request(
                method,
                url,
                timeout=self._settings.request_timeout,
                **kwargs,
            )
            response.raise_for_status()
        except exceptions.HTTPError as exc:
            raise self._from_http_error(exc) from exc
        except exceptions.Timeout as exc:
            raise TransportError(str(exc), code="ETIMEDOUT") from exc
        except exceptions.ConnectionError as exc:
            raise TransportError(str(exc), code=self._connection_code(exc)) from exc
        except exceptions.RequestException as exc:
            raise TransportError(str(exc)) from exc

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def _decode(response: Any) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(
                "Server returned a response that is not valid JSON.",
            ) from exc
        if not isinstance(body, dict):
            raise TransportError("Server returned an unexpected data structure.")
        return body

    @staticmethod
    def _from_http_error(exc: Any) -> TransportError:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
        body: dict[str, Any] | None = None
        if response is not None:
            try:
                decoded = response.json()
            except ValueError:
                decoded = None
            if isinstance(decoded, dict):
                body = decoded
        return TransportError(str(exc), status=status, body=body)

    @classmethod
    def _connection_code(cls, exc: Exception) -> str:
        msg_lower = str(exc).lower()
        if any(signal in msg_lower for signal in cls._HOST_NOT_FOUND_SIGNALS):
            return "ENOTFOUND"
        return "ECONNREFUSED"
