# expense_client/gateway.py
"""Thin HTTP wrapper around the expense API.

Every call except login/register carries ``Authorization: Bearer <token>``
taken from the :class:`~expense_client.session.SessionStore`. A 401 on an
authenticated call clears the session and notifies the listeners registered
with :meth:`ApiGateway.on_unauthenticated` before raising ``Unauthenticated``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

import requests

from expense_client.errors import (
    NetworkFailure,
    RemoteFailure,
    Unauthenticated,
    ValidationError,
)
from expense_client.session import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


def _error_message(response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict):
        return payload.get("message") or payload.get("error") or fallback
    return fallback


class ApiGateway:
    def __init__(
        self,
        session_store: SessionStore,
        base_url: str,
        http: Optional[Any] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session_store = session_store
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self._listeners: List[Callable[[], None]] = []

    def on_unauthenticated(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register ``listener`` for the logout signal; returns an unregister callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        auth: bool = True,
        raw: bool = False,
        fallback: str = "Request failed",
    ):
        url = f"{self.base_url}/api{path}"
        headers = {"Accept": "application/json"}
        if auth:
            token = self.session_store.token
            if token:
                headers["Authorization"] = f"Bearer {token}"

        logger.debug("%s %s params=%s", method, url, params)
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkFailure(f"{fallback}: {exc}") from exc

        status = response.status_code
        logger.debug("%s %s -> %s", method, url, status)
        if status == 401:
            message = _error_message(response, fallback)
            if auth:
                self._signal_unauthenticated()
            raise Unauthenticated(message)
        if status in (400, 422):
            raise ValidationError(_error_message(response, fallback))
        if not 200 <= status < 300:
            raise RemoteFailure(_error_message(response, fallback), status_code=status)

        if raw:
            return response
        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteFailure(f"{fallback}: malformed response", status_code=status) from exc

    def _signal_unauthenticated(self) -> None:
        logger.info("Session rejected by server, clearing stored credentials")
        self.session_store.clear()
        for listener in list(self._listeners):
            listener()

    def get(self, path: str, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs):
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs):
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)
