"""Mini README: Best-effort HTTP client for the optional sync server.

Structure:
    * ServerClient - wraps the four ``/api`` routes the tracker consumes.

Every call returns the decoded ``{"success": true, ...}`` payload or
``None``. Non-2xx responses, connection problems and undecodable bodies are
logged at warning level and reported as ``None`` so callers fall back to
local storage. A client without a base URL is permanently offline.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


class ServerClient:
    """Thin ``requests`` wrapper returning ``None`` on any failure."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def online(self) -> bool:
        return self.base_url is not None

    def _request(self, method: str, path: str, payload: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        if not self.online:
            return None
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as error:
            LOGGER.warning("Request %s %s failed: %s", method, url, error)
            return None
        except ValueError as error:
            LOGGER.warning("Response from %s %s is not JSON: %s", method, url, error)
            return None
        if not isinstance(body, dict) or not body.get("success"):
            LOGGER.info("Server declined %s %s", method, url)
            return None
        return body

    def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        return self._request("POST", "/api/login", {"email": email, "password": password})

    def register(self, user: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request("POST", "/api/register", user)

    def fetch_user_data(self, user_id: Any) -> Optional[Dict[str, Any]]:
        return self._request("GET", f"/api/user/{user_id}/data")

    def push_user_data(self, user_id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request("POST", f"/api/user/{user_id}/data", data)
