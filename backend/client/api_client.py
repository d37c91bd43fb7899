"""
API Client - HTTP client for the artifact.shelf API.

Wraps a requests.Session. The authenticated session (token + user) is an
explicit ClientSession value passed into each call rather than module-level
state, so several users can be driven from one process.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class ApiError(Exception):
    """Non-2xx response from the API."""
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


@dataclass
class UserInfo:
    id: int
    username: str
    email: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UserInfo":
        return cls(id=data["id"], username=data["username"], email=data["email"])


@dataclass
class ClientSession:
    """Bearer token plus the user it was issued to."""
    token: str
    user: UserInfo

    @property
    def auth_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class ArtifactApiClient:
    """HTTP client for auth, artifact CRUD, likes and preview URLs."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, http=None, timeout: float = 10.0):
        """
        Args:
            base_url: API root, e.g. http://localhost:8000
            http: object with requests-style get/post/put/delete; defaults to a new requests.Session
            timeout: per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api{path}"

    def _request(self, method: str, path: str, session: Optional[ClientSession] = None, **kwargs):
        headers = dict(kwargs.pop("headers", {}) or {})
        if session is not None:
            headers.update(session.auth_header)

        send = getattr(self.http, method)
        resp = send(self._url(path), headers=headers, timeout=self.timeout, **kwargs)

        # Server hands out a fresh token late in the old one's lifetime
        new_token = resp.headers.get("X-New-Token")
        if session is not None and new_token:
            session.token = new_token

        if resp.status_code >= 400:
            try:
                message = resp.json().get("error") or resp.text
            except ValueError:
                message = resp.text
            logger.debug(f"{method.upper()} {path} -> {resp.status_code}: {message}")
            raise ApiError(resp.status_code, message)
        return resp

    # ==================== Auth ====================

    def _session_from(self, data: Dict[str, Any]) -> ClientSession:
        return ClientSession(token=data["token"], user=UserInfo.from_json(data["user"]))

    def register(self, username: str, email: str, password: str) -> ClientSession:
        resp = self._request("post", "/auth/register", json={
            "username": username,
            "email": email,
            "password": password,
        })
        return self._session_from(resp.json())

    def login(self, username: str, password: str) -> ClientSession:
        resp = self._request("post", "/auth/login", json={
            "username": username,
            "password": password,
        })
        return self._session_from(resp.json())

    def me(self, session: ClientSession) -> UserInfo:
        return UserInfo.from_json(self._request("get", "/auth/me", session).json())

    # ==================== Artifacts ====================

    def list_artifacts(self, session: ClientSession) -> List[Dict[str, Any]]:
        return self._request("get", "/artifacts", session).json()

    def get_artifact(self, session: ClientSession, artifact_id: int) -> Dict[str, Any]:
        return self._request("get", f"/artifacts/{artifact_id}", session).json()

    def create_artifact(self, session: ClientSession, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("post", "/artifacts", session, json=payload).json()

    def update_artifact(self, session: ClientSession, artifact_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("put", f"/artifacts/{artifact_id}", session, json=payload).json()

    def delete_artifact(self, session: ClientSession, artifact_id: int) -> str:
        return self._request("delete", f"/artifacts/{artifact_id}", session).json()["message"]

    def toggle_like(self, session: ClientSession, artifact_id: int) -> Dict[str, Any]:
        return self._request("post", f"/artifacts/{artifact_id}/like", session).json()

    def preview(self, session: ClientSession, artifact_id: int) -> str:
        """Fetch the sandboxed preview document as HTML text."""
        return self._request("get", f"/artifacts/{artifact_id}/preview", session).text
