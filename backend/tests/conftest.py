"""
Pytest configuration and shared fixtures.

The app runs in-process through FastAPI's TestClient against a throwaway
SQLite database. Environment variables are set here, before anything imports
config.settings, so the app never touches a real database.
"""

import os
import tempfile
import uuid
from pathlib import Path

import pytest

_TEST_DB_DIR = tempfile.mkdtemp(prefix="artifact_shelf_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_TEST_DB_DIR) / 'test.db'}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_TO_FILE", "false")

from fastapi.testclient import TestClient  # noqa: E402

TEST_PASSWORD = "TestPass123!"


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "flow: mark test as an end-to-end API flow test"
    )


# ═══════════════════════════════════════════════════════════════════════════
# APIClient — HTTP client for flow tests
# ═══════════════════════════════════════════════════════════════════════════


class APIClient:
    """TestClient wrapper with auth helpers."""

    def __init__(self, http: TestClient):
        self.http = http
        self.token: str | None = None
        self.user_id: int | None = None
        self.username: str | None = None

    def _headers(self) -> dict:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _remember(self, resp):
        if resp.status_code in (200, 201):
            data = resp.json()
            self.token = data.get("token")
            self.user_id = data["user"]["id"]
            self.username = data["user"]["username"]
        return resp

    def register(self, username: str, email: str, password: str = TEST_PASSWORD):
        """POST /api/auth/register (JSON body)."""
        return self._remember(self.http.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        ))

    def login(self, username: str, password: str = TEST_PASSWORD):
        """POST /api/auth/login (JSON body)."""
        return self._remember(self.http.post(
            "/api/auth/login",
            json={"username": username, "password": password},
        ))

    def get(self, path: str, **kwargs):
        return self.http.get(path, headers=self._headers(), **kwargs)

    def post(self, path: str, **kwargs):
        return self.http.post(path, headers=self._headers(), **kwargs)

    def put(self, path: str, **kwargs):
        return self.http.put(path, headers=self._headers(), **kwargs)

    def delete(self, path: str, **kwargs):
        return self.http.delete(path, headers=self._headers(), **kwargs)

    def create_artifact(self, **fields):
        body = {"title": "Untitled", "type": "html", "code": "<p>hi</p>"}
        body.update(fields)
        resp = self.post("/api/artifacts", json=body)
        assert resp.status_code == 201, f"Artifact creation failed: {resp.text}"
        return resp.json()

    def artifact_ids(self) -> list:
        resp = self.get("/api/artifacts")
        assert resp.status_code == 200, resp.text
        return [a["id"] for a in resp.json()]


def unique_name(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture(scope="session")
def http():
    """In-process client; entering the context runs startup (creates tables)."""
    from main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def api_client(http):
    """Unauthenticated APIClient."""
    return APIClient(http)


@pytest.fixture
def make_user(http):
    """Factory: register a fresh user and return an authenticated APIClient."""
    def _make(prefix: str = "user") -> APIClient:
        client = APIClient(http)
        name = unique_name(prefix)
        resp = client.register(name, f"{name}@example.com")
        assert resp.status_code == 201, f"Registration failed: {resp.text}"
        return client

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")
