"""
Auth Flow API Tests

Registration, login, /me, and the bearer-token guard on protected routes.

Run:
    python -m pytest backend/tests/test_auth_flow.py -v
"""

import time
from datetime import timedelta

import pytest

from services import auth_service
from tests.conftest import APIClient, TEST_PASSWORD, unique_name

pytestmark = pytest.mark.flow


# ═══════════════════════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════════════════════


class TestRegistration:

    def test_register_new_user(self, api_client):
        """POST register returns 201 with token + user."""
        name = unique_name("reg")
        resp = api_client.register(name, f"{name}@example.com")
        data = resp.json()
        assert resp.status_code == 201
        assert data["token"]
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == name
        assert data["user"]["email"] == f"{name}@example.com"
        assert "password" not in data["user"]

    def test_register_duplicate_username(self, http):
        """Same username with a different email is a conflict."""
        name = unique_name("dupname")
        first = APIClient(http).register(name, f"{name}@example.com")
        assert first.status_code == 201

        resp = APIClient(http).register(name, f"other_{name}@example.com")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Username or email already exists"

    def test_register_duplicate_email(self, http):
        """Same email with a different username is a conflict."""
        name = unique_name("dupmail")
        first = APIClient(http).register(name, f"{name}@example.com")
        assert first.status_code == 201

        resp = APIClient(http).register(f"{name}_2", f"{name}@example.com")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Username or email already exists"

    def test_register_short_password(self, api_client):
        """Password under 6 characters is rejected."""
        name = unique_name("shortpw")
        resp = api_client.register(name, f"{name}@example.com", "abc12")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Password must be at least 6 characters"

    @pytest.mark.parametrize("missing", ["username", "email", "password"])
    def test_register_missing_field(self, http, missing):
        """Every field is required."""
        name = unique_name("missing")
        body = {"username": name, "email": f"{name}@example.com", "password": TEST_PASSWORD}
        body.pop(missing)
        resp = http.post("/api/auth/register", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "All fields are required"

    def test_register_invalid_email(self, http):
        name = unique_name("bademail")
        resp = http.post("/api/auth/register", json={
            "username": name, "email": "not-an-email", "password": TEST_PASSWORD,
        })
        assert resp.status_code == 400
        assert "email" in resp.json()["error"]


# ═══════════════════════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════════════════════


class TestLogin:

    def test_login_after_register_resolves_same_user(self, http):
        """A login with the registered credentials yields a token for the same user id."""
        name = unique_name("login")
        registered = APIClient(http)
        registered.register(name, f"{name}@example.com")

        client = APIClient(http)
        resp = client.login(name)
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == registered.user_id

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json() == {"id": registered.user_id, "username": name, "email": f"{name}@example.com"}

    def test_login_wrong_password_and_unknown_user_look_the_same(self, alice, http):
        wrong_pw = APIClient(http).login(alice.username, "wrongpassword999")
        unknown = APIClient(http).login(unique_name("nobody"), "wrongpassword999")

        assert wrong_pw.status_code == 401
        assert unknown.status_code == 401
        assert wrong_pw.json() == unknown.json() == {"error": "Invalid credentials"}

    def test_login_with_padded_username_matches_registration(self, http):
        """Surrounding whitespace is trimmed on login the same way as on register."""
        name = unique_name("padded")
        registered = APIClient(http)
        resp = registered.register(f"  {name} ", f"{name}@example.com")
        assert resp.status_code == 201
        assert resp.json()["user"]["username"] == name

        for attempt in (f"  {name} ", name):
            client = APIClient(http)
            resp = client.login(attempt)
            assert resp.status_code == 200, resp.text
            assert resp.json()["user"]["id"] == registered.user_id

    def test_login_missing_fields(self, http):
        resp = http.post("/api/auth/login", json={"username": "someone"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Username and password required"


# ═══════════════════════════════════════════════════════════════════════════
# Token guard
# ═══════════════════════════════════════════════════════════════════════════


class TestTokenGuard:

    def test_missing_token_is_401(self, api_client):
        resp = api_client.get("/api/artifacts")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Access token required"

    def test_garbage_token_is_403(self, http):
        resp = http.get("/api/artifacts", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "Invalid or expired token"

    def test_tampered_token_is_403(self, alice):
        head, payload, signature = alice.token.split(".")
        alice.token = ".".join([head, payload, signature[::-1]])
        assert alice.get("/api/artifacts").status_code == 403

    def test_expired_token_is_403(self, alice, http):
        token = auth_service.create_access_token(
            {"sub": alice.username, "user_id": alice.user_id, "username": alice.username},
            expires_delta=timedelta(seconds=-10),
        )
        resp = http.get("/api/artifacts", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403

    def test_token_refreshed_late_in_lifetime(self, alice, http):
        """Past 80% of its lifetime a token still works and a new one comes back in X-New-Token."""
        token = auth_service.create_access_token(
            {
                "sub": alice.username,
                "user_id": alice.user_id,
                "username": alice.username,
                "iat": int(time.time()) - 600,
            },
            expires_delta=timedelta(seconds=60),
        )
        resp = http.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        new_token = resp.headers.get("X-New-Token")
        assert new_token and new_token != token

        again = http.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert again.status_code == 200
        assert again.json()["id"] == alice.user_id

    def test_fresh_token_not_refreshed(self, alice):
        resp = alice.get("/api/auth/me")
        assert resp.status_code == 200
        assert "X-New-Token" not in resp.headers

    def test_me_for_deleted_account_is_404(self, http):
        """A validly signed token whose user no longer exists."""
        token = auth_service.create_access_token(
            {"sub": "ghost", "user_id": 987654321, "username": "ghost"}
        )
        resp = http.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "User not found"


class TestCrossCutting:

    def test_health(self, http):
        resp = http.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_request_id_header(self, http):
        resp = http.get("/api/health")
        assert resp.headers.get("X-Request-ID")
