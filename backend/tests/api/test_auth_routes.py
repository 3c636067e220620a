"""Tests for the auth and user endpoints."""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.config import APISettings
from api.dependencies import ServiceContainer


PASSWORD = "Secur3Pass!"


def _register(client, registration):
    response = client.post("/api/auth/register", json=registration)
    assert response.status_code == 201, response.text
    return response


class TestRegisterEndpoint:
    """Tests for POST /api/auth/register."""

    def test_register_sets_session_cookie(self, client, registration):
        response = _register(client, registration)
        data = response.json()

        assert data["user"]["username"] == "alice"
        assert data["user"]["did"] == "did:web:syr.example:users:alice"
        assert data["profile"]["display_name"] == "Alice"
        assert "password_hash" not in data["user"]
        assert client.cookies.get("session") == data["token"]

        cookie = response.headers["set-cookie"].lower()
        assert "httponly" in cookie
        assert "samesite=strict" in cookie
        assert "path=/" in cookie
        assert f"max-age={7 * 24 * 60 * 60}" in cookie

    def test_duplicate_username_conflicts(self, client, registration):
        _register(client, registration)
        response = client.post("/api/auth/register", json=registration)

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "ALREADY_EXISTS"

    def test_weak_password_is_rejected(self, client, registration):
        response = client.post(
            "/api/auth/register", json={**registration, "password": "password"}
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["kind"] == "VALIDATION"
        assert "password" in error["details"]["fields"]

    def test_unknown_field_is_rejected(self, client, registration):
        response = client.post("/api/auth/register", json={**registration, "role": "ADMIN"})
        assert response.status_code == 400


class TestLoginEndpoint:
    """Tests for POST /api/auth/login."""

    def test_login(self, client, registration):
        _register(client, registration)
        client.cookies.clear()

        response = client.post(
            "/api/auth/login", json={"username": "alice", "password": PASSWORD}
        )

        assert response.status_code == 200
        assert client.cookies.get("session") == response.json()["token"]

    def test_wrong_password_and_unknown_user_look_the_same(self, client, registration):
        _register(client, registration)
        client.cookies.clear()

        wrong = client.post("/api/auth/login", json={"username": "alice", "password": "Wrong1Pass"})
        unknown = client.post("/api/auth/login", json={"username": "mallory", "password": PASSWORD})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["error"]["kind"] == "INVALID_CREDENTIALS"
        assert wrong.headers["www-authenticate"] == "Bearer"


class TestCurrentUser:
    """Tests for GET /api/users/me and the session cookie/header."""

    def test_me_with_cookie(self, client, registration):
        token = _register(client, registration).json()["token"]

        response = client.get("/api/users/me")

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["profile"]["display_name"] == "Alice"
        assert data["session_id"]
        assert token not in response.text

    def test_me_with_bearer_header(self, client, registration):
        token = _register(client, registration).json()["token"]
        client.cookies.clear()

        response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    def test_me_anonymous(self, client):
        response = client.get("/api/users/me")
        assert response.status_code == 401
        assert response.json()["error"]["kind"] == "UNAUTHENTICATED"

    def test_invalid_cookie_is_cleared(self, client):
        response = client.get("/api/users/me", headers={"Cookie": "session=garbage"})

        assert response.status_code == 401
        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith("session=")
        assert "max-age=0" in cookie


class TestLogoutEndpoints:
    """Tests for POST /api/auth/logout and /api/auth/logout-all."""

    def test_logout_revokes_session(self, client, registration):
        token = _register(client, registration).json()["token"]

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert client.cookies.get("session") is None
        replay = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert replay.status_code == 401

    def test_logout_without_session_succeeds(self, client):
        assert client.post("/api/auth/logout").status_code == 200

    def test_double_logout(self, client, registration):
        _register(client, registration)
        assert client.post("/api/auth/logout").status_code == 200
        assert client.post("/api/auth/logout").status_code == 200

    def test_logout_all(self, client, registration):
        first = _register(client, registration).json()["token"]
        second = client.post(
            "/api/auth/login", json={"username": "alice", "password": PASSWORD}
        ).json()["token"]

        response = client.post("/api/auth/logout-all")

        assert response.status_code == 200
        assert response.json()["revoked"] == 2
        for token in (first, second):
            replay = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
            assert replay.status_code == 401

    def test_logout_all_requires_auth(self, client):
        assert client.post("/api/auth/logout-all").status_code == 401


class TestProfileEndpoints:
    """Tests for /api/users/me/profile."""

    def test_get_profile(self, client, registration):
        _register(client, registration)
        response = client.get("/api/users/me/profile")
        assert response.status_code == 200
        assert response.json()["display_name"] == "Alice"

    def test_update_profile(self, client, registration):
        _register(client, registration)

        response = client.patch("/api/users/me/profile", json={"bio": "Hello"})

        assert response.status_code == 200
        assert response.json()["bio"] == "Hello"
        assert response.json()["display_name"] == "Alice"
        assert client.get("/api/users/me").json()["profile"]["bio"] == "Hello"

    @pytest.mark.parametrize(
        "body", [{"display_name": None}, {"avatar_url": "nope"}, {"unknown": 1}]
    )
    def test_update_profile_rejects_bad_input(self, client, registration, body):
        _register(client, registration)
        response = client.patch("/api/users/me/profile", json=body)
        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "VALIDATION"

    def test_update_profile_requires_auth(self, client):
        assert client.patch("/api/users/me/profile", json={"bio": "x"}).status_code == 401


class TestSecurityHeaders:
    def test_headers_on_every_response(self, client):
        response = client.get("/api/health")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["x-xss-protection"] == "1; mode=block"


class TestProductionCookie:
    def test_cookie_is_secure_in_production(self, app_settings, store, hasher, registration):
        settings = app_settings.model_copy(update={"environment": "production"})
        container = ServiceContainer(settings, store=store, hasher=hasher, run_sweeper=False)
        app = create_app(container, APISettings(_env_file=None))

        with TestClient(app) as client:
            response = _register(client, registration)

        assert "secure" in response.headers["set-cookie"].lower()
