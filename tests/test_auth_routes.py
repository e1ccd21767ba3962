"""
tests/test_auth_routes.py -- Integration tests for the /auth endpoints.

These tests exercise the full stack: FastAPI routing -> request validation
-> AuthService -> AccountStore -> response serialization and the error
envelope rendered by api/main.py.

Coverage:
  - POST /auth/signup: 201 body shape, 409 on email/username, 400 per-field
  - POST /auth/login: token in Authorization header, no-store, 401 generic
  - GET /auth/validate: 200 userId, 401 for missing/malformed header and
    for invalid tokens, one message for every token failure

Fixtures used (from conftest.py):
  - api_client: (client, store) -- one shared in-memory DB for this module,
    so every test registers its own usernames.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from auth.store import AccountStore

PASSWORD = "Secr3t!"


def _signup(client: TestClient, username: str, email: str, **extra):
    return client.post("/auth/signup", json={"username": username, "email": email, "password": PASSWORD, **extra})


def _login(client: TestClient, identifier: str, password: str = PASSWORD):
    return client.post("/auth/login", json={"usernameOrEmail": identifier, "password": password})


class TestSignup:
    def test_created(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, store = api_client
        resp = _signup(client, "signup_ok", "signup_ok@example.com", firstName="Sig", lastName="Nup")
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["username"] == "signup_ok"
        assert data["message"] == "Signup successful"
        assert isinstance(data["userId"], int)
        stored = store.get_by_id(data["userId"])
        assert (stored.first_name, stored.last_name) == ("Sig", "Nup")

    def test_duplicate_email(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        assert _signup(client, "dup_email_1", "dup@example.com").status_code == 201
        resp = _signup(client, "dup_email_2", "dup@example.com")
        assert resp.status_code == 409
        assert resp.json()["error"] == {"code": "conflict", "message": "Email is already registered"}

    def test_duplicate_username(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        assert _signup(client, "dup_user", "dup_user_1@example.com").status_code == 201
        resp = _signup(client, "dup_user", "dup_user_2@example.com")
        assert resp.status_code == 409
        assert resp.json()["error"]["message"] == "Username is already taken"

    def test_missing_fields(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        resp = client.post("/auth/signup", json={"username": "nofields"})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "validation"
        assert set(error["fields"]) == {"email", "password"}

    @pytest.mark.parametrize(
        "body, field",
        [
            ({"username": "ab", "email": "short@example.com", "password": PASSWORD}, "username"),
            ({"username": "has space", "email": "space@example.com", "password": PASSWORD}, "username"),
            ({"username": "bademail", "email": "not-an-email", "password": PASSWORD}, "email"),
            ({"username": "shortpw", "email": "shortpw@example.com", "password": "123"}, "password"),
        ],
    )
    def test_invalid_fields(self, api_client: tuple[TestClient, AccountStore], body: dict, field: str) -> None:
        client, _ = api_client
        resp = client.post("/auth/signup", json=body)
        assert resp.status_code == 400
        assert field in resp.json()["error"]["fields"]


class TestLogin:
    def test_token_in_header(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        user_id = _signup(client, "login_ok", "login_ok@example.com").json()["userId"]
        resp = _login(client, "login_ok")
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"userId": user_id, "username": "login_ok"}
        assert resp.headers["authorization"].startswith("Bearer ")
        assert resp.headers["cache-control"] == "no-store"
        assert "token" not in resp.json()

    def test_login_by_email(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        _signup(client, "login_email", "login_email@example.com")
        resp = _login(client, "login_email@example.com")
        assert resp.status_code == 200
        assert resp.json()["username"] == "login_email"

    def test_wrong_password(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        _signup(client, "login_bad", "login_bad@example.com")
        resp = _login(client, "login_bad", "wrong")
        assert resp.status_code == 401
        assert resp.json()["error"] == {"code": "unauthorized", "message": "Invalid username, email, or password"}
        assert "authorization" not in resp.headers

    def test_unknown_user_same_message(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        resp = _login(client, "ghost")
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid username, email, or password"

    def test_deactivated(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, store = api_client
        user_id = _signup(client, "login_off", "login_off@example.com").json()["userId"]
        store.set_active(user_id, False)
        resp = _login(client, "login_off")
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Account is deactivated"

    def test_blank_identifier(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        resp = client.post("/auth/login", json={"usernameOrEmail": "", "password": PASSWORD})
        assert resp.status_code == 400
        assert "usernameOrEmail" in resp.json()["error"]["fields"]


class TestValidate:
    def test_valid_token(self, api_client: tuple[TestClient, AccountStore]) -> None:
        client, _ = api_client
        user_id = _signup(client, "validate_ok", "validate_ok@example.com").json()["userId"]
        auth_header = _login(client, "validate_ok").headers["authorization"]
        resp = client.get("/auth/validate", headers={"Authorization": auth_header})
        assert resp.status_code == 200
        assert resp.json() == {"userId": user_id}

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Token abc", "bearer abc"])
    def test_missing_or_malformed_header(self, api_client: tuple[TestClient, AccountStore], header) -> None:
        client, _ = api_client
        headers = {} if header is None else {"Authorization": header}
        resp = client.get("/auth/validate", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    @pytest.mark.parametrize("token", ["garbage", "a.b.c", "eyJhbGciOiJIUzI1NiJ9.e30.AAAA"])
    def test_invalid_token(self, api_client: tuple[TestClient, AccountStore], token: str) -> None:
        client, _ = api_client
        resp = client.get("/auth/validate", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid or expired token"
