from unittest.mock import AsyncMock, patch

import httpx
import pytest

import api.auth_routes as auth_routes
from api.auth_routes import get_supabase_auth
from auth.session import AuthError, Session
from config.settings import AppConfig
from services.settings_service import SettingsServiceError


def _make_session() -> Session:
    return Session(
        user_id="user-123",
        email="user@example.com",
        access_token="access-token",
        refresh_token="refresh-token",
    )


class DummyAuth:
    """Stands in for SupabaseAuth; each test sets the behaviour it needs."""

    def __init__(self, session=None, error=None):
        self.session = session or _make_session()
        self.error = error
        self.calls = []

    def _result(self, name, *args):
        self.calls.append((name, args))
        if self.error:
            raise self.error
        return self.session

    def signup(self, email, password):
        return self._result("signup", email, password)

    def login(self, email, password):
        return self._result("login", email, password)

    def refresh_session(self, refresh_token):
        return self._result("refresh_session", refresh_token)

    def logout(self, access_token):
        self._result("logout", access_token)

    def request_password_reset(self, email, redirect_to=None):
        self._result("request_password_reset", email, redirect_to)

    def reset_password(self, token, new_password):
        self._result("reset_password", token, new_password)


@pytest.fixture
def use_auth(app):
    def _install(dummy: DummyAuth) -> DummyAuth:
        app.dependency_overrides[get_supabase_auth] = lambda: dummy
        return dummy

    return _install


def test_login_returns_session(client, use_auth):
    use_auth(DummyAuth())

    response = client.post("/api/auth/login", json={"email": "user@example.com", "password": "secret"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["user_id"] == "user-123"
    assert payload["access_token"] == "access-token"
    assert payload["refresh_token"] == "refresh-token"


def test_signup_seeds_profile_and_settings(client, use_auth, settings_service):
    use_auth(DummyAuth())

    response = client.post("/api/auth/signup", json={"email": "user@example.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json()["email"] == "user@example.com"
    settings_service.seed_account_defaults.assert_called_once_with("user-123", "user@example.com")


def test_signup_survives_seeding_failure(client, use_auth, settings_service):
    use_auth(DummyAuth())
    settings_service.seed_account_defaults.side_effect = SettingsServiceError("insert denied")

    response = client.post("/api/auth/signup", json={"email": "user@example.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json()["access_token"] == "access-token"


def test_failed_signup_does_not_seed(client, use_auth, settings_service):
    use_auth(DummyAuth(error=AuthError("Supabase error 422: User already registered")))

    response = client.post("/api/auth/signup", json={"email": "user@example.com", "password": "secret"})

    assert response.status_code == 401
    settings_service.seed_account_defaults.assert_not_called()


def test_signup_rejects_short_password(client):
    response = client.post("/api/auth/signup", json={"email": "user@example.com", "password": "abc"})
    assert response.status_code == 422


def test_login_failure_returns_401(client, use_auth):
    use_auth(DummyAuth(error=AuthError("Supabase error 400: invalid_grant")))

    response = client.post("/api/auth/login", json={"email": "user@example.com", "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "authentication_failed"


@pytest.mark.parametrize(
    "code, expected_status",
    [("upstream_error", 502), ("validation_error", 400), ("configuration_error", 500)],
)
def test_auth_error_codes_map_to_status(client, use_auth, code, expected_status):
    use_auth(DummyAuth(error=AuthError("failure", code=code)))

    response = client.post("/api/auth/refresh", json={"refresh_token": "r"})

    assert response.status_code == expected_status
    assert response.json()["detail"] == {"code": code, "message": "failure"}


def test_missing_credentials_returns_configuration_error(client, monkeypatch):
    monkeypatch.setattr(auth_routes, "get_config", lambda: AppConfig())

    response = client.post("/api/auth/login", json={"email": "user@example.com", "password": "secret"})

    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "configuration_error"


def test_logout_revokes_current_token(client, use_auth):
    dummy = use_auth(DummyAuth())

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert dummy.calls == [("logout", ("test-token",))]


def test_request_reset_passes_redirect(client, use_auth):
    dummy = use_auth(DummyAuth())

    response = client.post(
        "/api/auth/request-reset",
        json={"email": "user@example.com", "redirect_to": "http://localhost:5173/reset"},
    )

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert dummy.calls == [("request_password_reset", ("user@example.com", "http://localhost:5173/reset"))]


def test_reset_password_with_expired_token(client, use_auth):
    use_auth(DummyAuth(error=AuthError("Recovery token is invalid or expired.")))

    response = client.post("/api/auth/reset-password", json={"token": "old", "new_password": "secret123"})

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "authentication_failed"


def test_reset_password_rejects_short_password(client):
    response = client.post("/api/auth/reset-password", json={"token": "t", "new_password": "abc"})
    assert response.status_code == 422


def test_session_returns_user(client):
    response = client.get("/api/auth/session")
    assert response.status_code == 200
    assert response.json() == {"user_id": "9870edb5-2741-4c0a-b5cd-494a498f7485", "email": "freelancer@example.com"}


# ---------------------------------------------------------------------------
# Bearer token validation against Supabase
# ---------------------------------------------------------------------------

def _user_response(status_code: int, payload: dict) -> httpx.Response:
    return httpx.Response(status_code, json=payload, request=httpx.Request("GET", "https://test/auth/v1/user"))


@pytest.mark.parametrize("status_code", [401, 403])
def test_invalid_token_returns_401(anonymous_client, status_code):
    with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=_user_response(status_code, {"msg": "bad jwt"}))):
        response = anonymous_client.get("/api/auth/session", headers={"Authorization": "Bearer bad"})

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "unauthorized"


def test_upstream_failure_returns_502(anonymous_client):
    with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=_user_response(500, {}))):
        response = anonymous_client.get("/api/auth/session", headers={"Authorization": "Bearer token"})

    assert response.status_code == 502


def test_valid_token_resolves_user(anonymous_client):
    user = {"id": "user-42", "email": "someone@example.com"}
    with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=_user_response(200, user))):
        response = anonymous_client.get("/api/auth/session", headers={"Authorization": "Bearer good"})

    assert response.status_code == 200
    assert response.json() == {"user_id": "user-42", "email": "someone@example.com"}
