from datetime import timedelta
from types import SimpleNamespace

import pytest

from api import create_app
from services.notifications import WelcomeEmail
from utils.decorators import authenticate
from utils.exceptions import UnauthenticatedError, ExpiredTokenError, InvalidTokenError
from utils.security import create_jwt_token, utcnow

from tests.conftest import register, auth_header


def test_register_returns_user_and_tokens(client, services):
    resp = register(client, email="  New@Example.com ", name="New User")
    assert resp.status_code == 201

    body = resp.get_json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    assert "error" not in body

    user = body["data"]["user"]
    tokens = body["data"]["tokens"]
    assert user["email"] == "new@example.com"
    assert "password" not in user and "password_hash" not in user
    assert tokens["expires_in"] == 3600
    assert services.tokens.verify_access(tokens["access_token"]).user_id == user["id"]

    assert services.notifications.pending() == [WelcomeEmail(email="new@example.com", name="New User")]


def test_register_duplicate_email(client):
    register(client, email="dup@example.com")
    resp = register(client, email="DUP@example.com")

    assert resp.status_code == 409
    assert resp.get_json() == {"success": False, "error": "Email already registered"}


@pytest.mark.parametrize("payload", [
    {"email": "not-an-email", "password": "password123", "name": "X"},
    {"email": "x@example.com", "password": "123", "name": "X"},
    {"email": "x@example.com", "password": "password123", "name": "   "},
    {"email": "x@example.com", "password": "password123", "name": "n" * 256},
    {"email": "x@example.com", "password": "password123"},
])
def test_register_rejects_invalid_input(client, payload):
    resp = client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 400

    body = resp.get_json()
    assert body["success"] is False
    assert body["error"].startswith("Invalid input")
    assert "message" not in body


def test_login(client, user_tokens):
    resp = client.post("/api/v1/auth/login", json={"email": "TEST@example.com", "password": "password123"})
    assert resp.status_code == 200
    tokens = resp.get_json()["data"]["tokens"]
    assert tokens["refresh_token"] != user_tokens["refresh_token"]


@pytest.mark.parametrize("email,password", [
    ("test@example.com", "wrong-password"),
    ("nobody@example.com", "password123"),
])
def test_login_failures_look_the_same(client, user_tokens, email, password):
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Invalid email or password"}


def test_refresh_rotates_tokens(client, user_tokens):
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": user_tokens["refresh_token"]})
    assert resp.status_code == 200
    fresh = resp.get_json()["data"]
    assert fresh["refresh_token"] != user_tokens["refresh_token"]

    profile = client.get("/api/v1/profile", headers=auth_header(fresh["access_token"]))
    assert profile.status_code == 200

    reuse = client.post("/api/v1/auth/refresh", json={"refresh_token": user_tokens["refresh_token"]})
    assert reuse.status_code == 401
    assert reuse.get_json()["success"] is False


def test_refresh_requires_token(client):
    resp = client.post("/api/v1/auth/refresh", json={})
    assert resp.status_code == 400


def test_logout_revokes_every_session(client, user_tokens):
    second = client.post(
        "/api/v1/auth/login", json={"email": "test@example.com", "password": "password123"}
    ).get_json()["data"]["tokens"]

    resp = client.post("/api/v1/auth/logout", headers=auth_header(user_tokens["access_token"]))
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "message": "Logged out successfully"}

    for pair in (user_tokens, second):
        again = client.post("/api/v1/auth/refresh", json={"refresh_token": pair["refresh_token"]})
        assert again.status_code == 401


def test_logout_requires_auth(client):
    assert client.post("/api/v1/auth/logout").status_code == 401


def test_invalid_and_expired_tokens_get_the_same_response(client, app, user_tokens):
    user_id = client.get(
        "/api/v1/profile", headers=auth_header(user_tokens["access_token"])
    ).get_json()["data"]["id"]
    expired = create_jwt_token(
        user_id, "test@example.com", app.config["JWT_SECRET"], timedelta(hours=1),
        now=utcnow() - timedelta(hours=2),
    )

    garbage = client.get("/api/v1/profile", headers=auth_header("garbage"))
    stale = client.get("/api/v1/profile", headers=auth_header(expired))

    assert garbage.status_code == stale.status_code == 401
    assert garbage.get_json() == stale.get_json() == {"success": False, "error": "Invalid or expired token"}


@pytest.mark.parametrize("header", [None, "bearer abc", "Token abc", "Bearer"])
def test_malformed_authorization_header(client, header):
    headers = {"Authorization": header} if header is not None else {}
    resp = client.get("/api/v1/profile", headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_authenticate_collapses_token_errors():
    def verifier(error):
        def verify_access(token):
            raise error
        return SimpleNamespace(verify_access=verify_access)

    for error in (InvalidTokenError("bad"), ExpiredTokenError("old")):
        with pytest.raises(UnauthenticatedError) as excinfo:
            authenticate("Bearer abc", verifier(error))
        assert excinfo.type is UnauthenticatedError
        assert excinfo.value.message == "Invalid or expired token"

    ok = SimpleNamespace(verify_access=lambda token: SimpleNamespace(user_id=42))
    assert authenticate("Bearer abc", ok) == 42


def test_profile(client, user_tokens):
    resp = client.get("/api/v1/profile", headers=auth_header(user_tokens["access_token"]))
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["email"] == "test@example.com"
    assert data["name"] == "Test User"


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "message": "Server is running"}


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    body = resp.get_json()
    assert body["success"] is False
    assert "error" in body


def test_rate_limit():
    app = create_app("testing", overrides={"RATE_LIMIT_REQUESTS": 2})
    try:
        client = app.test_client()
        codes = [client.get("/api/v1/health").status_code for _ in range(3)]
        assert codes == [200, 200, 429]
        assert client.get("/api/v1/health").get_json()["success"] is False
    finally:
        app.extensions["services"].shutdown()


def test_forwarded_for_is_ignored_without_trusted_proxy():
    app = create_app("testing", overrides={"RATE_LIMIT_REQUESTS": 2})
    try:
        client = app.test_client()
        codes = [
            client.get("/api/v1/health", headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
            for i in range(3)
        ]
        assert codes == [200, 200, 429]
    finally:
        app.extensions["services"].shutdown()


def test_forwarded_for_is_used_behind_trusted_proxy():
    app = create_app("testing", overrides={"RATE_LIMIT_REQUESTS": 1, "TRUSTED_PROXY_COUNT": 1})
    try:
        client = app.test_client()
        first = client.get("/api/v1/health", headers={"X-Forwarded-For": "10.0.0.1"})
        other = client.get("/api/v1/health", headers={"X-Forwarded-For": "10.0.0.2"})
        again = client.get("/api/v1/health", headers={"X-Forwarded-For": "10.0.0.1"})
        assert (first.status_code, other.status_code, again.status_code) == (200, 200, 429)
    finally:
        app.extensions["services"].shutdown()
