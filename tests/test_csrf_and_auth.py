import logging
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from sdba.auth.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    generate_csrf_token,
    requires_csrf_protection,
    verify_csrf_token,
)
from sdba.auth.dependencies import SESSION_COOKIE_NAME, SUPABASE_JWT_SECRET, is_admin_user, require_admin
from sdba.logging_config import SensitiveDataFilter
from sdba.main import app
from tests.conftest import ADMIN_USER


def _token(**claims):
    payload = {"sub": str(uuid4()), "email": "someone@example.com", "aud": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, SUPABASE_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def admin_without_csrf_override():
    async def override_require_admin():
        return ADMIN_USER

    app.dependency_overrides[require_admin] = override_require_admin
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(require_admin, None)


def test_csrf_token_endpoint_sets_cookie_and_reuses_it(client):
    first = client.get("/api/csrf-token")

    assert first.status_code == 200
    token = first.json()["token"]
    assert first.json()["ok"] is True
    assert verify_csrf_token(token)
    assert client.cookies.get(CSRF_COOKIE_NAME) == token
    assert "httponly" in first.headers["set-cookie"].lower()

    second = client.get("/api/csrf-token")
    assert second.json()["token"] == token


def test_admin_post_without_csrf_token_is_rejected(admin_without_csrf_override):
    response = admin_without_csrf_override.post("/api/admin/approve", json={"registration_id": str(uuid4())})

    assert response.status_code == 403
    assert response.json() == {"ok": False, "error": "CSRF token validation failed", "code": "CSRF_ERROR"}


def test_admin_post_with_matching_csrf_token_passes(admin_without_csrf_override):
    client = admin_without_csrf_override
    token = client.get("/api/csrf-token").json()["token"]

    response = client.post(
        "/api/admin/approve",
        json={"registration_id": str(uuid4())},
        headers={CSRF_HEADER_NAME: token},
    )

    # CSRF passed; the unknown registration is then refused by the transition.
    assert response.status_code == 409


def test_admin_post_with_mismatched_csrf_token_is_rejected(admin_without_csrf_override):
    client = admin_without_csrf_override
    client.get("/api/csrf-token")

    response = client.post(
        "/api/admin/approve",
        json={"registration_id": str(uuid4())},
        headers={CSRF_HEADER_NAME: generate_csrf_token()},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "CSRF_ERROR"


def test_admin_post_with_non_ascii_csrf_header_is_rejected(admin_without_csrf_override):
    client = admin_without_csrf_override
    token = client.get("/api/csrf-token").json()["token"]

    response = client.post(
        "/api/admin/approve",
        json={"registration_id": str(uuid4())},
        headers={CSRF_HEADER_NAME: f"{token[:-1]}\u00e9".encode("utf-8")},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "CSRF_ERROR"


def test_csrf_token_signature():
    token = generate_csrf_token()
    value, signature = token.split(".")

    assert verify_csrf_token(token)
    assert not verify_csrf_token(f"{value}.{'0' * len(signature)}")
    assert not verify_csrf_token("no-dot")
    assert not verify_csrf_token(None)
    assert not verify_csrf_token("abc.d\u00e9f")
    assert requires_csrf_protection("post")
    assert not requires_csrf_protection("GET")


@pytest.mark.parametrize(
    "user, expected",
    [
        ({"app_metadata": {"roles": ["admin"]}}, True),
        ({"user_metadata": {"roles": ["viewer", "admin"]}}, True),
        ({"app_metadata": {"role": "admin"}}, True),
        ({"user_metadata": {"is_admin": True}}, True),
        ({"user_metadata": {"is_admin": "yes"}}, False),
        ({"app_metadata": {"roles": ["viewer"]}}, False),
        ({}, False),
        (None, False),
    ],
)
def test_is_admin_user(user, expected):
    assert is_admin_user(user) is expected


def test_admin_bearer_token_is_accepted(client):
    token = _token(app_metadata={"roles": ["admin"]})

    response = client.get("/api/admin/counters", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["total"] == 0


def test_admin_session_cookie_is_accepted(client):
    client.cookies.set(SESSION_COOKIE_NAME, _token(user_metadata={"is_admin": True}))

    assert client.get("/api/admin/counters").status_code == 200


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": f"Bearer {jwt.encode({'sub': 'x', 'app_metadata': {'roles': ['admin']}}, 'wrong-secret', algorithm='HS256')}"},
        {"Authorization": f"Bearer {_token(app_metadata={'roles': ['viewer']})}"},
    ],
)
def test_admin_routes_require_admin_session(client, headers):
    response = client.get("/api/admin/counters", headers=headers)

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_ping_echoes_request_id(client):
    response = client.get("/ping", headers={"X-Request-ID": "req-123"})

    assert response.json() == {"message": "pong"}
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/ping").headers["X-Request-ID"]


def test_sensitive_data_filter_redacts_secrets():
    record = logging.LogRecord(
        "sdba", logging.INFO, __file__, 1,
        "login %s with Authorization: Bearer abc.def.ghi phone 91234567", ("alice@example.com",), None,
    )

    SensitiveDataFilter().filter(record)

    message = record.getMessage()
    assert "abc.def.ghi" not in message
    assert "alice@example.com" not in message
    assert "ali***@example.com" in message
    assert "91234567" not in message
