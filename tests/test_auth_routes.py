from datetime import datetime, timedelta, timezone
from functools import partial

from jose import jwt

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, API
from core.container import container
from models.auth import ROLE_EDITOR


def login(client, username, password):
    return client.post(f"{API}/auth/login", json={"username": username, "password": password})


def test_login_returns_token_and_profile(client):
    res = login(client, ADMIN_USERNAME, ADMIN_PASSWORD)

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["token"]
    assert body["expires_at"]
    assert body["user"]["username"] == ADMIN_USERNAME
    assert body["user"]["role"] == "admin"
    assert "password_hash" not in body["user"]


def test_login_rejects_bad_credentials(client):
    for username, password in ((ADMIN_USERNAME, "wrong"), ("nobody", ADMIN_PASSWORD)):
        res = login(client, username, password)
        assert res.status_code == 401
        assert res.json() == {"success": False, "error": "Invalid credentials",
                              "code": "INVALID_CREDENTIALS"}


def test_login_requires_fields(client):
    res = client.post(f"{API}/auth/login", json={"username": ADMIN_USERNAME})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_me_logout_then_token_is_dead(client, admin_headers):
    me = client.get(f"{API}/auth/me", headers=admin_headers)
    assert me.status_code == 200
    assert me.json()["user"]["username"] == ADMIN_USERNAME
    assert me.json()["user"]["last_login"] is not None

    res = client.post(f"{API}/auth/logout", headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Logged out successfully"}

    after = client.get(f"{API}/auth/me", headers=admin_headers)
    assert after.status_code == 401
    assert after.json()["code"] == "INVALID_TOKEN"
    assert client.post(f"{API}/admin/cache/clear", headers=admin_headers).status_code == 401


def test_missing_or_malformed_authorization(client):
    assert client.get(f"{API}/auth/me").json()["error"] == "Authorization header required"
    assert client.get(f"{API}/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401
    res = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["code"] == "INVALID_TOKEN"


def test_signed_token_without_session_is_rejected(client, settings):
    token = jwt.encode(
        {"sub": "1", "username": ADMIN_USERNAME, "role": "admin",
         "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        settings.jwt_secret_key,
        algorithm="HS256",
    )
    res = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_expired_token_is_rejected(client, settings):
    token = jwt.encode(
        {"sub": "1", "username": ADMIN_USERNAME, "role": "admin",
         "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.jwt_secret_key,
        algorithm="HS256",
    )
    res = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_sessions_are_independent(client):
    first = {"Authorization": f"Bearer {login(client, ADMIN_USERNAME, ADMIN_PASSWORD).json()['token']}"}
    second = {"Authorization": f"Bearer {login(client, ADMIN_USERNAME, ADMIN_PASSWORD).json()['token']}"}

    client.post(f"{API}/auth/logout", headers=first)

    assert client.get(f"{API}/auth/me", headers=first).status_code == 401
    assert client.get(f"{API}/auth/me", headers=second).status_code == 200


def test_editor_cannot_use_admin_routes(client):
    user_auth = container.user_auth_service()
    client.portal.call(partial(user_auth.create_user, "editor", "editor-password", role=ROLE_EDITOR))

    token = login(client, "editor", "editor-password").json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.get(f"{API}/auth/me", headers=headers).json()["user"]["role"] == ROLE_EDITOR
    res = client.post(f"{API}/admin/cache/clear", headers=headers)
    assert res.status_code == 403
    assert res.json() == {"success": False, "error": "Admin access required", "code": "FORBIDDEN"}
    assert client.get(f"{API}/admin/categories", headers=headers).status_code == 403


def test_cleanup_removes_expired_sessions(client, admin_headers):
    cleanup = container.cleanup_service()
    results = client.portal.call(cleanup.run_once)

    assert results["expired_sessions"] == 0
    assert client.get(f"{API}/auth/me", headers=admin_headers).status_code == 200
