"""
Tests for authentication and the admin authorization guard.

Covers:
- Password hashing
- Session token creation, decoding, expiry and tampering
- Session resolution into a caller identity (revocation, unknown users, stored role)
- The admin guard
- Session revocation and the logout endpoint
- CSRF and security-header middleware
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backoffice.core.auth import (
    CallerIdentity,
    authorize_admin,
    create_session_token,
    decode_session_token,
    hash_password,
    resolve_caller,
    revoke_session,
    verify_password,
)
from backoffice.core.middleware import (
    CSRF_COOKIE,
    CSRF_HEADER,
    DOCS_CSP,
    SECURITY_HEADERS,
    SESSION_COOKIE,
    CSRFMiddleware,
    SecurityHeadersMiddleware,
)
from backoffice.core.redis import revoked_session_key
from backoffice.core.results import FailureKind


# ---------------------------------------------------------------------------
# Unit Tests: Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("password123")
        assert hashed != "password123"
        assert verify_password("password123", hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-password")
        assert not verify_password("wrong-password", hashed)

    def test_different_hashes_for_same_password(self):
        """bcrypt uses random salt, so hashes differ."""
        assert hash_password("same-password") != hash_password("same-password")


# ---------------------------------------------------------------------------
# Unit Tests: Session tokens
# ---------------------------------------------------------------------------

class TestSessionTokens:
    def test_create_and_decode(self):
        token, jti = create_session_token("usr_1")
        payload = decode_session_token(token)
        assert payload["sub"] == "usr_1"
        assert payload["jti"] == jti

    def test_expired_token_rejected(self):
        token, _ = create_session_token("usr_1", expires_delta=timedelta(seconds=-1))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_session_token(token)

    def test_tampered_token_rejected(self):
        token, _ = create_session_token("usr_1")
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
        with pytest.raises(jwt.PyJWTError):
            decode_session_token(tampered)


# ---------------------------------------------------------------------------
# Session resolution
# ---------------------------------------------------------------------------

class TestResolveCaller:
    async def test_no_token(self, session):
        assert await resolve_caller(None, session) is None

    async def test_garbage_token(self, session):
        assert await resolve_caller("not-a-jwt", session) is None

    async def test_valid_token_uses_stored_role(self, session, admin_user, revocation_check):
        token, _ = create_session_token(admin_user.id)
        caller = await resolve_caller(token, session)
        assert caller is not None
        assert caller.user_id == admin_user.id
        assert caller.role == "admin"
        assert caller.is_admin

    async def test_unknown_user(self, session, revocation_check):
        token, _ = create_session_token("usr_missing")
        assert await resolve_caller(token, session) is None

    async def test_revoked_token(self, session, admin_user):
        token, jti = create_session_token(admin_user.id)
        with patch(
            "backoffice.core.auth.is_session_revoked",
            new_callable=AsyncMock,
            return_value=True,
        ) as revoked:
            assert await resolve_caller(token, session) is None
        revoked.assert_awaited_once_with(jti)


# ---------------------------------------------------------------------------
# Admin guard
# ---------------------------------------------------------------------------

class TestAuthorizeAdmin:
    def test_absent_session_is_unauthorized(self):
        failure = authorize_admin(None, "create users")
        assert failure.kind == FailureKind.UNAUTHORIZED
        assert failure.message == "Only admins can create users"
        assert failure.status_code == 401

    def test_non_admin_is_unauthorized(self):
        failure = authorize_admin(CallerIdentity("usr_1", "user"))
        assert failure.kind == FailureKind.UNAUTHORIZED

    def test_admin_passes(self):
        assert authorize_admin(CallerIdentity("usr_1", "admin")) is None




# ---------------------------------------------------------------------------
# Session revocation (in-memory Redis stand-in)
# ---------------------------------------------------------------------------

class FakeRedis:
    def __init__(self):
        self.store = {}

    async def set(self, key, value, ex=None):
        self.store[key] = (value, ex)

    async def exists(self, key):
        return int(key in self.store)


@pytest.fixture
def fake_redis():
    fake = FakeRedis()
    with patch("backoffice.core.auth.get_redis", new_callable=AsyncMock, return_value=fake):
        yield fake


class TestSessionRevocation:
    async def test_revoked_session_is_rejected(self, session, admin_user, fake_redis):
        token, jti = create_session_token(admin_user.id)
        assert await resolve_caller(token, session) is not None

        assert await revoke_session(token) == jti
        assert await resolve_caller(token, session) is None

    async def test_entry_expires_with_token(self, fake_redis):
        token, jti = create_session_token("usr_1", expires_delta=timedelta(minutes=10))
        await revoke_session(token)
        value, ttl = fake_redis.store[revoked_session_key(jti)]
        assert value == "1"
        assert 0 < ttl <= 600

    async def test_other_sessions_unaffected(self, session, admin_user, fake_redis):
        revoked, _ = create_session_token(admin_user.id)
        other, _ = create_session_token(admin_user.id)
        await revoke_session(revoked)
        caller = await resolve_caller(other, session)
        assert caller is not None
        assert caller.user_id == admin_user.id

    async def test_unusable_token_is_not_stored(self, fake_redis):
        expired, _ = create_session_token("usr_1", expires_delta=timedelta(seconds=-1))
        assert await revoke_session(expired) is None
        assert await revoke_session("not-a-jwt") is None
        assert fake_redis.store == {}


class TestLogoutEndpoint:
    async def test_logout_revokes_bearer_session(self, client, admin_user, fake_redis):
        token, jti = create_session_token(admin_user.id)
        resp = await client.post(
            "/api/v1/auth/logout", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert revoked_session_key(jti) in fake_redis.store

        cleared = resp.headers.get_list("set-cookie")
        assert any(c.startswith(f"{SESSION_COOKIE}=") for c in cleared)
        assert any(c.startswith(f"{CSRF_COOKIE}=") for c in cleared)

    async def test_logout_without_session(self, client, fake_redis):
        resp = await client.post("/api/v1/auth/logout")
        assert resp.status_code == 200
        assert fake_redis.store == {}


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

def _hardened_app(docs_enabled: bool = False) -> FastAPI:
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    app.add_middleware(SecurityHeadersMiddleware, docs_enabled=docs_enabled)
    app.add_middleware(CSRFMiddleware)

    @app.get("/api/v1/admin/orgs")
    async def list_orgs():
        return {"data": []}

    @app.post("/api/v1/admin/orgs")
    async def create_org():
        return {"ok": True}

    @app.delete("/api/v1/admin/users/{user_id}")
    async def remove_user(user_id: str):
        return {"success": True}

    @app.get("/docs")
    async def docs():
        return {"ok": True}

    @app.post("/webhook")
    async def webhook():
        return {"ok": True}

    return app


class TestSecurityHeadersMiddleware:
    def test_headers_present(self):
        resp = TestClient(_hardened_app()).get("/docs")
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value

    def test_api_responses_not_cached(self):
        client = TestClient(_hardened_app())
        assert client.get("/api/v1/admin/orgs").headers["cache-control"] == "no-store"
        assert "cache-control" not in client.get("/docs").headers

    def test_docs_policy_only_when_enabled(self):
        locked = TestClient(_hardened_app()).get("/docs")
        assert locked.headers["content-security-policy"] == SECURITY_HEADERS["Content-Security-Policy"]

        relaxed = TestClient(_hardened_app(docs_enabled=True)).get("/docs")
        assert relaxed.headers["content-security-policy"] == DOCS_CSP

        api = TestClient(_hardened_app(docs_enabled=True)).get("/api/v1/admin/orgs")
        assert api.headers["content-security-policy"] == SECURITY_HEADERS["Content-Security-Policy"]


class TestCSRFMiddleware:
    def _client(self, **cookies) -> TestClient:
        return TestClient(_hardened_app(), cookies={SESSION_COOKIE: "jwt", **cookies})

    def test_get_passes_without_csrf(self):
        assert self._client().get("/api/v1/admin/orgs").status_code == 200

    def test_post_without_session_cookie_passes(self):
        assert TestClient(_hardened_app()).post("/api/v1/admin/orgs").status_code == 200

    def test_post_with_bearer_skips_csrf(self):
        resp = self._client().post(
            "/api/v1/admin/orgs", headers={"Authorization": "Bearer token"}
        )
        assert resp.status_code == 200

    def test_non_bearer_authorization_still_checked(self):
        resp = self._client().post(
            "/api/v1/admin/orgs", headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )
        assert resp.status_code == 403

    @pytest.mark.parametrize(
        "method,path",
        [("post", "/api/v1/admin/orgs"), ("delete", "/api/v1/admin/users/usr_1")],
    )
    def test_cookie_mutation_without_token_fails(self, method, path):
        resp = getattr(self._client(), method)(path)
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Invalid or missing CSRF token"}

    def test_matching_token_passes(self):
        client = self._client(**{CSRF_COOKIE: "csrf-token"})
        resp = client.post("/api/v1/admin/orgs", headers={CSRF_HEADER: "csrf-token"})
        assert resp.status_code == 200

    def test_mismatched_token_fails(self):
        client = self._client(**{CSRF_COOKIE: "token-a"})
        resp = client.post("/api/v1/admin/orgs", headers={CSRF_HEADER: "token-b"})
        assert resp.status_code == 403

    def test_routes_outside_api_not_checked(self):
        assert self._client().post("/webhook").status_code == 200
