"""
Tests for registration, login, token refresh and logout.
"""

import time
from datetime import datetime
from uuid import uuid4

from roomledger.extensions import db
from roomledger.models import RevokedToken

API = "/api/v1"


def _login(client, email):
    return client.post(f"{API}/auth/login", json={"email": email, "password": "secret123"}).get_json()["data"]


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestRegister:
    def test_register_renter_links_existing_profile(self, client, seed):
        resp = client.post(f"{API}/auth/register", json={
            "name": "Bao Nguyen",
            "email": "Bao@Example.com",
            "password": "hunter22",
        })

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "success"
        assert body["data"]["user"]["email"] == "bao@example.com"
        assert body["data"]["user"]["role"] == "RENTER"
        assert body["data"]["user"]["renter_id"] == seed.other_renter.id
        assert body["data"]["access_token"]
        assert body["data"]["refresh_token"]

    def test_admin_role_cannot_self_register(self, client, seed):
        resp = client.post(f"{API}/auth/register", json={
            "name": "Mallory",
            "email": "mallory@example.com",
            "password": "hunter22",
            "role": "ADMIN",
        })
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "forbidden"

    def test_duplicate_email_conflicts(self, client, seed):
        resp = client.post(f"{API}/auth/register", json={
            "name": "Linh",
            "email": "linh@example.com",
            "password": "hunter22",
        })
        assert resp.status_code == 409

    def test_missing_fields(self, client, seed):
        resp = client.post(f"{API}/auth/register", json={"email": "x@example.com"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"

    def test_short_password(self, client, seed):
        resp = client.post(f"{API}/auth/register", json={
            "name": "Short", "email": "short@example.com", "password": "abc",
        })
        assert resp.status_code == 400


class TestLogin:
    def test_login_returns_tokens(self, client, seed):
        resp = client.post(f"{API}/auth/login", json={"email": "linh@example.com", "password": "secret123"})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["user"]["renter_id"] == seed.renter.id
        assert data["access_token"]

    def test_wrong_password(self, client, seed):
        resp = client.post(f"{API}/auth/login", json={"email": "linh@example.com", "password": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "unauthorized"

    def test_refresh_issues_new_access_token(self, client, seed):
        tokens = client.post(
            f"{API}/auth/login", json={"email": "admin@example.com", "password": "secret123"}
        ).get_json()["data"]

        resp = client.post(f"{API}/auth/refresh", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
        assert resp.status_code == 200
        assert resp.get_json()["data"]["access_token"]


class TestSession:
    def test_me(self, client, renter_headers):
        resp = client.get(f"{API}/auth/me", headers=renter_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["email"] == "linh@example.com"

    def test_missing_token_is_unauthorized(self, client, seed):
        resp = client.get(f"{API}/properties")
        assert resp.status_code == 401
        assert resp.get_json()["status"] == "error"

    def test_logout_revokes_token(self, client, renter_headers):
        assert client.post(f"{API}/auth/logout", headers=renter_headers).status_code == 200

        resp = client.get(f"{API}/auth/me", headers=renter_headers)
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token has been revoked"

    def test_logout_revokes_refresh_token(self, client, seed):
        tokens = _login(client, "linh@example.com")

        resp = client.post(f"{API}/auth/logout", headers=_bearer(tokens["access_token"]),
                           json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200

        resp = client.post(f"{API}/auth/refresh", headers=_bearer(tokens["refresh_token"]))
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token has been revoked"
        assert RevokedToken.query.count() == 2

    def test_logout_rejects_foreign_refresh_token(self, client, seed):
        mine = _login(client, "linh@example.com")
        theirs = _login(client, "admin@example.com")

        resp = client.post(f"{API}/auth/logout", headers=_bearer(mine["access_token"]),
                           json={"refresh_token": theirs["refresh_token"]})

        assert resp.status_code == 400
        assert client.post(f"{API}/auth/refresh", headers=_bearer(theirs["refresh_token"])).status_code == 200

    def test_logout_rejects_garbage_refresh_token(self, client, seed):
        tokens = _login(client, "linh@example.com")

        resp = client.post(f"{API}/auth/logout", headers=_bearer(tokens["access_token"]),
                           json={"refresh_token": "not-a-token"})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "validation_error"


class TestRevokedTokens:
    def test_prune_drops_only_expired_entries(self, app):
        now = int(time.time())
        RevokedToken.revoke({"jti": uuid4().hex, "type": "access", "sub": "someone", "exp": now - 3600})
        fresh = RevokedToken.revoke({"jti": uuid4().hex, "type": "refresh", "sub": "someone", "exp": now + 3600})
        db.session.commit()

        assert RevokedToken.prune() == 1
        db.session.commit()

        assert [t.jti for t in RevokedToken.query.all()] == [fresh.jti]

    def test_revoke_is_idempotent(self, app):
        payload = {"jti": uuid4().hex, "type": "access", "sub": "admin", "exp": int(time.time()) + 60}
        first = RevokedToken.revoke(payload)
        db.session.commit()

        assert RevokedToken.revoke(payload) is None
        assert first.user_id is None
        assert first.expires_at > datetime.utcnow()


class TestHealth:
    def test_health(self, client):
        resp = client.get(f"{API}/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"

    def test_unknown_route_uses_error_envelope(self, client):
        resp = client.get(f"{API}/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"
