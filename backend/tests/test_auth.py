"""
Authentication tests.

Verifies:
- Signup validation (short password, duplicates, role escalation)
- Login failures are 401 without revealing which part was wrong
- Token claims mirror the stored user; expired/forged tokens are rejected
"""

from datetime import timedelta

import jwt
import pytest

from greenverse.models import User
from greenverse.roles import Role
from greenverse.services.token_service import issue_token
from greenverse.time_utils import utcnow


# =============================================================================
# SIGNUP
# =============================================================================


class TestSignup:
    """POST /api/auth/signup."""

    def test_short_password_rejected(self, client, db_session):
        resp = client.post("/api/auth/signup", json={
            "email": "new@example.com", "password": "abc", "name": "New",
        })
        assert resp.status_code == 400
        assert "at least 6" in resp.get_json()["error"]
        assert db_session.query(User).count() == 0

    def test_missing_fields_rejected(self, client, db_session):
        resp = client.post("/api/auth/signup", json={"email": "new@example.com"})
        assert resp.status_code == 400

    def test_public_signup_creates_client(self, client, db_session):
        resp = client.post("/api/auth/signup", json={
            "email": "New@Example.com", "password": "secret1", "name": "New",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["token"]
        assert body["user"]["role"] == "client"
        assert body["user"]["email"] == "new@example.com"
        assert "password_hash" not in body["user"]

    def test_duplicate_email_conflict(self, client, client_user):
        resp = client.post("/api/auth/signup", json={
            "email": client_user.email, "password": "secret1", "name": "Again",
        })
        assert resp.status_code == 409

    def test_anonymous_cannot_create_admin(self, client, db_session):
        resp = client.post("/api/auth/signup", json={
            "email": "evil@example.com", "password": "secret1", "name": "Evil", "role": "admin",
        })
        assert resp.status_code == 403
        assert db_session.query(User).count() == 0

    def test_client_cannot_create_cluster_account(self, client, client_headers, cluster_a):
        cluster, _ = cluster_a
        resp = client.post("/api/auth/signup", headers=client_headers, json={
            "email": "c@example.com", "password": "secret1", "name": "C",
            "role": "cluster", "cluster_id": cluster.id,
        })
        assert resp.status_code == 403

    def test_admin_creates_cluster_account(self, client, admin_headers, cluster_a):
        cluster, _ = cluster_a
        resp = client.post("/api/auth/signup", headers=admin_headers, json={
            "email": "worker@example.com", "password": "secret1", "name": "Worker",
            "role": "cluster", "cluster_id": cluster.id,
        })
        assert resp.status_code == 201
        assert resp.get_json()["user"]["cluster_id"] == cluster.id

    def test_cluster_account_needs_existing_cluster(self, client, admin_headers):
        resp = client.post("/api/auth/signup", headers=admin_headers, json={
            "email": "worker@example.com", "password": "secret1", "name": "Worker",
            "role": "cluster", "cluster_id": "missing",
        })
        assert resp.status_code == 404

    def test_unknown_role_rejected(self, client, admin_headers):
        resp = client.post("/api/auth/signup", headers=admin_headers, json={
            "email": "x@example.com", "password": "secret1", "name": "X", "role": "superuser",
        })
        assert resp.status_code == 400


# =============================================================================
# LOGIN + TOKENS
# =============================================================================


class TestLogin:
    """POST /api/auth/login and token verification."""

    def test_wrong_password_unauthorized(self, client, client_user):
        resp = client.post("/api/auth/login", json={"email": client_user.email, "password": "wrong-one"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid email or password"

    def test_unknown_email_unauthorized(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid email or password"

    def test_missing_credentials(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "x@example.com"})
        assert resp.status_code == 400

    def test_token_claims_match_user(self, app, client, cluster_a):
        _, manager = cluster_a
        resp = client.post("/api/auth/login", json={"email": manager.email, "password": "secret123"})
        assert resp.status_code == 200

        claims = jwt.decode(resp.get_json()["token"], app.config["JWT_SECRET"], algorithms=["HS256"])
        assert claims["id"] == manager.id
        assert claims["role"] == "cluster"
        assert claims["cluster_id"] == manager.cluster_id
        assert claims["email"] == manager.email
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_me_returns_current_user(self, client, client_user, client_headers):
        resp = client.get("/api/auth/me", headers=client_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == client_user.id

    def test_me_requires_token(self, client, db_session):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Access token required"

    def test_expired_token_rejected(self, client, client_user):
        token = issue_token(client_user, now=utcnow() - timedelta(days=8))
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Token expired"

    def test_token_signed_with_other_secret_rejected(self, client, client_user):
        forged = jwt.encode(
            {"id": client_user.id, "role": "admin", "iat": utcnow(), "exp": utcnow() + timedelta(days=1)},
            "not-the-secret",
            algorithm="HS256",
        )
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

    def test_malformed_header_rejected(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401

    def test_deleted_user_token_rejected(self, client, db_session, client_user, client_headers):
        db_session.delete(client_user)
        db_session.commit()
        resp = client.get("/api/auth/me", headers=client_headers)
        assert resp.status_code == 401

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.CLIENT])
    def test_role_comes_from_database(self, client, make_user, headers_for, role):
        """/me reports the role stored on the user row."""
        user = make_user(role)
        resp = client.get("/api/auth/me", headers=headers_for(user))
        assert resp.get_json()["user"]["role"] == role.value
