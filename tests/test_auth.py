"""
Auth, health and seed tests.

Coverage:
  - login: token + user, bad credentials 401, missing fields 400
  - register: default role, admin creation gated, duplicates 409
  - profile: read and update
  - JWT: round trip, expired token treated as anonymous
  - role hierarchy helper
  - health endpoint, demo seed
"""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from sqlalchemy import func, select

from maturity_tracker.auth import has_role
from maturity_tracker.models import db
from maturity_tracker.models.campaign import Campaign
from maturity_tracker.models.evaluation import MeasurementEvaluation
from maturity_tracker.services.jwt_service import decode_access_token, generate_access_token
from maturity_tracker.services.seed_service import HACKATHON_CAMPAIGN, seed_demo
from maturity_tracker.utils.errors import E

TEST_PASSWORD = "secret123"


class TestLogin:
    def test_success(self, client, member_user):
        res = client.post(
            "/api/v1/auth/login", json={"username": "teammember", "password": TEST_PASSWORD},
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["user"]["role"] == "team_member"
        assert "password_hash" not in body["user"]
        assert decode_access_token(body["token"])["sub"] == member_user.id

    def test_wrong_password(self, client, member_user):
        res = client.post(
            "/api/v1/auth/login", json={"username": "teammember", "password": "nope"},
        )
        assert res.status_code == 401
        assert res.get_json() == {"error": "Invalid credentials", "code": E.UNAUTHORIZED}

    def test_unknown_user(self, client):
        res = client.post("/api/v1/auth/login", json={"username": "ghost", "password": "x"})
        assert res.status_code == 401

    def test_missing_fields(self, client):
        assert client.post("/api/v1/auth/login", json={}).status_code == 400


class TestRegister:
    def test_defaults_to_member(self, client):
        res = client.post(
            "/api/v1/auth/register",
            json={"username": "newbie", "password": "pw123456", "email": "newbie@example.com"},
        )
        assert res.status_code == 201
        body = res.get_json()
        assert body["user"]["role"] == "team_member"
        assert body["token"]

    def test_anonymous_cannot_create_admin(self, client):
        res = client.post(
            "/api/v1/auth/register",
            json={"username": "boss", "password": "pw", "email": "boss@example.com", "role": "admin"},
        )
        assert res.status_code == 403
        assert res.get_json()["error"] == "Only admins can create admin users"

    def test_admin_can_create_admin(self, client, admin_headers):
        res = client.post(
            "/api/v1/auth/register",
            json={"username": "boss", "password": "pw", "email": "boss@example.com", "role": "admin"},
            headers=admin_headers,
        )
        assert res.status_code == 201
        assert res.get_json()["user"]["role"] == "admin"

    def test_duplicate_username(self, client, member_user):
        res = client.post(
            "/api/v1/auth/register",
            json={"username": "teammember", "password": "pw", "email": "other@example.com"},
        )
        assert res.status_code == 409
        assert res.get_json()["error"] == "Username already exists"

    def test_invalid_email(self, client):
        res = client.post(
            "/api/v1/auth/register",
            json={"username": "x", "password": "pw", "email": "not-an-email"},
        )
        assert res.status_code == 400


class TestProfile:
    def test_get(self, client, member_headers):
        res = client.get("/api/v1/auth/profile", headers=member_headers)
        assert res.status_code == 200
        assert res.get_json()["username"] == "teammember"

    def test_requires_login(self, client):
        assert client.get("/api/v1/auth/profile").status_code == 401

    def test_update_password_then_login(self, client, member_headers):
        res = client.put(
            "/api/v1/auth/profile", json={"password": "changed-pw"}, headers=member_headers,
        )
        assert res.status_code == 200
        res = client.post(
            "/api/v1/auth/login", json={"username": "teammember", "password": "changed-pw"},
        )
        assert res.status_code == 200

    def test_empty_update(self, client, member_headers):
        res = client.put("/api/v1/auth/profile", json={}, headers=member_headers)
        assert res.status_code == 400


class TestTokens:
    def test_round_trip(self, admin_user):
        payload = decode_access_token(generate_access_token(admin_user))
        assert payload["sub"] == admin_user.id
        assert payload["role"] == "admin"
        assert payload["type"] == "access"

    def test_expired_token_is_anonymous(self, client, app, admin_user):
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": str(admin_user.id),
                "role": "admin",
                "type": "access",
                "iat": now - timedelta(hours=2),
                "exp": now - timedelta(hours=1),
            },
            app.config["SECRET_KEY"],
            algorithm="HS256",
        )
        res = client.get("/api/v1/campaigns", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    @pytest.mark.parametrize("role,minimum,allowed", [
        ("admin", "team_owner", True),
        ("team_owner", "team_owner", True),
        ("team_member", "team_owner", False),
        (None, "team_member", False),
    ])
    def test_role_hierarchy(self, role, minimum, allowed):
        assert has_role(role, minimum) is allowed


class TestHealth:
    def test_ok_without_auth(self, client):
        res = client.get("/api/v1/health")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "ok"
        assert body["checks"]["database"]["status"] == "ok"
        assert "X-Request-ID" in res.headers


class TestSeed:
    def test_seed_demo(self):
        summary = seed_demo()
        assert summary["users"] == 3
        assert summary["services"] == 6
        assert summary["measurements"] == 14

        campaign = db.session.get(Campaign, summary["campaign_id"])
        assert campaign.name == HACKATHON_CAMPAIGN
        assert campaign.status == "active"
        evaluations = db.session.execute(
            select(func.count(MeasurementEvaluation.id))
            .where(MeasurementEvaluation.campaign_id == campaign.id)
        ).scalar()
        assert evaluations == 6 * 8

    def test_seed_is_idempotent(self):
        seed_demo()
        assert seed_demo() == {"skipped": True}
