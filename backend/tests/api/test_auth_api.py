# tests/api/test_auth_api.py
"""HTTP contract of the authentication endpoints (``/api/v1/auth``)."""

from __future__ import annotations

import pytest
from research_core.services._shared.dto import OrgStatus, Role
from tests.factories.organization import OrganizationFactory
from tests.factories.user import UserFactory
from tests.helpers.utils import bearer, login

BASE = "/api/v1/auth"
PASSWORD = "s3cret-Passw0rd"


def _login(client, user, password=PASSWORD):
    return login(client, user.email, password)


@pytest.fixture()
def user():
    return UserFactory(password=PASSWORD, role=Role.ADMIN)


class TestLogin:
    def test_login_returns_tokens_and_user(self, client, user):
        resp = _login(client, user)

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["tokens"]["token_type"] == "bearer"
        assert data["tokens"]["access_token"]
        assert data["tokens"]["refresh_token"]
        assert data["user"] == {
            "id": str(user.id),
            "email": user.email,
            "role": "admin",
            "orgId": str(user.org_id),
        }

    def test_wrong_password_is_401_problem(self, client, user):
        resp = _login(client, user, password="nope")

        assert resp.status_code == 401
        assert resp.mimetype == "application/problem+json"
        body = resp.get_json()
        assert body["code"] == "unauthorized"
        assert body["detail"] == "Invalid credentials"
        assert body["request_id"]

    def test_payload_validation_is_422(self, client):
        resp = client.post(f"{BASE}/login", json={"email": "not-an-email"})

        assert resp.status_code == 422
        errors = resp.get_json()["details"]["errors"]
        assert "email" in errors
        assert "password" in errors

    def test_inactive_org_is_403(self, client, session):
        org = OrganizationFactory(status=OrgStatus.PENDING)
        member = UserFactory(organization=org, password=PASSWORD)

        resp = _login(client, member)

        assert resp.status_code == 403
        assert resp.get_json()["detail"] == "Organization is inactive or not approved"


class TestRefresh:
    def test_refresh_rotates_and_replay_is_401(self, client, user):
        tokens = _login(client, user).get_json()["data"]["tokens"]

        first = client.post(f"{BASE}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert first.status_code == 200
        rotated = first.get_json()["data"]
        assert rotated["refresh_token"] != tokens["refresh_token"]

        replay = client.post(f"{BASE}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert replay.status_code == 401

        again = client.post(f"{BASE}/refresh", json={"refresh_token": rotated["refresh_token"]})
        assert again.status_code == 200

    def test_access_token_cannot_refresh(self, client, user):
        tokens = _login(client, user).get_json()["data"]["tokens"]
        resp = client.post(f"{BASE}/refresh", json={"refresh_token": tokens["access_token"]})
        assert resp.status_code == 401


class TestLogout:
    def test_logout_kills_the_session(self, client, user):
        tokens = _login(client, user).get_json()["data"]["tokens"]

        resp = client.post(f"{BASE}/logout", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 204

        resp = client.post(f"{BASE}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 401

    def test_logout_with_garbage_is_still_204(self, client):
        resp = client.post(f"{BASE}/logout", json={"refresh_token": "garbage"})
        assert resp.status_code == 204

    def test_rotated_token_cannot_end_the_live_session(self, client, user):
        stale = _login(client, user).get_json()["data"]["tokens"]["refresh_token"]
        fresh = client.post(f"{BASE}/refresh", json={"refresh_token": stale}).get_json()["data"]

        resp = client.post(f"{BASE}/logout", json={"refresh_token": stale, "all_sessions": True})
        assert resp.status_code == 204

        resp = client.post(f"{BASE}/refresh", json={"refresh_token": fresh["refresh_token"]})
        assert resp.status_code == 200

    def test_logout_all_requires_auth(self, client):
        assert client.post(f"{BASE}/logout-all").status_code == 401

    def test_logout_all_revokes_every_session(self, client, user):
        a = _login(client, user).get_json()["data"]["tokens"]
        b = _login(client, user).get_json()["data"]["tokens"]

        resp = client.post(f"{BASE}/logout-all", headers=bearer(a["access_token"]))
        assert resp.status_code == 204

        for pair in (a, b):
            resp = client.post(f"{BASE}/refresh", json={"refresh_token": pair["refresh_token"]})
            assert resp.status_code == 401


class TestWhoAmI:
    def test_whoami(self, client, user):
        tokens = _login(client, user).get_json()["data"]["tokens"]

        resp = client.get(f"{BASE}/whoami", headers=bearer(tokens["access_token"]))

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {
            "id": str(user.id),
            "role": "admin",
            "orgId": str(user.org_id),
        }

    @pytest.mark.parametrize("header", [None, "Bearer", "Basic abc", "Bearer not.a.jwt"])
    def test_whoami_rejects_missing_or_bad_credentials(self, client, header):
        headers = {"Authorization": header} if header else {}
        assert client.get(f"{BASE}/whoami", headers=headers).status_code == 401

    def test_kill_switch_locks_out_existing_tokens(self, client, user, session):
        tokens = _login(client, user).get_json()["data"]["tokens"]

        user.organization.is_active = False
        session.flush()

        resp = client.get(f"{BASE}/whoami", headers=bearer(tokens["access_token"]))
        assert resp.status_code == 403


def test_health(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["token_store"] == "sql"


def test_unknown_route_is_problem_json(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"
