"""HTTP tests for the auth and users blueprints via the Flask test client."""
import pytest

from models.user import UserRole

JANE = {"name": "Jane", "email": "jane@x.com", "password": "secret1"}


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registered(client):
    resp = client.post("/api/v1/auth/register", json=JANE, headers={"User-Agent": "pytest-agent"})
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def admin(client, app):
    manager = app.extensions["session_manager"]
    manager.register(name="Admin", email="admin@x.com", password="secret1", role=UserRole.ADMIN)
    resp = client.post("/api/v1/auth/login", json={"email": "admin@x.com", "password": "secret1"})
    return resp.get_json()


class TestRegisterEndpoint:
    def test_success_shape(self, registered):
        assert registered["access_token"]
        assert registered["refresh_token"]
        assert registered["token_type"] == "bearer"
        assert registered["expires_in"] == 15 * 60
        assert set(registered["user"]) == {"id", "name", "email", "role"}
        assert registered["user"]["role"] == "user"

    def test_never_returns_password_material(self, client):
        resp = client.post("/api/v1/auth/register", json=JANE)
        body = resp.get_data(as_text=True)
        assert "secret1" not in body
        assert "argon2" not in body

    def test_duplicate_email(self, client, registered):
        resp = client.post("/api/v1/auth/register", json={**JANE, "email": "JANE@x.com"})
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "CONFLICT"

    def test_cannot_self_assign_a_role(self, client, app):
        resp = client.post("/api/v1/auth/register", json={**JANE, "role": "admin"})
        assert resp.status_code == 422
        assert "role" in resp.get_json()["details"]
        assert app.extensions["session_manager"].credentials.find_by_email("jane@x.com") is None

    @pytest.mark.parametrize("payload", [
        {"name": "J", "email": "jane@x.com", "password": "secret1"},
        {"name": "Jane", "email": "not-an-email", "password": "secret1"},
        {"name": "Jane", "email": "jane@x.com", "password": "123"},
        {"name": "Jane", "email": "jane@x.com", "password": "secret1", "role": "superuser"},
        {},
    ])
    def test_validation(self, client, payload):
        resp = client.post("/api/v1/auth/register", json=payload)
        assert resp.status_code == 422
        assert resp.get_json()["error"] == "VALIDATION_ERROR"


class TestLoginEndpoint:
    def test_success(self, client, registered):
        resp = client.post("/api/v1/auth/login", json={"email": "jane@x.com", "password": "secret1"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == registered["user"]["id"]

    def test_bad_credentials_are_indistinguishable(self, client, registered):
        wrong = client.post("/api/v1/auth/login", json={"email": "jane@x.com", "password": "wrong"})
        unknown = client.post("/api/v1/auth/login", json={"email": "ghost@x.com", "password": "secret1"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json()


class TestRefreshEndpoint:
    def test_refresh(self, client, registered):
        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": registered["refresh_token"]})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["refresh_token"] == registered["refresh_token"]
        me = client.get("/api/v1/auth/me", headers=_bearer(body["access_token"]))
        assert me.status_code == 200

    def test_unknown_token(self, client):
        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "UNAUTHORIZED"

    def test_missing_token(self, client):
        assert client.post("/api/v1/auth/refresh", json={}).status_code == 422


class TestLogoutEndpoints:
    def test_logout_requires_bearer(self, client, registered):
        resp = client.post("/api/v1/auth/logout", json={"refresh_token": registered["refresh_token"]})
        assert resp.status_code == 401

    def test_logout_then_refresh(self, client, registered):
        headers = _bearer(registered["access_token"])
        payload = {"refresh_token": registered["refresh_token"]}
        assert client.post("/api/v1/auth/logout", json=payload, headers=headers).status_code == 204
        assert client.post("/api/v1/auth/logout", json=payload, headers=headers).status_code == 204
        assert client.post("/api/v1/auth/refresh", json=payload).status_code == 401

    def test_logout_all(self, client, registered):
        second = client.post("/api/v1/auth/login", json={"email": "jane@x.com", "password": "secret1"}).get_json()
        resp = client.post("/api/v1/auth/logout-all", headers=_bearer(registered["access_token"]))
        assert resp.status_code == 204
        for token in (registered["refresh_token"], second["refresh_token"]):
            assert client.post("/api/v1/auth/refresh", json={"refresh_token": token}).status_code == 401


class TestIdentityEndpoints:
    def test_me(self, client, registered):
        resp = client.get("/api/v1/auth/me", headers=_bearer(registered["access_token"]))
        data = resp.get_json()["data"]
        assert data["email"] == "jane@x.com"
        assert data["is_active"] is True
        assert "password_hash" not in data

    def test_sessions_list_hides_tokens(self, client, registered):
        resp = client.get("/api/v1/auth/sessions", headers=_bearer(registered["access_token"]))
        sessions = resp.get_json()["data"]
        assert len(sessions) == 1
        assert sessions[0]["user_agent"] == "pytest-agent"
        assert "token" not in sessions[0]

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "bearer abc", "Bearer not.a.jwt"])
    def test_bad_authorization_header(self, client, header):
        headers = {"Authorization": header} if header is not None else {}
        resp = client.get("/api/v1/auth/me", headers=headers)
        assert resp.status_code == 401

    def test_admin_area_forbidden_for_user(self, client, registered):
        resp = client.get("/api/v1/auth/admin", headers=_bearer(registered["access_token"]))
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "FORBIDDEN"

    def test_admin_area(self, client, admin):
        resp = client.get("/api/v1/auth/admin", headers=_bearer(admin["access_token"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["role"] == "admin"


class TestUserAdministration:
    def test_role_change_reaches_next_access_token(self, client, admin, registered):
        user_id = registered["user"]["id"]
        resp = client.patch(f"/api/v1/users/{user_id}/role", json={"role": "admin"},
                            headers=_bearer(admin["access_token"]))
        assert resp.status_code == 200

        # Old access token still carries the old role until it is refreshed
        assert client.get("/api/v1/auth/admin", headers=_bearer(registered["access_token"])).status_code == 403
        fresh = client.post("/api/v1/auth/refresh", json={"refresh_token": registered["refresh_token"]}).get_json()
        assert client.get("/api/v1/auth/admin", headers=_bearer(fresh["access_token"])).status_code == 200

    def test_non_admin_cannot_change_roles(self, client, registered):
        user_id = registered["user"]["id"]
        resp = client.patch(f"/api/v1/users/{user_id}/role", json={"role": "admin"},
                            headers=_bearer(registered["access_token"]))
        assert resp.status_code == 403

    def test_deactivate(self, client, admin, registered):
        user_id = registered["user"]["id"]
        resp = client.post(f"/api/v1/users/{user_id}/deactivate", headers=_bearer(admin["access_token"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["is_active"] is False

        login = client.post("/api/v1/auth/login", json={"email": "jane@x.com", "password": "secret1"})
        assert login.status_code == 403
        refresh = client.post("/api/v1/auth/refresh", json={"refresh_token": registered["refresh_token"]})
        assert refresh.status_code == 401

    def test_delete(self, client, admin, registered):
        user_id = registered["user"]["id"]
        headers = _bearer(admin["access_token"])
        assert client.delete(f"/api/v1/users/{user_id}", headers=headers).status_code == 204
        assert client.delete(f"/api/v1/users/{user_id}", headers=headers).status_code == 404
        login = client.post("/api/v1/auth/login", json={"email": "jane@x.com", "password": "secret1"})
        assert login.status_code == 401


class TestOperationalEndpoints:
    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"

    def test_purge_sessions_command(self, app):
        result = app.test_cli_runner().invoke(args=["purge-sessions"])
        assert result.exit_code == 0
        assert "Purged 0 session(s)" in result.output
