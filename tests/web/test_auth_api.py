"""HTTP tests for end-user auth, the response envelope and credential extraction."""

import pytest
from fastapi.testclient import TestClient

from justadrop.web.server import create_fastapi_app

EMAIL = "volunteer@example.com"


@pytest.fixture
def client(app, config, fixed_otp):
    with TestClient(create_fastapi_app(app, config)) as client:
        yield client


def login(client, email, code="123456"):
    assert client.post("/api/v1/auth/otp/send", json={"email": email}).status_code == 200
    response = client.post("/api/v1/auth/otp/verify", json={"email": email, "code": code})
    assert response.status_code == 200
    client.cookies.clear()
    return response.json()["data"]["token"]


class TestOtpFlow:
    def test_send_returns_envelope(self, client):
        response = client.post("/api/v1/auth/otp/send", json={"email": EMAIL})
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"message": "OTP sent successfully"}}

    def test_verify_sets_session_cookie(self, client):
        client.post("/api/v1/auth/otp/send", json={"email": EMAIL})
        response = client.post("/api/v1/auth/otp/verify", json={"email": EMAIL, "code": "123456"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["is_new_user"] is True
        assert body["data"]["user"]["email"] == EMAIL

        cookie = response.headers["set-cookie"]
        assert f"sessionToken={body['data']['token']}" in cookie
        assert "HttpOnly" in cookie
        assert "Max-Age=2592000" in cookie
        assert "Path=/" in cookie
        assert "samesite=lax" in cookie.lower()
        assert "; Secure" not in cookie

        # The browser flow: the cookie alone authenticates
        me = client.get("/api/v1/auth/me")
        assert me.status_code == 200
        assert me.json()["data"]["user"]["email"] == EMAIL

    def test_wrong_code(self, client):
        client.post("/api/v1/auth/otp/send", json={"email": EMAIL})
        response = client.post("/api/v1/auth/otp/verify", json={"email": EMAIL, "code": "000000"})
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": {"message": "Invalid or expired OTP code", "type": "validation_error"},
        }

    def test_invalid_email(self, client):
        response = client.post("/api/v1/auth/otp/send", json={"email": "nope"})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Valid email is required"

    def test_malformed_body_is_400(self, client):
        response = client.post("/api/v1/auth/otp/verify", json={"email": EMAIL})
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"]["type"] == "validation_error"


class TestCredentialExtraction:
    def test_no_credentials(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": {"message": "Authentication required", "type": "unauthorized"}}

    def test_bearer_token(self, client):
        token = login(client, EMAIL)
        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_session_token_header(self, client):
        token = login(client, EMAIL)
        response = client.get("/api/v1/auth/me", headers={"X-Session-Token": token})
        assert response.status_code == 200

    def test_cookie_wins_over_bearer(self, client):
        cookie_token = login(client, "cookie@example.com")
        bearer_token = login(client, "bearer@example.com")
        response = client.get(
            "/api/v1/auth/me",
            headers={"Cookie": f"sessionToken={cookie_token}", "Authorization": f"Bearer {bearer_token}"},
        )
        assert response.json()["data"]["user"]["email"] == "cookie@example.com"

    def test_bearer_wins_over_session_header(self, client):
        bearer_token = login(client, "bearer@example.com")
        header_token = login(client, "header@example.com")
        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {bearer_token}", "X-Session-Token": header_token},
        )
        assert response.json()["data"]["user"]["email"] == "bearer@example.com"

    def test_invalid_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-session"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired session"


class TestLogout:
    def test_logout_revokes_and_clears_cookie(self, client):
        token = login(client, EMAIL)
        headers = {"Authorization": f"Bearer {token}"}

        response = client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["message"] == "Logged out successfully"
        assert "Max-Age=0" in response.headers["set-cookie"]

        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401

    def test_logout_without_session(self, client):
        assert client.post("/api/v1/auth/logout").status_code == 200


class TestHealth:
    def test_health_endpoints_are_not_enveloped(self, client):
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/health/liveness").json()["status"] == "alive"
        readiness = client.get("/health/readiness")
        assert readiness.status_code == 200
        assert readiness.json()["checks"] == {"database": "healthy"}

    def test_readiness_reports_unreachable_database(self, client, database):
        database.reachable = False
        response = client.get("/health/readiness")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


def test_unexpected_error_is_500_without_details(app, config, monkeypatch):
    async def broken(email):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(app, "send_otp", broken)
    with TestClient(create_fastapi_app(app, config), raise_server_exceptions=False) as client:
        response = client.post("/api/v1/auth/otp/send", json={"email": EMAIL})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": {"message": "An unexpected error occurred.", "type": "internal_server_error"},
    }


class TestModeratorRoutesWithoutXAuthId:
    def test_moderator_me_refused(self, client):
        response = client.get("/api/v1/moderator-auth/me", headers={"Authorization": "Bearer some-token"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "x-auth-id is not configured"

    def test_moderator_admin_refused(self, client):
        response = client.get("/api/v1/moderator/organizations", headers={"Authorization": "Bearer some-token"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "x-auth-id is not configured"
