"""
HTTP-контракт: статусы, тела {"error": ...}, изоляция пользователей.
"""

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from main import create_app


class TestAuthAPI:

    def test_signup_example(self, client, signup, headers):
        token, data = signup("ana", "ana@x.com", "secret1")

        assert data["user"]["coins"] == 100
        assert data["user"]["plan"] == "free"
        assert "createdAt" in data["user"]
        assert "password" not in data["user"] and "passwordHash" not in data["user"]

        response = client.get("/api/user/servers", headers=headers(token))
        assert response.status_code == 200
        servers = response.json()["servers"]
        assert len(servers) == 1
        assert servers[0]["status"] == "offline"
        assert servers[0]["ownerId"] == data["user"]["id"]

    def test_signup_conflict(self, client, signup):
        signup("ana", "ana@x.com", "secret1")
        response = client.post(
            "/api/auth/signup",
            json={"username": "other", "email": "ana@x.com", "password": "secret1"},
        )
        assert response.status_code == 409
        assert "error" in response.json()

    @pytest.mark.parametrize("body", [
        {"username": "an", "email": "ana@x.com", "password": "secret1"},
        {"username": "ana", "email": "nope", "password": "secret1"},
        {"username": "ana", "email": "ana@x.com", "password": "123"},
        {"username": "ana", "email": "ana@x.com"},
        {},
    ])
    def test_signup_validation(self, client, body):
        response = client.post("/api/auth/signup", json=body)
        assert response.status_code == 400
        assert response.json()["error"]

    def test_login_with_email_or_username(self, client, signup):
        signup()
        by_email = client.post("/api/auth/login", json={"email": "ana@x.com", "password": "secret1"})
        by_username = client.post("/api/auth/login", json={"email": "ana", "password": "secret1"})

        assert by_email.status_code == 200
        assert by_username.status_code == 200
        assert by_email.json()["user"]["username"] == "ana"
        assert by_email.json()["token"]

    def test_login_failures(self, client, signup):
        signup()
        wrong = client.post("/api/auth/login", json={"email": "ana@x.com", "password": "bad-password"})
        missing = client.post("/api/auth/login", json={"email": "", "password": "secret1"})

        assert wrong.status_code == 401
        assert wrong.json() == {"error": "Invalid credentials"}
        assert missing.status_code == 400

    def test_verify(self, client, signup, headers):
        token, data = signup()
        response = client.get("/api/auth/verify", headers=headers(token))

        assert response.status_code == 200
        assert response.json()["user"]["id"] == data["user"]["id"]

    @pytest.mark.parametrize("auth", [None, "Bearer garbage", "Token abc"])
    def test_verify_rejects_bad_tokens(self, client, auth):
        hdrs = {"Authorization": auth} if auth else {}
        response = client.get("/api/auth/verify", headers=hdrs)
        assert response.status_code == 401
        assert "error" in response.json()

    def test_token_from_other_secret_rejected(self, client, signup, headers, test_settings, scheduler):
        token, _ = signup()
        other_app = create_app(Settings(SECRET_KEY="other-secret", STATIC_DIR=test_settings.STATIC_DIR),
                               scheduler=scheduler)
        response = TestClient(other_app).get("/api/auth/verify", headers=headers(token))
        assert response.status_code == 401

    def test_logout_is_acknowledged(self, client, signup, headers):
        token, _ = signup()
        assert client.post("/api/auth/logout", headers=headers(token)).status_code == 200
        assert client.post("/api/auth/logout").status_code == 401

    def test_forgot_password(self, client, signup):
        signup()
        known = client.post("/api/auth/forgot", json={"email": "ana@x.com"})
        unknown = client.post("/api/auth/forgot", json={"email": "ghost@x.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()


class TestUserAPI:

    def test_profile(self, client, signup, headers):
        token, _ = signup()
        response = client.get("/api/user/profile", headers=headers(token))
        assert response.json()["user"]["email"] == "ana@x.com"

    def test_settings_merge(self, client, signup, headers):
        token, _ = signup()
        client.put("/api/user/settings", json={"theme": "dark", "emails": True}, headers=headers(token))
        response = client.post("/api/user/settings", json={"emails": False}, headers=headers(token))

        assert response.status_code == 200
        assert response.json()["settings"] == {"theme": "dark", "emails": False}
        assert client.get("/api/user/settings", headers=headers(token)).json()["settings"] == {
            "theme": "dark", "emails": False,
        }

    def test_databases_empty(self, client, signup, headers):
        token, _ = signup()
        response = client.get("/api/user/databases", headers=headers(token))
        assert response.json() == {"databases": []}

    def test_requires_token(self, client):
        assert client.get("/api/user/servers").status_code == 401
        assert client.get("/api/user/databases").status_code == 401


class TestServerAPI:

    def _create(self, client, token, headers, name="Bot", type="discord-bot"):
        return client.post(
            "/api/servers/create",
            json={"name": name, "type": type, "runtime": "python", "region": "eu-west", "resources": "free"},
            headers=headers(token),
        )

    def test_create(self, client, signup, headers):
        token, _ = signup()
        response = self._create(client, token, headers)

        assert response.status_code == 201
        server = response.json()["server"]
        assert server["status"] == "offline"
        assert server["specs"] == {"ram": "512MB", "storage": "10GB", "cpu": "1 Core"}

    def test_create_validation(self, client, signup, headers):
        token, _ = signup()
        assert self._create(client, token, headers, name="").status_code == 400
        assert self._create(client, token, headers, type="toaster").status_code == 400

    def test_free_quota(self, client, signup, headers):
        token, _ = signup()  # стартовый сервер уже есть
        assert self._create(client, token, headers, name="two").status_code == 201
        assert self._create(client, token, headers, name="three").status_code == 201

        response = self._create(client, token, headers, name="four")
        assert response.status_code == 403
        assert "limit" in response.json()["error"]

    def test_start_then_settle(self, client, signup, headers, scheduler):
        token, data = signup()
        server_id = data["server"]["id"]

        response = client.post(f"/api/servers/{server_id}/start", headers=headers(token))
        assert response.status_code == 200
        assert response.json()["server"]["status"] == "starting"
        assert response.json()["message"]

        scheduler.run_all()
        servers = client.get("/api/user/servers", headers=headers(token)).json()["servers"]
        assert servers[0]["status"] == "online"

    def test_stop_and_restart(self, client, signup, headers, scheduler):
        token, data = signup()
        server_id = data["server"]["id"]

        stop = client.post(f"/api/servers/{server_id}/stop", headers=headers(token))
        restart = client.post(f"/api/servers/{server_id}/restart", headers=headers(token))
        assert stop.json()["server"]["status"] == "stopping"
        assert restart.json()["server"]["status"] == "restarting"

        scheduler.run_all()
        servers = client.get("/api/user/servers", headers=headers(token)).json()["servers"]
        assert servers[0]["status"] == "online"

    def test_isolation(self, client, signup, headers):
        ana_token, ana = signup("ana", "ana@x.com", "secret1")
        bob_token, _ = signup("bob", "bob@x.com", "secret1")
        ana_server = ana["server"]["id"]

        bob_servers = client.get("/api/user/servers", headers=headers(bob_token)).json()["servers"]
        assert ana_server not in [s["id"] for s in bob_servers]

        for action in ("start", "stop", "restart"):
            response = client.post(f"/api/servers/{ana_server}/{action}", headers=headers(bob_token))
            assert response.status_code == 404
        assert client.delete(f"/api/servers/{ana_server}", headers=headers(bob_token)).status_code == 404

        ana_servers = client.get("/api/user/servers", headers=headers(ana_token)).json()["servers"]
        assert [s["status"] for s in ana_servers] == ["offline"]

    def test_delete(self, client, signup, headers):
        token, data = signup()
        extra = self._create(client, token, headers).json()["server"]["id"]

        assert client.delete(f"/api/servers/{data['server']['id']}", headers=headers(token)).status_code == 200
        assert client.post(f"/api/servers/{extra}/delete", headers=headers(token)).status_code == 200

        assert client.get("/api/user/servers", headers=headers(token)).json()["servers"] == []
        assert client.delete(f"/api/servers/{extra}", headers=headers(token)).status_code == 404

    def test_unknown_server(self, client, signup, headers):
        token, _ = signup()
        response = client.post("/api/servers/does-not-exist/start", headers=headers(token))
        assert response.status_code == 404
        assert response.json() == {"error": "Server not found"}


class TestBillingAPI:

    def test_info(self, client, signup, headers):
        token, _ = signup()
        info = client.get("/api/billing/info", headers=headers(token)).json()

        assert info["plan"] == "free"
        assert info["usage"] == {"servers": 1, "maxServers": 3, "databases": 0}

    def test_upgrade_raises_quota_and_is_recorded(self, client, signup, headers):
        token, _ = signup()
        response = client.post("/api/billing/upgrade", json={"plan": "premium"}, headers=headers(token))
        assert response.status_code == 200
        assert response.json()["user"]["plan"] == "premium"

        info = client.get("/api/billing/info", headers=headers(token)).json()
        assert info["usage"]["maxServers"] == 10

        history = client.get("/api/billing/history", headers=headers(token)).json()["history"]
        assert [h["plan"] for h in history] == ["premium"]
        assert "coinsAfter" in history[0]

    @pytest.mark.parametrize("plan", ["free", "platinum", None])
    def test_upgrade_invalid_plan(self, client, signup, headers, plan):
        token, _ = signup()
        response = client.post("/api/billing/upgrade", json={"plan": plan}, headers=headers(token))
        assert response.status_code == 400


class TestSystemAPI:

    def test_health_counts(self, client, signup):
        signup()
        data = client.get("/health").json()

        assert data["status"] == "OK"
        assert data["users"] == 1
        assert data["servers"] == 1
        assert data["environment"] == "development"

    def test_public_config(self, client):
        data = client.get("/api/config").json()
        assert data["version"]
        assert set(data["features"]) >= {"signup", "oauth", "databases"}

    def test_spa_route_serves_index(self, client):
        response = client.get("/dashboard")
        assert response.status_code == 200
        assert "<title>Bot Hosting</title>" in response.text
        assert response.headers["Cache-Control"] == "public, max-age=3600"

    def test_static_asset_cache_headers(self, client):
        response = client.get("/app.js")
        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "public, max-age=31536000"

    def test_missing_file_is_json_404(self, client):
        response = client.get("/missing.png")
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}

    def test_unknown_api_path_is_json_404(self, client):
        response = client.get("/api/nothing/here")
        assert response.status_code == 404
        assert "error" in response.json()


class TestUnexpectedErrors:

    def _app(self, tmp_path, environment):
        settings = Settings(
            SECRET_KEY="test-secret",
            ENVIRONMENT=environment,
            STATIC_DIR=str(tmp_path / "no-static"),
        )
        app = create_app(settings)

        @app.get("/boom")
        def boom():
            raise RuntimeError("kaboom")

        return TestClient(app, raise_server_exceptions=False)

    def test_message_visible_in_development(self, tmp_path):
        response = self._app(tmp_path, "development").get("/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "kaboom"}

    def test_message_hidden_in_production(self, tmp_path):
        response = self._app(tmp_path, "production").get("/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
