"""HTTP tests against a fully configured application."""
from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from core.context import AppContext
from core.startup import StartupSequence, StartupStatus, default_stages

API = "/inkwell/api/v0.1"


def _started(ctx: AppContext) -> AppContext:
    result = asyncio.run(StartupSequence(default_stages()).run(ctx))
    assert result.status is StartupStatus.READY, result.error
    return ctx


ADMIN_PASSWORD = "s3cret"


@pytest.fixture
def started_ctx(make_settings, database) -> AppContext:
    return _started(AppContext.create(make_settings(admin_password=ADMIN_PASSWORD), database=database))


@pytest.fixture
def client(started_ctx):
    with TestClient(started_ctx.app) as test_client:
        yield test_client


@pytest.fixture
def admin(client):
    """The same client, signed in as Administrator."""
    response = client.post(f"{API}/session/", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return client


class TestFrontend:
    def test_homepage_uses_theme(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "<title>Inkwell</title>" in response.text
        assert 'href="/assets/css/screen.css"' in response.text

    def test_environment_header_outside_production(self, client):
        assert client.get("/").headers["X-Inkwell-Environment"] == "testing"

    def test_theme_assets_served(self, client):
        response = client.get("/assets/css/screen.css")
        assert response.status_code == 200


class TestAdmin:
    def test_redirects_to_trailing_slash(self, client):
        response = client.get("/inkwell", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "/inkwell/"

    def test_shows_first_run_notification(self, admin):
        response = admin.get("/inkwell/")

        assert response.status_code == 200
        assert "Welcome to Inkwell." in response.text
        assert 'id="inkwell-first-run"' in response.text
        assert "<strong>http://localhost:2368</strong>" in response.text

    def test_shows_mail_warning(self, admin):
        assert "could not find a mail transport" in admin.get("/inkwell/").text

    def test_hides_notifications_when_signed_out(self, client):
        response = client.get("/inkwell/")

        assert response.status_code == 200
        assert "Welcome to Inkwell." not in response.text
        assert "could not find a mail transport" not in response.text
        assert "Sign in to manage your blog." in response.text

    def test_api_notification_markup_is_escaped(self, admin):
        admin.post(f"{API}/notifications/", json={"message": "<script>alert(1)</script>"})
        text = admin.get("/inkwell/").text

        assert "<script>alert(1)</script>" not in text
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in text

    def test_admin_assets_served(self, client):
        assert client.get("/inkwell/assets/css/admin.css").status_code == 200

    def test_session_middleware_installed(self, started_ctx):
        assert any(m.cls is SessionMiddleware for m in started_ctx.app.user_middleware)


class TestSession:
    def test_signin_and_signout(self, client):
        response = client.post(f"{API}/session/", json={"password": ADMIN_PASSWORD})
        assert response.json() == {"role": "Administrator"}
        assert client.put(f"{API}/settings/", json={"title": "x"}).status_code == 200

        client.delete(f"{API}/session/")
        assert client.put(f"{API}/settings/", json={"title": "y"}).status_code == 401

    def test_wrong_password(self, client):
        response = client.post(f"{API}/session/", json={"password": "guess"})
        assert response.status_code == 401

    def test_disabled_without_password(self, ctx):
        with TestClient(_started(ctx).app) as client:
            response = client.post(f"{API}/session/", json={"password": "anything"})
        assert response.status_code == 403

    def test_rate_limited(self, make_settings, database):
        settings = make_settings(admin_password=ADMIN_PASSWORD, admin_login_rate_limit=2)
        ctx = _started(AppContext.create(settings, database=database))

        with TestClient(ctx.app) as client:
            codes = [
                client.post(f"{API}/session/", json={"password": "guess"}).status_code
                for _ in range(3)
            ]
        assert codes == [401, 401, 429]


class TestSettingsApi:
    def test_browse_by_type(self, client):
        response = client.get(f"{API}/settings/", params={"type": "blog,theme"})

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Inkwell"
        assert data["activeTheme"] == "casper"
        assert "dbHash" not in data

    def test_browse_all_omits_core_settings(self, client):
        data = client.get(f"{API}/settings/").json()

        assert data["title"] == "Inkwell"
        assert "dbHash" not in data

    def test_browse_core_type_is_empty(self, client):
        assert client.get(f"{API}/settings/", params={"type": "core"}).json() == {}

    def test_read_db_hash_is_404(self, admin):
        assert admin.get(f"{API}/settings/dbHash/").status_code == 404

    def test_read_missing_is_404(self, client):
        response = client.get(f"{API}/settings/nope/")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_edit_requires_signin(self, client):
        response = client.put(f"{API}/settings/", json={"title": "Field Notes"})

        assert response.status_code == 401
        assert client.get(f"{API}/settings/title/").json()["value"] == "Inkwell"

    def test_edit_updates_theme(self, admin):
        response = admin.put(f"{API}/settings/", json={"title": "Field Notes"})

        assert response.status_code == 200
        assert response.json() == {"title": "Field Notes"}
        assert "<title>Field Notes</title>" in admin.get("/").text

    def test_edit_db_hash_rejected(self, admin, started_ctx):
        original = started_ctx.settings_store.read("dbHash").value
        response = admin.put(f"{API}/settings/", json={"dbHash": "forged", "title": "x"})

        assert response.status_code == 404
        assert started_ctx.settings_store.read("dbHash").value == original
        assert started_ctx.settings_store.read("title").value == "Inkwell"

    def test_edit_unknown_key(self, admin):
        response = admin.put(f"{API}/settings/", json={"colour": "blue"})
        assert response.status_code == 404

    def test_role_without_permission_is_forbidden(self, client, started_ctx, monkeypatch):
        client.post(f"{API}/session/", json={"password": ADMIN_PASSWORD})
        monkeypatch.setattr(started_ctx.permissions, "can", lambda *args: False)

        response = client.put(f"{API}/settings/", json={"title": "x"})

        assert response.status_code == 403
        assert response.json()["error"] == "no_permission"


class TestNotificationsApi:
    def test_lists_first_run_notification(self, admin):
        ids = [n["id"] for n in admin.get(f"{API}/notifications/").json()]
        assert ids == ["inkwell-first-run"]

    def test_requires_signin(self, client):
        assert client.get(f"{API}/notifications/").status_code == 401
        assert client.post(f"{API}/notifications/", json={"message": "x"}).status_code == 401
        assert client.delete(f"{API}/notifications/inkwell-first-run").status_code == 401

    def test_add_and_destroy(self, admin):
        created = admin.post(f"{API}/notifications/", json={"message": "Saved", "type": "success"})
        assert created.status_code == 201
        assert created.json()["html"] is False

        notification_id = created.json()["id"]
        assert admin.delete(f"{API}/notifications/{notification_id}").status_code == 200
        assert admin.delete(f"{API}/notifications/{notification_id}").status_code == 404

    def test_invalid_type_rejected(self, admin):
        response = admin.post(f"{API}/notifications/", json={"message": "x", "type": "shout"})
        assert response.status_code == 400


class TestHealth:
    def test_basic(self, client):
        data = client.get("/health/").json()

        assert data["status"] == "healthy"
        assert data["environment"] == "testing"
        assert data["uptime_seconds"] >= 0

    def test_detailed(self, client):
        data = client.get("/health/detailed").json()

        assert data["status"] == "healthy"
        assert data["checks"]["database"]["connected"] is True
        assert data["checks"]["mail"] == {"transport": "disabled", "enabled": False}
        assert data["checks"]["theme"]["active"] == "casper"


def test_subdirectory_install(make_settings, database):
    ctx = _started(AppContext.create(make_settings(url="http://localhost:2368/blog"), database=database))

    with TestClient(ctx.app) as client:
        assert client.get("/blog/").status_code == 200
        assert client.get("/blog/inkwell", follow_redirects=False).headers["location"] == "/blog/inkwell/"
        assert client.get(f"/blog{API}/settings/title/").json() == {"key": "title", "value": "Inkwell"}
