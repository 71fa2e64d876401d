"""Route tests for the options API using FastAPI's TestClient.

The store is file-backed because TestClient serves requests from a
different thread than the test body.
"""

import pytest
from fastapi.testclient import TestClient

from autoload_analyzer.api.main import app
from autoload_analyzer.engine import AutoloadManager
from autoload_analyzer.gate import ADMIN_TOKEN_HEADER, TokenGate
from autoload_analyzer.store import Autoload

TOKEN = "s3cret"
AUTH = {ADMIN_TOKEN_HEADER: TOKEN}


@pytest.fixture
def client(file_store):
    file_store.add_option("active_plugins", '["my-plugin/my-plugin.php"]')
    file_store.add_option("siteurl", "https://example.com")
    file_store.add_option("my_plugin_cache", "c" * 2048)
    file_store.add_option("old_data", "d" * 10, autoload=Autoload.SKIP)

    app.state.store = file_store
    app.state.manager = AutoloadManager(file_store)
    app.state.gate = TokenGate(TOKEN)
    yield TestClient(app)
    app.state.store = None
    app.state.manager = None
    app.state.gate = None


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "db": True}


def test_list_autoloaded(client):
    resp = client.get("/api/options")
    assert resp.status_code == 200
    data = resp.json()
    assert data["autoload"] == "yes"
    assert data["total_count"] == 3
    first = data["groups"][0]
    assert first["source"] == "Plugin: my-plugin"
    assert first["options"][0]["size_display"] == "2.00 KB"


def test_list_disabled(client):
    resp = client.get("/api/options", params={"autoload": "no"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_count"] == 1
    assert data["groups"][0]["options"][0]["name"] == "old_data"


def test_list_rejects_bad_flag(client):
    resp = client.get("/api/options", params={"autoload": "maybe"})
    assert resp.status_code == 422


def test_toggle(client, file_store):
    resp = client.post(
        "/api/options/my_plugin_cache/autoload", json={"action": "disable"}, headers=AUTH
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "name": "my_plugin_cache",
        "autoload": "no",
        "message": "Autoload disabled for option: my_plugin_cache",
    }
    assert file_store.get_option("my_plugin_cache").autoload is Autoload.SKIP


def test_toggle_twice_not_found(client):
    client.post("/api/options/my_plugin_cache/autoload", json={"action": "disable"}, headers=AUTH)
    resp = client.post(
        "/api/options/my_plugin_cache/autoload", json={"action": "disable"}, headers=AUTH
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_toggle_protected(client):
    resp = client.post("/api/options/siteurl/autoload", json={"action": "disable"}, headers=AUTH)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "PROTECTED_OPTION"


def test_toggle_requires_token(client, file_store):
    resp = client.post("/api/options/my_plugin_cache/autoload", json={"action": "disable"})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"

    resp = client.post(
        "/api/options/my_plugin_cache/autoload",
        json={"action": "disable"},
        headers={ADMIN_TOKEN_HEADER: "wrong"},
    )
    assert resp.status_code == 403
    assert file_store.get_option("my_plugin_cache").autoload is Autoload.LOAD


def test_loopback_only_without_token(client):
    """TestClient reports its host as 'testclient', which is not loopback."""
    app.state.gate = TokenGate(None)
    resp = client.delete("/api/options/old_data")
    assert resp.status_code == 403


def test_toggle_rejects_unknown_action(client):
    resp = client.post("/api/options/my_plugin_cache/autoload", json={"action": "flip"}, headers=AUTH)
    assert resp.status_code == 422


def test_delete(client, file_store):
    resp = client.delete("/api/options/old_data", headers=AUTH)
    assert resp.status_code == 200
    assert resp.json()["deleted"] is True
    assert file_store.get_option("old_data") is None


def test_delete_autoloaded_conflict(client):
    resp = client.delete("/api/options/my_plugin_cache", headers=AUTH)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "INVALID_STATE"


def test_bulk_toggle(client):
    resp = client.post(
        "/api/options/bulk-autoload",
        json={"names": ["my_plugin_cache", "old_data", "siteurl", "ghost"], "action": "disable"},
        headers=AUTH,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["succeeded"] == 1
    assert data["unchanged"] == ["old_data"]
    assert {(i["name"], i["reason"]) for i in data["skipped"]} == {
        ("siteurl", "protected"),
        ("ghost", "not found"),
    }


def test_bulk_toggle_nothing_changed(client):
    resp = client.post(
        "/api/options/bulk-autoload",
        json={"names": ["ghost"], "action": "enable"},
        headers=AUTH,
    )
    assert resp.status_code == 409
    body = resp.json()
    assert body["error"]["code"] == "NO_CHANGES"
    assert body["result"]["skipped"] == [{"name": "ghost", "reason": "not found"}]


def test_bulk_rejects_empty_list(client):
    resp = client.post("/api/options/bulk-delete", json={"names": []}, headers=AUTH)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_bulk_delete(client, file_store):
    resp = client.post(
        "/api/options/bulk-delete",
        json={"names": ["old_data", "my_plugin_cache"]},
        headers=AUTH,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["succeeded"] == 1
    assert data["skipped"] == [{"name": "my_plugin_cache", "reason": "autoload enabled"}]
    assert file_store.get_option("old_data") is None


def test_store_unavailable(client):
    app.state.manager = None
    resp = client.get("/api/options")
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "DB_UNAVAILABLE"


def test_cors_origins_tolerate_bad_env(monkeypatch):
    from autoload_analyzer.api.main import _startup_cors_origins

    monkeypatch.setenv("AOA_PORT", "not-a-port")
    monkeypatch.setenv("AOA_TABLE_PREFIX", "bad-prefix")
    monkeypatch.delenv("AOA_HOST", raising=False)
    assert _startup_cors_origins() == ["http://127.0.0.1:8321", "http://localhost:8321"]
