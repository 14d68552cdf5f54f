import json
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fetchr import api
from fetchr.core.engine import RequestRunner
from fetchr.core.storage import StorageEngine, get_storage
from fetchr.main import app
from fetchr.models import StoredEnvironment


@pytest.fixture
def store(tmp_path):
    engine = StorageEngine(workspace_dir=str(tmp_path / "ws"))
    app.dependency_overrides[get_storage] = lambda: engine
    yield engine
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    return TestClient(app)


def test_health(client):
    assert client.get("/").json() == {"status": "Fetchr Engine Running"}


def test_interpolate_uses_active_environment(client, store):
    assert client.post("/api/interpolate", json={"text": "{{host}}"}).json() == {"text": "{{host}}"}
    store.save_environment(StoredEnvironment(
        name="dev", variables='[{"key": "host", "value": "api.test"}]', is_active=True,
    ))
    assert client.post("/api/interpolate", json={"text": "http://{{host}}/"}).json() == {"text": "http://api.test/"}


def test_send_interpolates_and_records_history(client, store, monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, headers={"Set-Cookie": "sid=1; Path=/"}, content=b"created")

    monkeypatch.setattr(api, "runner", RequestRunner(transport=httpx.MockTransport(handler)))
    store.save_environment(StoredEnvironment(
        name="dev", variables='[{"key": "host", "value": "api.test"}]', is_active=True,
    ))
    res = client.post("/api/send", json={
        "method": "POST",
        "url": "http://{{host}}/items",
        "headers": [{"key": "X-Host", "value": "{{host}}", "enabled": True}],
        "body": "{}",
        "body_type": "json",
        "auth_type": "none",
        "auth_data": {},
    })
    assert res.status_code == 200
    data = res.json()
    assert data["status"] == 201
    assert data["status_text"] == "Created"
    assert data["cookies"] == [{"name": "sid", "value": "1", "domain": None, "path": None}]
    assert str(seen[0].url) == "http://api.test/items"
    assert seen[0].headers["x-host"] == "api.test"

    history = client.get("/api/history").json()
    assert history[0]["status"] == 201
    assert history[0]["url"] == "http://{{host}}/items"


def test_send_errors_are_reported(client, monkeypatch):
    def handler(request):
        raise httpx.ConnectError("no route")

    monkeypatch.setattr(api, "runner", RequestRunner(transport=httpx.MockTransport(handler)))
    res = client.post("/api/send", json={"method": "GET", "url": "http://x/"})
    assert res.status_code == 502
    assert res.json()["kind"] == "transport-failure"

    res = client.post("/api/send", json={"method": "BAD METHOD", "url": "http://x/"})
    assert res.status_code == 400
    assert res.json()["kind"] == "malformed-method"


def test_import_save_export_round_trip(client):
    doc = {"info": {"name": "Shop"}, "item": [
        {"name": "Items", "item": [{"name": "List", "request": {
            "method": "GET",
            "url": {"raw": "http://x/items"},
            "header": [{"key": "Accept", "value": "*/*"}],
            "auth": {"type": "bearer", "bearer": [{"key": "token", "value": "t"}]},
        }}]},
        {"name": "Ping", "request": {"method": "GET", "url": "http://x/ping"}},
    ]}
    imported = client.post("/api/import/postman", json=doc)
    assert imported.status_code == 200
    body = imported.json()
    assert body["folders"] == [{"name": "Items", "parent_path": []}]

    root_id = client.post("/api/import/save", json=body).json()["id"]
    collections = client.get("/api/collections").json()
    folder = next(c for c in collections if c["name"] == "Items")
    assert folder["parent_id"] == root_id

    exported = client.get(f"/api/collections/{root_id}/export")
    assert exported.status_code == 200
    doc_out = json.loads(exported.text)
    assert doc_out["name"] == "Shop"
    assert [r["name"] for r in doc_out["requests"]] == ["Ping"]

    folder_export = json.loads(client.get(f"/api/collections/{folder['id']}/export").text)
    listed = folder_export["requests"][0]
    assert listed["headers"] == [{"key": "Accept", "value": "*/*", "enabled": True}]
    assert listed["auth_type"] == "bearer"
    assert listed["auth_data"] == {"token": "t"}


def test_invalid_import_and_missing_records(client):
    res = client.post("/api/import/postman", json={"item": []})
    assert res.status_code == 400
    assert res.json()["kind"] == "foreign-format-invalid"
    assert client.get("/api/collections/nope/export").status_code == 404
    assert client.get("/api/requests/nope").status_code == 404
