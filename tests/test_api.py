"""HTTP surface, exercised through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from ssh_key_manager_api.app.core.store import LoadError
from ssh_key_manager_api.app.main import create_app

from .conftest import USERS, make_public_key, read_json


def test_heartbeat_requires_hostname(client):
    response = client.get("/api/v1/server/keys")
    assert response.status_code == 400
    assert response.json()["detail"] == "hostname query parameter is required"


def test_heartbeat_for_known_server(client):
    response = client.get(
        "/api/v1/server/keys",
        params={"hostname": "host-a", "cpuUsagePercent": "55.5", "diskUsagePercent": "80"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "data": [
            {"name": "Alice", "publicKeys": ["ssh-ed25519 AAAAalice alice@laptop"]},
            {"name": "Carol", "publicKeys": ["ssh-rsa AAAAcarol1", "ssh-ed25519 AAAAcarol2 carol@ci"]},
        ]
    }
    server = client.get("/api/v1/servers/1").json()
    assert server["cpuUsagePercent"] == 55.5
    assert server["memoryUsagePercent"] == 0
    assert server["diskUsagePercent"] == 80
    assert server["ipAddress"] == "testclient"


def test_heartbeat_for_new_server(client):
    response = client.get("/api/v1/server/keys", params={"hostname": "host-b"})

    assert response.status_code == 200
    assert [entry["name"] for entry in response.json()["data"]] == ["Alice"]
    servers = client.get("/api/v1/servers/").json()
    assert [server["name"] for server in servers] == ["host-a", "host-b"]
    assert servers[1]["id"] == 2
    assert servers[1]["userIds"] == [1, 4]


def test_list_and_get_users(client):
    users = client.get("/api/v1/users/").json()
    assert users == USERS

    assert client.get("/api/v1/users/3").json()["name"] == "Carol"
    assert client.get("/api/v1/users/42").status_code == 404


def test_create_and_update_user(client):
    response = client.post("/api/v1/users/", json={"name": "Erin", "isSystemAdmin": True})
    assert response.status_code == 201
    created = response.json()
    assert created == {"id": 5, "isSystemAdmin": True, "isActive": True, "name": "Erin", "sshKeys": []}

    renamed = client.put("/api/v1/users/5/name", json={"name": "Erin B"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Erin B"

    deactivated = client.put("/api/v1/users/5/active", json={"isActive": False})
    assert deactivated.json()["isActive"] is False

    assert client.put("/api/v1/users/42/name", json={"name": "Ghost"}).status_code == 404
    assert client.put("/api/v1/users/5/name", json={"name": ""}).status_code == 422


def test_ssh_key_lifecycle(client):
    public_key = make_public_key("dave@laptop")

    added = client.post("/api/v1/users/4/keys", json={"publicKey": public_key})
    assert added.status_code == 201
    key = added.json()["sshKeys"][0]
    assert key["comment"] == "dave@laptop"
    assert key["fingerprint"].startswith("SHA256:")

    duplicate = client.post("/api/v1/users/4/keys", json={"publicKey": public_key})
    assert duplicate.status_code == 400

    invalid = client.post("/api/v1/users/4/keys", json={"publicKey": "ssh-ed25519 garbage"})
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid SSH key"

    removed = client.delete(f"/api/v1/users/4/keys/{key['fingerprint']}")
    assert removed.status_code == 200
    assert removed.json()["sshKeys"] == []

    assert client.delete(f"/api/v1/users/4/keys/{key['fingerprint']}").status_code == 404


def test_server_assignments(client):
    added = client.post("/api/v1/servers/1/users", json={"userIds": [4]})
    assert added.status_code == 200
    assert added.json()["userIds"] == [1, 3, 99, 4]

    assert client.post("/api/v1/servers/1/users", json={"userIds": [1000]}).status_code == 404
    assert client.post("/api/v1/servers/9/users", json={"userIds": [1]}).status_code == 404

    removed = client.delete("/api/v1/servers/1/users/3")
    assert removed.status_code == 200
    assert removed.json()["userIds"] == [1, 99, 4]

    assert client.delete("/api/v1/servers/1/users/3").status_code == 400
    assert client.get("/api/v1/servers/9").status_code == 404


def test_health(client):
    body = client.get("/api/v1/health").json()

    assert body == {
        "status": "ok",
        "store": "ready",
        "users": 4,
        "servers": 1,
        "stale": [],
        "writeFailures": 0,
        "subscribers": 0,
    }


def test_corrupt_file_aborts_startup(app_settings, users_file):
    users_file.write_text("[", encoding="utf-8")
    app = create_app(app_settings)

    with pytest.raises(LoadError):
        with TestClient(app):
            pass


def test_corrupt_file_degrades_when_allowed(app_settings, users_file):
    users_file.write_text("[", encoding="utf-8")
    app_settings.abort_on_load_error = False
    app = create_app(app_settings)

    with TestClient(app) as client:
        assert client.get("/api/v1/users/").status_code == 503
        assert client.get("/api/v1/server/keys", params={"hostname": "host-a"}).status_code == 503
        health = client.get("/api/v1/health").json()
        assert health["store"] == "failed"
        assert health["status"] == "degraded"


def test_writes_reach_backing_files(client, users_file):
    client.put("/api/v1/users/1/name", json={"name": "Alice Liddell"})

    stored = [user for user in read_json(users_file) if user["id"] == 1]
    assert stored[0]["name"] == "Alice Liddell"

