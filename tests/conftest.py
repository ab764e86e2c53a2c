"""Shared fixtures: backing files in a temp dir, a store, an app client."""

import json

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from fastapi.testclient import TestClient

from ssh_key_manager_api.app.core.config import Settings
from ssh_key_manager_api.app.core.store import RecordStore
from ssh_key_manager_api.app.main import create_app

USERS = [
    {
        "id": 1,
        "isSystemAdmin": True,
        "isActive": True,
        "name": "Alice",
        "sshKeys": [
            {
                "comment": "alice@laptop",
                "fingerprint": "SHA256:alice-laptop",
                "publicKey": "ssh-ed25519 AAAAalice alice@laptop",
            }
        ],
    },
    {
        "id": 2,
        "isSystemAdmin": True,
        "isActive": False,
        "name": "Bob",
        "sshKeys": [
            {
                "comment": "bob@desk",
                "fingerprint": "SHA256:bob-desk",
                "publicKey": "ssh-ed25519 AAAAbob bob@desk",
            }
        ],
    },
    {
        "id": 3,
        "isSystemAdmin": False,
        "isActive": True,
        "name": "Carol",
        "sshKeys": [
            {
                "comment": "",
                "fingerprint": "SHA256:carol-1",
                "publicKey": "ssh-rsa AAAAcarol1",
            },
            {
                "comment": "carol@ci",
                "fingerprint": "SHA256:carol-2",
                "publicKey": "ssh-ed25519 AAAAcarol2 carol@ci",
            },
        ],
    },
    {
        "id": 4,
        "isSystemAdmin": True,
        "isActive": True,
        "name": "Dave",
        "sshKeys": [],
    },
]

SERVERS = [
    {
        "id": 1,
        "name": "host-a",
        "ipAddress": "10.0.0.1",
        "lastHeartbeatOn": "2024-05-01T12:00:00Z",
        "cpuUsagePercent": 12.5,
        "memoryUsagePercent": 40.0,
        "diskUsagePercent": 71.25,
        "userIds": [1, 3, 99],
    }
]


def server_fields(name: str, **overrides) -> dict:
    """Every field a new server record needs, keyed by alias."""
    fields = {
        "name": name,
        "ipAddress": "10.0.0.2",
        "lastHeartbeatOn": "2024-05-02T08:00:00Z",
        "cpuUsagePercent": 0,
        "memoryUsagePercent": 0,
        "diskUsagePercent": 0,
        "userIds": [],
    }
    fields.update(overrides)
    return fields


def make_public_key(comment: str = "alice@laptop") -> str:
    """A fresh, valid OpenSSH ed25519 public key line."""
    key = Ed25519PrivateKey.generate().public_key()
    line = key.public_bytes(Encoding.OpenSSH, PublicFormat.OpenSSH).decode("ascii")
    return f"{line} {comment}" if comment else line


def write_json(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def users_file(tmp_path):
    return tmp_path / "users.json"


@pytest.fixture
def servers_file(tmp_path):
    return tmp_path / "servers.json"


@pytest.fixture
def seeded(users_file, servers_file):
    write_json(users_file, USERS)
    write_json(servers_file, SERVERS)


@pytest.fixture
def store(users_file, servers_file):
    return RecordStore(str(users_file), str(servers_file))


@pytest.fixture
def app_settings(users_file, servers_file):
    return Settings(
        users_file=str(users_file),
        servers_file=str(servers_file),
        write_timeout_seconds=None,
        ready_timeout_seconds=1,
    )


@pytest.fixture
def client(app_settings, seeded):
    app = create_app(app_settings)
    with TestClient(app) as test_client:
        yield test_client
