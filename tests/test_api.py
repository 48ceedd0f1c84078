from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from registry.lock import FileLock
from registry.main import app, get_manager
from registry.manager import Manager
from registry.persister import JsonPersister

from tests.fakes import MemoryPersister, RecordingLock


@pytest.fixture()
def manager(config_path: Path) -> Manager:
    return Manager(FileLock(config_path.with_suffix(".lock"), timeout=1), JsonPersister(config_path))


@pytest.fixture()
def client(manager: Manager):
    app.dependency_overrides[get_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_repository_lifecycle(client: TestClient, config_path: Path):
    r = client.post("/repositories", json={"id": "A", "url": "http://x"})
    assert r.status_code == 200
    assert r.json() == {"id": "A", "url": "http://x", "type": "vcs"}
    assert config_path.exists()

    r = client.get("/repositories")
    assert [repo["id"] for repo in r.json()["repositories"]] == ["A"]

    r = client.put("/repositories/A", json={"url": "http://y"})
    assert r.status_code == 200
    assert client.get("/repositories/A").json()["url"] == "http://y"

    r = client.delete("/repositories/A")
    assert r.json() == {"ok": True, "id": "A"}
    assert client.get("/repositories/A").status_code == 404


def test_batch_add(client: TestClient, manager: Manager):
    r = client.post(
        "/repositories/batch",
        json={"repositories": [{"url": "http://1"}, {"url": "http://2"}, {"id": "c", "url": "http://3"}]},
    )
    assert r.json() == {"ok": True, "count": 3}
    assert len(manager.get_repositories()) == 3
    assert "c" in manager.get_repositories()


def test_update_unknown_repository_is_404(client: TestClient):
    r = client.put("/repositories/nope", json={"url": "http://y"})
    assert r.status_code == 404


def test_lock_denied_is_503():
    app.dependency_overrides[get_manager] = lambda: Manager(RecordingLock(grant=False), MemoryPersister())
    try:
        r = TestClient(app).post("/repositories", json={"url": "http://x"})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 503
    assert "cannot acquire lock" in r.json()["detail"]


def test_flush_failure_is_500():
    persister = MemoryPersister()
    persister.fail_flush = True
    app.dependency_overrides[get_manager] = lambda: Manager(RecordingLock(), persister)
    try:
        r = TestClient(app).post("/repositories", json={"url": "http://x"})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500


def test_delete_unknown_repository_is_404(client: TestClient, config_path: Path):
    r = client.delete("/repositories/nope")
    assert r.status_code == 404
    assert not config_path.exists()


def test_cors_allows_configured_origin(client: TestClient):
    r = client.options(
        "/repositories",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )
    assert r.headers["access-control-allow-origin"] == "http://localhost:3000"
