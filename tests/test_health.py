"""Health endpoint tests."""

import asyncio

import pytest
from falcon.asgi import App
from falcon.testing import TestClient

from docflow import __version__
from docflow.application.services import StorageFacade
from docflow.domain.exceptions import ConnectionFailure
from docflow.infrastructure.persistence.memory import MemoryEntityStore
from docflow.interfaces.api.resources.health import HealthResource

from tests.conftest import FlakyStorageProvider


class UnreachableStore(MemoryEntityStore):
    async def ping(self) -> bool:
        raise ConnectionFailure("connection refused")


def _client(store: MemoryEntityStore, storage: StorageFacade) -> TestClient:
    app = App()
    health = HealthResource(store, storage)
    app.add_route("/v1/health", health)
    app.add_route("/v1/health/ready", health, suffix="ready")
    return TestClient(app)


@pytest.fixture
def ready_storage(tmp_path) -> StorageFacade:
    storage = StorageFacade()
    asyncio.run(storage.initialize(FlakyStorageProvider(tmp_path)))
    return storage


def test_health_liveness() -> None:
    """GET /v1/health returns 200 even when nothing is initialized."""
    result = _client(MemoryEntityStore(), StorageFacade()).simulate_get("/v1/health")
    assert result.status_code == 200
    assert result.json == {"status": "ok", "version": __version__}


def test_health_ready(ready_storage: StorageFacade) -> None:
    result = _client(MemoryEntityStore(), ready_storage).simulate_get("/v1/health/ready")
    assert result.status_code == 200
    assert result.json == {
        "status": "ready",
        "checks": {"entity_store": True, "storage": True},
    }


def test_health_not_ready_without_storage() -> None:
    result = _client(MemoryEntityStore(), StorageFacade()).simulate_get("/v1/health/ready")
    assert result.status_code == 503
    assert result.json["checks"] == {"entity_store": True, "storage": False}


def test_health_not_ready_when_store_unreachable(ready_storage: StorageFacade) -> None:
    result = _client(UnreachableStore(), ready_storage).simulate_get("/v1/health/ready")
    assert result.status_code == 503
    assert result.json["status"] == "not_ready"
    assert result.json["checks"]["entity_store"] is False
