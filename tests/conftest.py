"""Pytest fixtures for docflow tests."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path

import psycopg
import pytest
import pytest_asyncio

from docflow.application.dto import NewDocument, UploadOptions
from docflow.application.ports import EntityStore
from docflow.application.services import RetryPolicy, StorageFacade, TaskQueue
from docflow.config import Settings
from docflow.domain.entities import Document
from docflow.domain.value_objects import ContentHash
from docflow.infrastructure.persistence.memory import MemoryEntityStore
from docflow.infrastructure.persistence.postgres import PostgresEntityStore
from docflow.infrastructure.storage.local_provider import LocalStorageProvider

T0 = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)

# Postgres-backed tests run only when this points at a scratch database.
# Its tables are truncated before every test.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")

requires_postgres = pytest.mark.skipif(
    not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set"
)


# --- Fakes ---


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class RecordingSleep:
    """Async sleep replacement that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FlakyStorageProvider(LocalStorageProvider):
    """Local provider that raises queued errors before doing the real work."""

    name = "flaky"

    def __init__(self, base_path: str | Path, clock=None) -> None:
        super().__init__(base_path, signing_secret="test-secret", clock=clock or FakeClock())
        self.failures: dict[str, list[Exception]] = {}
        self.calls: dict[str, int] = {}

    def fail_next(self, operation: str, *errors: Exception) -> None:
        self.failures.setdefault(operation, []).extend(errors)

    def _maybe_fail(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        pending = self.failures.get(operation)
        if pending:
            raise pending.pop(0)

    async def upload(self, key, data, options=None):
        self._maybe_fail("upload")
        return await super().upload(key, data, options)

    async def download(self, key):
        self._maybe_fail("download")
        return await super().download(key)

    async def delete(self, key, options=None):
        self._maybe_fail("delete")
        return await super().delete(key, options)

    async def exists(self, key):
        self._maybe_fail("exists")
        return await super().exists(key)

    async def head(self, key):
        self._maybe_fail("head")
        return await super().head(key)


# --- Helpers ---


async def make_document(
    store: EntityStore,
    owner_id: str = "user-1",
    name: str = "contract.txt",
    content: bytes = b"hello world",
    **fields,
) -> Document:
    """Create a document record directly in the store."""
    content_hash = ContentHash.of(content).value
    return await store.documents.create(
        NewDocument(
            storage_key=f"users/{owner_id}/documents/{content_hash}/{name}",
            original_name=name,
            content_hash=content_hash,
            storage_url=f"local://users/{owner_id}/documents/{content_hash}/{name}",
            size=len(content),
            owner_id=owner_id,
            **fields,
        )
    )


async def make_stored_document(
    store: EntityStore,
    storage: StorageFacade,
    owner_id: str = "user-1",
    name: str = "contract.txt",
    content: bytes = b"hello world",
    **fields,
) -> Document:
    """Create a document record and put its bytes in storage."""
    document = await make_document(store, owner_id, name, content, **fields)
    await storage.upload(document.storage_key, content, UploadOptions(content_type="text/plain"))
    return document


# --- Fixtures ---


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def store(clock: FakeClock) -> MemoryEntityStore:
    """Fresh memory entity store for each test."""
    return MemoryEntityStore(clock=clock)


@pytest_asyncio.fixture(params=["memory", pytest.param("postgres", marks=requires_postgres)])
async def entity_store(request: pytest.FixtureRequest, clock: FakeClock) -> AsyncIterator[EntityStore]:
    """Each entity store backend in turn; postgres only with TEST_DATABASE_URL."""
    if request.param == "memory":
        yield MemoryEntityStore(clock=clock)
        return
    async with postgres_store(clock) as store:
        yield store


@pytest.fixture
def provider(tmp_path: Path, clock: FakeClock) -> FlakyStorageProvider:
    return FlakyStorageProvider(tmp_path / "storage", clock=clock)


@pytest_asyncio.fixture
async def storage(provider: FlakyStorageProvider, fake_sleep: RecordingSleep) -> StorageFacade:
    """Initialized facade over the flaky local provider; backoff does not really sleep."""
    facade = StorageFacade(RetryPolicy(max_attempts=3, base_delay=1.0), sleep=fake_sleep)
    await facade.initialize(provider)
    return facade


@pytest.fixture
def queue(store: EntityStore, clock: FakeClock) -> TaskQueue:
    return TaskQueue(
        store.queue_items,
        retry_delay=60.0,
        claim_timeout=300.0,
        default_priority=5,
        default_max_attempts=3,
        clock=clock,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings that ignore the environment's .env file."""
    return Settings(
        _env_file=None,
        persistence_backend="memory",
        storage_backend="local",
        local_storage_path=str(tmp_path / "storage"),
        storage_base_delay=0.0,
        worker_enabled=False,
        queue_system_token="system-token",
    )
