"""Backend selection tests."""

from pathlib import Path

from docflow.config import Settings
from docflow.infrastructure.persistence import create_entity_store
from docflow.infrastructure.persistence.memory import MemoryEntityStore
from docflow.infrastructure.storage import (
    LocalStorageProvider,
    S3StorageProvider,
    create_storage_provider,
)


def test_memory_store_selected(settings: Settings) -> None:
    assert isinstance(create_entity_store(settings), MemoryEntityStore)


def test_local_provider_selected(settings: Settings) -> None:
    provider = create_storage_provider(settings)
    assert isinstance(provider, LocalStorageProvider)
    assert provider.base_path == Path(settings.local_storage_path).resolve()


def test_s3_provider_selected(settings: Settings) -> None:
    s3_settings = settings.model_copy(
        update={"storage_backend": "s3", "s3_bucket_name": "docs", "s3_region": "eu-west-1"}
    )
    provider = create_storage_provider(s3_settings)
    assert isinstance(provider, S3StorageProvider)
    assert provider.object_url("a.txt") == "s3://docs/a.txt"
    assert provider.client.meta.region_name == "eu-west-1"
