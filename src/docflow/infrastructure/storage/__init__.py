"""File storage providers."""

from docflow.infrastructure.storage.factory import create_storage_provider
from docflow.infrastructure.storage.local_provider import LocalStorageProvider
from docflow.infrastructure.storage.s3_provider import S3StorageProvider

__all__ = ["LocalStorageProvider", "S3StorageProvider", "create_storage_provider"]
