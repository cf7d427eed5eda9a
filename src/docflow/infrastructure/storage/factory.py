"""Storage provider selection."""

import logging

from docflow.application.ports import StorageProvider
from docflow.config import Settings
from docflow.infrastructure.storage.local_provider import LocalStorageProvider
from docflow.infrastructure.storage.s3_provider import S3StorageProvider

logger = logging.getLogger(__name__)


def create_storage_provider(settings: Settings) -> StorageProvider:
    """Build the provider named by ``settings.storage_backend``."""
    if settings.storage_backend == "s3":
        logger.info("Using S3 storage provider (bucket=%s)", settings.s3_bucket_name)
        return S3StorageProvider(
            settings.s3_bucket_name,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    logger.info("Using local storage provider (path=%s)", settings.local_storage_path)
    return LocalStorageProvider(
        settings.local_storage_path, signing_secret=settings.storage_signing_secret
    )
