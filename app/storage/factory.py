"""Build the configured storage backend for a bucket."""

from __future__ import annotations

from pathlib import Path

from app.config.settings import Settings, get_settings
from app.storage.backend import LocalStorage, StorageBackend


def build_storage(bucket: str, settings: Settings | None = None) -> StorageBackend:
    """Return a backend for ``bucket`` according to ``STORAGE_BACKEND``."""

    settings = settings or get_settings()
    if settings.storage_backend == "local":
        return LocalStorage(
            Path(settings.media_root),
            bucket,
            public_base_url=settings.public_base_url,
        )
    if settings.storage_backend == "s3":
        from app.storage.s3 import S3Storage  # boto3 only needed for S3 deployments

        return S3Storage(
            bucket,
            endpoint=settings.s3_endpoint,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            public_base_url=settings.public_base_url,
        )
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")
