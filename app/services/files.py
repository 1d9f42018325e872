"""Creating uploaded files: blob first, then the metadata record."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from app.config.settings import get_settings
from app.db import models
from app.services.metadata import UploadedFileIndex
from app.services.retention import utcnow
from app.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class FileSizeMismatch(ValueError):
    """Declared size differs from the number of bytes received."""


async def store_upload(
    blobs: StorageBackend,
    index: UploadedFileIndex,
    *,
    file_name: str,
    data: bytes,
    mime_type: str,
    ttl_days: int | None = None,
    declared_size: int | None = None,
    uploaded_by: str | None = None,
    is_public: bool = False,
) -> models.UploadedFile:
    """Store ``data`` and record it with an expiry ``ttl_days`` from now.

    ``ttl_days`` defaults to ``FILE_TTL_DAYS``.
    """

    if declared_size is not None and declared_size != len(data):
        raise FileSizeMismatch(f"expected {declared_size} bytes, got {len(data)}")

    if ttl_days is None:
        ttl_days = get_settings().file_ttl_days

    file_id = secrets.token_hex(16)
    storage_key = f"{file_id}/{file_name}"
    await blobs.upload(storage_key, data, content_type=mime_type)

    record = await index.add(
        file_id=file_id,
        file_name=file_name,
        file_size=len(data),
        mime_type=mime_type,
        storage_key=storage_key,
        uploaded_by=uploaded_by,
        expires_at=utcnow() + timedelta(days=ttl_days),
        share_token=secrets.token_urlsafe(32),
        is_public=is_public,
    )
    logger.info("Stored %s as %s, expires %s", file_name, file_id, record.expires_at)
    return record
