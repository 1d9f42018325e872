"""Metadata indexes the retention sweep enumerates and prunes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db import models
from app.services.retention import ReferenceField, StoredItem
from app.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


class MetadataIndex(Protocol):
    """Operations a sweep needs from a metadata store."""

    async def list_before(self, field: ReferenceField, cutoff: datetime) -> list[StoredItem]:
        ...

    async def delete(self, item_id: str) -> bool:
        ...


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UploadedFileIndex:
    """Metadata store over the ``uploaded_files`` table."""

    _fields = {
        "created_at": models.UploadedFile.created_at,
        "expires_at": models.UploadedFile.expires_at,
    }

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(
        self,
        *,
        file_id: str,
        file_name: str,
        file_size: int,
        mime_type: str,
        storage_key: str,
        uploaded_by: str | None = None,
        expires_at: datetime | None = None,
        share_token: str | None = None,
        is_public: bool = False,
    ) -> models.UploadedFile:
        """Insert a metadata record for an uploaded blob."""

        record = models.UploadedFile(
            id=file_id,
            file_name=file_name,
            file_size=file_size,
            mime_type=mime_type,
            storage_key=storage_key,
            uploaded_by=uploaded_by,
            expires_at=expires_at,
            share_token=share_token,
            is_public=is_public,
        )
        async with self._session_factory() as session:
            session.add(record)
            await session.commit()
            await session.refresh(record)
        return record

    async def get(self, item_id: str) -> models.UploadedFile | None:
        async with self._session_factory() as session:
            return await session.get(models.UploadedFile, item_id)

    async def find_by(self, **equals: Any) -> list[models.UploadedFile]:
        """Return records whose columns equal the given values."""

        stmt = select(models.UploadedFile).filter_by(**equals)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update(self, item_id: str, **values: Any) -> bool:
        """Update columns of one record; return whether it existed."""

        stmt = (
            update(models.UploadedFile)
            .where(models.UploadedFile.id == item_id)
            .values(**values)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount > 0

    async def delete(self, item_id: str) -> bool:
        """Delete one record; deleting an absent id is not an error."""

        stmt = delete(models.UploadedFile).where(models.UploadedFile.id == item_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        if not result.rowcount:
            logger.info("Uploaded file %s was already deleted", item_id)
        return result.rowcount > 0

    async def list_before(self, field: ReferenceField, cutoff: datetime) -> list[StoredItem]:
        """Return records whose ``field`` is set and strictly before ``cutoff``."""

        column = self._fields.get(field)
        if column is None:
            raise ValueError(f"uploaded_files has no retention field {field!r}")

        # SQLite compares wall-clock text, so the offset has to be UTC
        cutoff = cutoff.astimezone(timezone.utc)
        stmt = select(models.UploadedFile).where(column.is_not(None), column < cutoff)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()

        return [
            StoredItem(
                id=record.id,
                storage_key=record.storage_key,
                created_at=_as_utc(record.created_at),
                expires_at=_as_utc(record.expires_at),
            )
            for record in records
        ]


class BucketListingIndex:
    """Index for blob-only collections where the listing is the metadata.

    Blob names double as item ids and ``last_modified`` is the creation time.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage

    async def list_before(self, field: ReferenceField, cutoff: datetime) -> list[StoredItem]:
        if field != "created_at":
            raise ValueError(f"bucket {self._storage.bucket!r} carries no {field!r}")

        entries = await self._storage.list()
        return [
            StoredItem(id=entry.name, storage_key=entry.name, created_at=entry.last_modified)
            for entry in entries
            if entry.last_modified < cutoff
        ]

    async def delete(self, item_id: str) -> bool:
        # the blob itself was the record
        _ = item_id
        return True
