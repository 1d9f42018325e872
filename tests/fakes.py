"""In-memory collaborators for retention tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from app.services.errors import BlobNotFoundError
from app.services.retention import StoredItem

NOW = datetime(2026, 10, 19, 2, 0, tzinfo=timezone.utc)


class FakeBlobStore:
    """Dict-backed blob store that can be told to fail on specific keys."""

    bucket = "fake"

    def __init__(self, keys: list[str] | None = None) -> None:
        self.blobs: dict[str, bytes] = {key: b"data" for key in keys or []}
        self.failing: dict[str, Exception] = {}
        self.removed: list[str] = []

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> str:
        self.blobs[key] = data
        return key

    async def download(self, key: str) -> bytes:
        if key not in self.blobs:
            raise BlobNotFoundError(key)
        return self.blobs[key]

    async def remove(self, key: str) -> None:
        self.removed.append(key)
        if key in self.failing:
            raise self.failing[key]
        if key not in self.blobs:
            raise BlobNotFoundError(key)
        del self.blobs[key]

    async def exists(self, key: str) -> bool:
        return key in self.blobs

    async def list(self) -> list:
        return []

    def public_url(self, key: str) -> str:
        return f"https://blobs.test/{key}"


class FakeIndex:
    """In-memory metadata index filtering candidates in Python."""

    def __init__(self, items: list[StoredItem] | None = None) -> None:
        self.items: dict[str, StoredItem] = {item.id: item for item in items or []}
        self.failing: dict[str, Exception] = {}
        self.listing_error: Exception | None = None
        self.deleted: list[str] = []

    async def list_before(self, field: str, cutoff: datetime) -> list[StoredItem]:
        if self.listing_error is not None:
            raise self.listing_error
        return [
            replace(item)
            for item in self.items.values()
            if getattr(item, field) is not None and getattr(item, field) < cutoff
        ]

    async def delete(self, item_id: str) -> bool:
        self.deleted.append(item_id)
        if item_id in self.failing:
            raise self.failing[item_id]
        return self.items.pop(item_id, None) is not None


def make_stores(items: list[StoredItem]) -> tuple[FakeBlobStore, FakeIndex]:
    """Return a blob store holding every item's blob and an index of the items."""

    return FakeBlobStore([item.storage_key for item in items]), FakeIndex(items)


