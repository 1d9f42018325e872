"""Blob storage abstraction and the local filesystem backend."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from app.services.errors import BlobNotFoundError, StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BlobEntry:
    """Listing entry for a stored blob."""

    name: str
    last_modified: datetime
    size: int


class StorageBackend(Protocol):
    """Defines the operations the services need from object storage."""

    bucket: str

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> str:
        ...

    async def download(self, key: str) -> bytes:
        ...

    async def remove(self, key: str) -> None:
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def list(self) -> list[BlobEntry]:
        ...

    def public_url(self, key: str) -> str:
        ...


class LocalStorage:
    """Stores every bucket as a directory below ``root``."""

    def __init__(self, root: Path, bucket: str, public_base_url: str = "") -> None:
        self.bucket = bucket
        self._root = (Path(root) / bucket).resolve()
        self._public_base_url = public_base_url.rstrip("/")
        self._root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not key or key.startswith("/"):
            raise StorageError(f"invalid blob key: {key!r}")
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise StorageError(f"blob key escapes bucket: {key!r}")
        return path

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """Write ``data`` under ``key`` and return the key."""

        _ = content_type  # the filesystem keeps no content type
        path = self._path_for(key)
        await asyncio.to_thread(self._write_file, path, data)
        return key

    async def download(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise BlobNotFoundError(key) from exc

    async def remove(self, key: str) -> None:
        """Delete the blob; raise ``BlobNotFoundError`` if it is already gone."""

        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError as exc:
            raise BlobNotFoundError(key) from exc
        except OSError as exc:
            raise StorageError(f"could not remove {key}: {exc}") from exc
        logger.debug("Removed blob %s/%s", self.bucket, key)

    async def exists(self, key: str) -> bool:
        path = self._path_for(key)
        return await asyncio.to_thread(path.is_file)

    async def list(self) -> list[BlobEntry]:
        return await asyncio.to_thread(self._scan)

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{self.bucket}/{quote(key)}"

    def _scan(self) -> list[BlobEntry]:
        entries: list[BlobEntry] = []
        for path in sorted(self._root.rglob("*")):
            if not path.is_file():
                continue
            stat = path.stat()
            entries.append(
                BlobEntry(
                    name=path.relative_to(self._root).as_posix(),
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    size=stat.st_size,
                )
            )
        return entries

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
