"""S3-compatible blob storage backend."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.services.errors import BlobNotFoundError, StorageError
from app.storage.backend import BlobEntry

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _is_missing(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code")) in _MISSING_CODES


class S3Storage:
    """Blob storage on any S3-compatible object store.

    boto3 is synchronous, so every call is pushed to a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        *,
        endpoint: str = "",
        region: str = "",
        access_key_id: str = "",
        secret_access_key: str = "",
        public_base_url: str = "",
        client=None,
    ) -> None:
        self.bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint or None,
                region_name=region or None,
                aws_access_key_id=access_key_id or None,
                aws_secret_access_key=secret_access_key or None,
                config=Config(signature_version="s3v4"),
            )
        self._client = client

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> str:
        params = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        await self._call(key, "put_object", **params)
        return key

    async def download(self, key: str) -> bytes:
        response = await self._call(key, "get_object", Bucket=self.bucket, Key=key)
        return await asyncio.to_thread(response["Body"].read)

    async def remove(self, key: str) -> None:
        """Delete the blob; raise ``BlobNotFoundError`` if it is already gone.

        S3 deletes are silent for unknown keys, hence the HEAD first.
        """

        await self._call(key, "head_object", Bucket=self.bucket, Key=key)
        await self._call(key, "delete_object", Bucket=self.bucket, Key=key)
        logger.debug("Removed blob s3://%s/%s", self.bucket, key)

    async def exists(self, key: str) -> bool:
        try:
            await self._call(key, "head_object", Bucket=self.bucket, Key=key)
        except BlobNotFoundError:
            return False
        return True

    async def list(self) -> list[BlobEntry]:
        return await asyncio.to_thread(self._list_all)

    def public_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{self.bucket}/{quote(key)}"
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=3600,
        )

    def _list_all(self) -> list[BlobEntry]:
        paginator = self._client.get_paginator("list_objects_v2")
        entries: list[BlobEntry] = []
        try:
            for page in paginator.paginate(Bucket=self.bucket):
                for obj in page.get("Contents", []):
                    entries.append(
                        BlobEntry(
                            name=obj["Key"],
                            last_modified=obj["LastModified"],
                            size=obj["Size"],
                        )
                    )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"could not list bucket {self.bucket}: {exc}") from exc
        return entries

    async def _call(self, key: str, operation: str, **params):
        method = getattr(self._client, operation)
        try:
            return await asyncio.to_thread(method, **params)
        except ClientError as exc:
            if _is_missing(exc):
                raise BlobNotFoundError(key) from exc
            raise StorageError(f"{operation} failed for {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"{operation} failed for {key}: {exc}") from exc
