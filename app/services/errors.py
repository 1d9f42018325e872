"""Exceptions raised by storage collaborators and retention sweeps."""

from __future__ import annotations

from app.services.stages import SweepStep


class StorageError(Exception):
    """Blob store operation failed."""


class BlobNotFoundError(StorageError, KeyError):
    """No blob is stored under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"blob not found: {self.key}"


class SweepError(Exception):
    """Base class for retention sweep errors."""


class ItemDeleteFailed(SweepError):
    """Removing one expired item failed at a specific step."""

    step: SweepStep

    def __init__(self, item_id: str, cause: BaseException) -> None:
        super().__init__(f"{self.step.value} delete failed for {item_id}: {cause}")
        self.item_id = item_id
        self.cause = cause


class BlobDeleteFailed(ItemDeleteFailed):
    """The blob store refused or failed to remove an item's blob."""

    step = SweepStep.BLOB


class MetadataDeleteFailed(ItemDeleteFailed):
    """The metadata record survived after its blob was removed."""

    step = SweepStep.METADATA


class EnumerationFailed(SweepError):
    """Listing candidates failed, so the whole run has nothing to iterate."""

    def __init__(self, collection: str, cause: BaseException) -> None:
        super().__init__(f"could not enumerate expired {collection}: {cause}")
        self.collection = collection
        self.cause = cause
