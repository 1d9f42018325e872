"""Cleanup tasks for expired media."""

from __future__ import annotations

import logging
from datetime import datetime

from app.services.errors import (
    BlobDeleteFailed,
    BlobNotFoundError,
    EnumerationFailed,
    ItemDeleteFailed,
    MetadataDeleteFailed,
)
from app.services.metadata import MetadataIndex
from app.services.retention import (
    RetentionRule,
    StoredItem,
    SweepFailure,
    SweepResult,
    utcnow,
)
from app.storage.backend import StorageBackend

logger = logging.getLogger(__name__)


async def sweep_expired(
    rule: RetentionRule,
    blobs: StorageBackend,
    index: MetadataIndex,
    *,
    now: datetime | None = None,
    collection: str = "items",
) -> SweepResult:
    """
    Remove every item matched by ``rule`` from the blob store and the index.

    Items are processed one at a time in enumeration order. A failure on either
    step is recorded against the item and the sweep moves on; only a failure to
    enumerate candidates aborts the run, as ``EnumerationFailed``.

    An item whose metadata outlived its blob is picked up again by the next run:
    ``remove`` is still called for it, and ``BlobNotFoundError`` counts as
    the blob step being done.
    """

    now = now or utcnow()
    result = SweepResult(collection=collection, started_at=now)
    cutoff = rule.cutoff(now)

    try:
        candidates = await index.list_before(rule.reference_field, cutoff)
    except Exception as exc:
        logger.error("Enumerating expired %s failed: %s", collection, exc)
        raise EnumerationFailed(collection, exc) from exc

    result.matched = len(candidates)
    logger.info(
        "Sweeping %s: %d candidates with %s before %s",
        collection,
        result.matched,
        rule.reference_field,
        cutoff.isoformat(),
    )

    for item in candidates:
        try:
            await _remove_item(item, blobs, index, result)
        except ItemDeleteFailed as exc:
            logger.error(
                "Failed to delete %s %s at %s step: %s",
                collection,
                item.id,
                exc.step.value,
                exc.cause,
            )
            result.failures.append(
                SweepFailure(
                    item_id=item.id,
                    storage_key=item.storage_key,
                    step=exc.step,
                    error=str(exc.cause),
                )
            )
            continue
        result.deleted_ids.append(item.id)

    result.finished_at = utcnow()
    logger.info(
        "Cleanup of %s completed: %d matched, %d deleted, %d failed",
        collection,
        result.matched,
        result.deleted,
        result.failed,
    )
    return result


async def _remove_item(
    item: StoredItem,
    blobs: StorageBackend,
    index: MetadataIndex,
    result: SweepResult,
) -> None:
    try:
        await blobs.remove(item.storage_key)
    except BlobNotFoundError:
        # an earlier run removed the blob but not the record
        logger.warning("Blob %s for %s already missing", item.storage_key, item.id)
        result.missing_blobs.append(item.storage_key)
    except Exception as exc:
        raise BlobDeleteFailed(item.id, exc) from exc

    try:
        await index.delete(item.id)
    except Exception as exc:
        raise MetadataDeleteFailed(item.id, exc) from exc
