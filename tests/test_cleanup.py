"""Tests for the expiration sweep."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.services.errors import EnumerationFailed
from app.services.retention import ExplicitExpiryRule, FixedWindowRule, StoredItem
from app.services.stages import SweepStep
from app.workers.cleanup import sweep_expired
from tests.fakes import NOW, FakeBlobStore, FakeIndex, make_stores


def _created(item_id: str, days_ago: float) -> StoredItem:
    return StoredItem(
        id=item_id,
        storage_key=f"{item_id}/blob.bin",
        created_at=NOW - timedelta(days=days_ago),
    )


def _expiring(item_id: str, expires_in: timedelta | None) -> StoredItem:
    return StoredItem(
        id=item_id,
        storage_key=f"{item_id}/blob.bin",
        created_at=NOW - timedelta(days=365),
        expires_at=NOW + expires_in if expires_in is not None else None,
    )


@pytest.mark.asyncio
async def test_fixed_window_sweeps_only_items_older_than_window() -> None:
    items = [_created("old", 91), _created("young", 89), _created("edge", 90)]
    blobs, index = make_stores(items)

    result = await sweep_expired(
        FixedWindowRule(timedelta(days=90)), blobs, index, now=NOW
    )

    assert result.matched == 1
    assert result.deleted_ids == ["old"]
    assert set(index.items) == {"young", "edge"}
    assert "old/blob.bin" not in blobs.blobs
    assert "young/blob.bin" in blobs.blobs


@pytest.mark.asyncio
async def test_explicit_expiry_skips_unset_and_future_expiry() -> None:
    items = [
        _expiring("expired", -timedelta(days=1)),
        _expiring("never", None),
        _expiring("later", timedelta(days=1)),
        _expiring("now", timedelta(0)),
    ]
    blobs, index = make_stores(items)

    result = await sweep_expired(ExplicitExpiryRule(), blobs, index, now=NOW)

    assert result.deleted_ids == ["expired"]
    assert set(index.items) == {"never", "later", "now"}


@pytest.mark.asyncio
async def test_blob_failure_does_not_stop_later_items() -> None:
    items = [_created("first", 40), _created("second", 40)]
    blobs, index = make_stores(items)
    blobs.failing["first/blob.bin"] = RuntimeError("store unavailable")

    result = await sweep_expired(
        FixedWindowRule(timedelta(days=30)), blobs, index, now=NOW
    )

    assert (result.matched, result.deleted, result.failed) == (2, 1, 1)
    assert result.deleted_ids == ["second"]
    failure = result.failures[0]
    assert failure.item_id == "first"
    assert failure.step is SweepStep.BLOB
    assert "store unavailable" in failure.error
    # metadata is left alone when the blob step fails
    assert "first" in index.items
    assert "first" not in index.deleted


@pytest.mark.asyncio
async def test_empty_candidate_set_touches_no_store() -> None:
    blobs, index = make_stores([_created("fresh", 1)])

    result = await sweep_expired(
        FixedWindowRule(timedelta(days=30)), blobs, index, now=NOW
    )

    assert (result.matched, result.deleted, result.failed) == (0, 0, 0)
    assert blobs.removed == []
    assert index.deleted == []


@pytest.mark.asyncio
async def test_second_run_matches_nothing() -> None:
    blobs, index = make_stores([_created("a", 40), _created("b", 50)])
    rule = FixedWindowRule(timedelta(days=30))

    first = await sweep_expired(rule, blobs, index, now=NOW)
    second = await sweep_expired(rule, blobs, index, now=NOW)

    assert first.deleted == 2
    assert second.matched == 0


@pytest.mark.asyncio
async def test_orphaned_metadata_is_cleared_on_next_run() -> None:
    blobs, index = make_stores([_expiring("orphan", -timedelta(hours=1))])
    index.failing["orphan"] = ConnectionError("db went away")

    first = await sweep_expired(ExplicitExpiryRule(), blobs, index, now=NOW)

    assert first.failed_at(SweepStep.METADATA)[0].item_id == "orphan"
    assert "orphan/blob.bin" not in blobs.blobs
    assert "orphan" in index.items

    del index.failing["orphan"]
    second = await sweep_expired(ExplicitExpiryRule(), blobs, index, now=NOW)

    assert second.matched == 1
    assert second.deleted_ids == ["orphan"]
    assert second.missing_blobs == ["orphan/blob.bin"]
    assert index.items == {}
    assert blobs.removed == ["orphan/blob.bin", "orphan/blob.bin"]


@pytest.mark.asyncio
async def test_enumeration_failure_aborts_run() -> None:
    blobs = FakeBlobStore(["x"])
    index = FakeIndex()
    index.listing_error = OSError("connection refused")

    with pytest.raises(EnumerationFailed) as exc_info:
        await sweep_expired(ExplicitExpiryRule(), blobs, index, now=NOW, collection="files")

    assert exc_info.value.collection == "files"
    assert isinstance(exc_info.value.cause, OSError)
    assert blobs.removed == []


@pytest.mark.asyncio
async def test_result_serialises_failures() -> None:
    blobs, index = make_stores([_created("bad", 40), _created("good", 40)])
    index.failing["bad"] = RuntimeError("locked")

    result = await sweep_expired(
        FixedWindowRule(timedelta(days=30)), blobs, index, now=NOW, collection="photos"
    )
    payload = result.as_dict()

    assert payload["collection"] == "photos"
    assert payload["matched"] == 2
    assert payload["deleted"] == 1
    assert payload["failed"] == 1
    assert payload["deleted_ids"] == ["good"]
    assert payload["failures"] == [
        {
            "item_id": "bad",
            "storage_key": "bad/blob.bin",
            "step": "metadata",
            "error": "locked",
        }
    ]
    assert payload["started_at"] == NOW.isoformat()


def test_rules_match_like_the_sweep() -> None:
    window = FixedWindowRule(timedelta(days=90))
    expiry = ExplicitExpiryRule()

    assert window.reference_field == "created_at"
    assert expiry.reference_field == "expires_at"
    assert window.matches(_created("old", 91), NOW)
    assert not window.matches(_created("edge", 90), NOW)
    assert expiry.matches(_expiring("past", -timedelta(seconds=1)), NOW)
    assert not expiry.matches(_expiring("unset", None), NOW)
    assert not expiry.matches(_expiring("now", timedelta(0)), NOW)
