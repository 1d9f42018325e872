"""Retention rules and the records a sweep works with."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from app.services.stages import SweepStep

ReferenceField = Literal["created_at", "expires_at"]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class StoredItem:
    """One persisted blob together with its metadata record."""

    id: str
    storage_key: str
    created_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class FixedWindowRule:
    """Expire items whose age since creation exceeds ``window``."""

    window: timedelta
    reference_field: ReferenceField = field(default="created_at", init=False)

    def cutoff(self, now: datetime) -> datetime:
        return now - self.window

    def matches(self, item: StoredItem, now: datetime) -> bool:
        return item.created_at is not None and item.created_at < self.cutoff(now)


@dataclass(frozen=True, slots=True)
class ExplicitExpiryRule:
    """Expire items whose own ``expires_at`` lies in the past.

    Items without an expiry never match.
    """

    reference_field: ReferenceField = field(default="expires_at", init=False)

    def cutoff(self, now: datetime) -> datetime:
        return now

    def matches(self, item: StoredItem, now: datetime) -> bool:
        return item.expires_at is not None and item.expires_at < now


RetentionRule = FixedWindowRule | ExplicitExpiryRule


@dataclass(frozen=True, slots=True)
class SweepFailure:
    """An item the sweep could not fully remove."""

    item_id: str
    storage_key: str
    step: SweepStep
    error: str


@dataclass(slots=True)
class SweepResult:
    """Outcome of one sweep over a collection."""

    collection: str
    matched: int = 0
    deleted_ids: list[str] = field(default_factory=list)
    failures: list[SweepFailure] = field(default_factory=list)
    missing_blobs: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def deleted(self) -> int:
        return len(self.deleted_ids)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def failed_ids(self) -> list[str]:
        return [failure.item_id for failure in self.failures]

    def failed_at(self, step: SweepStep) -> list[SweepFailure]:
        """Return failures that happened at ``step``."""

        return [failure for failure in self.failures if failure.step is step]

    def summary(self) -> str:
        return (
            f"{self.collection}: matched={self.matched} "
            f"deleted={self.deleted} failed={self.failed}"
        )

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation used by the API and tasks."""

        return {
            "collection": self.collection,
            "matched": self.matched,
            "deleted": self.deleted,
            "failed": self.failed,
            "deleted_ids": list(self.deleted_ids),
            "failures": [
                {
                    "item_id": failure.item_id,
                    "storage_key": failure.storage_key,
                    "step": failure.step.value,
                    "error": failure.error,
                }
                for failure in self.failures
            ],
            "missing_blobs": list(self.missing_blobs),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
