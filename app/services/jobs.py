"""Configured retention sweeps for the files and photos collections."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import Settings, get_settings
from app.metrics import prometheus_exporter as metrics
from app.services.errors import EnumerationFailed
from app.services.metadata import BucketListingIndex, MetadataIndex, UploadedFileIndex
from app.services.retention import (
    ExplicitExpiryRule,
    FixedWindowRule,
    RetentionRule,
    SweepResult,
)
from app.storage.backend import StorageBackend
from app.storage.factory import build_storage
from app.workers.cleanup import sweep_expired

logger = logging.getLogger(__name__)

FILES = "files"
PHOTOS = "photos"


@dataclass(slots=True)
class SweepJob:
    """A retention rule bound to the stores of one collection."""

    collection: str
    rule: RetentionRule
    blobs: StorageBackend
    index: MetadataIndex

    async def run(self, now: datetime | None = None) -> SweepResult:
        """Run one sweep and record its outcome in Prometheus."""

        try:
            result = await sweep_expired(
                self.rule,
                self.blobs,
                self.index,
                now=now,
                collection=self.collection,
            )
        except EnumerationFailed:
            metrics.sweep_runs_total.labels(self.collection, "error").inc()
            raise

        metrics.sweep_runs_total.labels(self.collection, "ok").inc()
        metrics.swept_items_total.labels(self.collection).inc(result.deleted)
        for failure in result.failures:
            metrics.sweep_failures_total.labels(self.collection, failure.step.value).inc()
        metrics.last_sweep_timestamp.labels(self.collection).set_to_current_time()
        if result.failed:
            logger.warning(
                "%s left %d items for the next run: %s",
                self.collection,
                result.failed,
                ", ".join(result.failed_ids),
            )
        return result


def build_files_job(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> SweepJob:
    """Uploaded files expire at their own ``expires_at``."""

    settings = settings or get_settings()
    if session_factory is None:
        from app.db.session import AsyncSessionFactory

        session_factory = AsyncSessionFactory
    return SweepJob(
        collection=FILES,
        rule=ExplicitExpiryRule(),
        blobs=build_storage(settings.files_bucket, settings),
        index=UploadedFileIndex(session_factory),
    )


def build_photos_job(settings: Settings | None = None) -> SweepJob:
    """Photos are kept for a fixed number of days after upload."""

    settings = settings or get_settings()
    storage = build_storage(settings.photos_bucket, settings)
    return SweepJob(
        collection=PHOTOS,
        rule=FixedWindowRule(timedelta(days=settings.photo_retention_days)),
        blobs=storage,
        index=BucketListingIndex(storage),
    )


async def run_files_cleanup() -> SweepResult:
    """Sweep uploaded files on a private engine bound to the running loop."""

    from app.db.session import build_engine, init_db

    settings = get_settings()
    engine = build_engine(settings.database_url)
    try:
        await init_db(engine)
        factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        return await build_files_job(settings, factory).run()
    finally:
        await engine.dispose()


async def run_photos_cleanup() -> SweepResult:
    return await build_photos_job().run()
