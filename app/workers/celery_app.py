"""Celery worker and beat schedule for the daily retention sweeps."""

from __future__ import annotations

import asyncio

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from app.config.settings import get_settings
from app.monitoring.logging import configure_logging
from app.services.jobs import run_files_cleanup, run_photos_cleanup

settings = get_settings()

celery_app = Celery(
    "retention_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=86400,
    beat_schedule={
        "cleanup-expired-files": {
            "task": "app.workers.celery_app.cleanup_expired_files",
            "schedule": crontab(hour=settings.cleanup_hour, minute=settings.cleanup_minute),
        },
        "cleanup-old-photos": {
            "task": "app.workers.celery_app.cleanup_old_photos",
            "schedule": crontab(hour=settings.cleanup_hour, minute=settings.cleanup_minute),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**_: object) -> None:
    configure_logging()


@celery_app.task(name="app.workers.celery_app.cleanup_expired_files")
def cleanup_expired_files() -> dict:
    """Delete uploaded files past their ``expires_at``."""

    return asyncio.run(run_files_cleanup()).as_dict()


@celery_app.task(name="app.workers.celery_app.cleanup_old_photos")
def cleanup_old_photos() -> dict:
    """Delete photos older than the retention window."""

    return asyncio.run(run_photos_cleanup()).as_dict()
