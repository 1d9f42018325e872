"""Dependency wiring for the FastAPI app."""

from __future__ import annotations

from app.services.jobs import SweepJob, build_files_job, build_photos_job

_files_job: SweepJob | None = None
_photos_job: SweepJob | None = None


def get_files_job() -> SweepJob:
    """Return the files sweep, built once per process."""

    global _files_job
    if _files_job is None:
        _files_job = build_files_job()
    return _files_job


def get_photos_job() -> SweepJob:
    global _photos_job
    if _photos_job is None:
        _photos_job = build_photos_job()
    return _photos_job
