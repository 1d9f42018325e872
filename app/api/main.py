"""FastAPI entrypoint and HTTP routes."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status

from app.api.auth import InternalAuthDependency
from app.api.dependencies import get_files_job, get_photos_job
from app.config.settings import get_settings
from app.db.session import init_db
from app.monitoring.logging import configure_logging
from app.services.errors import EnumerationFailed
from app.services.jobs import SweepJob


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Create missing tables before serving requests."""

    await init_db()
    yield


async def _run_sweep(job: SweepJob) -> dict[str, Any]:
    try:
        result = await job.run()
    except EnumerationFailed as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return result.as_dict()


def create_app() -> FastAPI:
    """Initialise the FastAPI application."""

    settings = get_settings()
    configure_logging()
    app = FastAPI(
        title="Storage Services API",
        version="0.1.0",
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.post("/files/cleanup", tags=["maintenance"], dependencies=[InternalAuthDependency])
    async def cleanup_expired_files(
        job: SweepJob = Depends(get_files_job),
    ) -> dict[str, Any]:
        """Delete uploaded files past their expiry and report the outcome."""

        return await _run_sweep(job)

    @app.post("/photos/cleanup", tags=["maintenance"], dependencies=[InternalAuthDependency])
    async def cleanup_old_photos(
        job: SweepJob = Depends(get_photos_job),
    ) -> dict[str, Any]:
        """Delete photos older than the retention window and report the outcome."""

        return await _run_sweep(job)

    return app


app = create_app()
