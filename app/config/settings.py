"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./data/app.db"
    redis_url: str = "redis://localhost:6379/0"

    storage_backend: str = "local"
    media_root: str = "data/media"
    public_base_url: str = "http://localhost:8000/media"
    files_bucket: str = "files"
    photos_bucket: str = "photos"

    s3_endpoint: str = ""
    s3_region: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""

    file_ttl_days: int = 30
    photo_retention_days: int = 30
    cleanup_hour: int = 2
    cleanup_minute: int = 0

    internal_token: str = ""


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/app.db"),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        storage_backend=os.getenv("STORAGE_BACKEND", "local").lower(),
        media_root=os.getenv("MEDIA_ROOT", "data/media"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000/media"),
        files_bucket=os.getenv("FILES_BUCKET", "files"),
        photos_bucket=os.getenv("PHOTOS_BUCKET", "photos"),
        s3_endpoint=os.getenv("S3_ENDPOINT", ""),
        s3_region=os.getenv("S3_REGION", ""),
        s3_access_key_id=os.getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=os.getenv("S3_SECRET_ACCESS_KEY", ""),
        file_ttl_days=int(os.getenv("FILE_TTL_DAYS", "30")),
        photo_retention_days=int(os.getenv("PHOTO_RETENTION_DAYS", "30")),
        cleanup_hour=int(os.getenv("CLEANUP_HOUR", "2")),
        cleanup_minute=int(os.getenv("CLEANUP_MINUTE", "0")),
        internal_token=os.getenv("INTERNAL_TOKEN", ""),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
