"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from app.config.settings import get_settings


@pytest.fixture(autouse=True)
def _reset_settings() -> None:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
