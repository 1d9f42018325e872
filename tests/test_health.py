"""Sanity tests for the FastAPI health endpoint."""

import pytest
import pytest_mock
from fastapi.testclient import TestClient

from app.api.main import app, create_app


def test_health_returns_ok() -> None:
    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_docs_hidden_in_prod(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    client = TestClient(create_app())

    assert client.get("/docs").status_code == 404


def test_startup_creates_tables(mocker: pytest_mock.MockerFixture) -> None:
    init_db = mocker.patch("app.api.main.init_db", new_callable=mocker.AsyncMock)

    with TestClient(create_app()) as client:
        assert client.get("/health").status_code == 200

    init_db.assert_awaited_once_with()
