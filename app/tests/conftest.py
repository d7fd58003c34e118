import pytest
from fastapi.testclient import TestClient

from core.config import get_settings
from db.session import get_engine, get_session_factory


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'schedules.db'}")
    monkeypatch.setenv("SEED_DEFAULTS", "true")
    monkeypatch.setenv("DB_INIT_ATTEMPTS", "1")
    _clear_caches()

    from main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    _clear_caches()


@pytest.fixture
def create_schedule(client):
    def _create(**overrides):
        payload = {"source": "X", "destination": "Y", "busId": 1, "driverId": 2}
        payload.update(overrides)
        r = client.post("/api/v1/schedules/", json=payload)
        assert r.status_code == 200, r.text
        return r.json()["data"]

    return _create
