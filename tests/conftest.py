"""
Shared fixtures for the livevip_api test suite.

A SQLite file database under ``tmp_path`` stands in for PostgreSQL; the
store and the Flask app run against it through the same SQLAlchemy engine
they use in production.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine

from livevip_api.app import create_app
from livevip_api.config import Settings
from livevip_api.store import RecordStore


class FakeClock:
    """Deterministic clock; each call advances by ``step`` unless frozen."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'streams.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(engine, clock) -> RecordStore:
    s = RecordStore(engine, clock=clock)
    s.ensure_schema()
    return s


@pytest.fixture
def settings() -> Settings:
    return Settings(service_name="livevip-api-test")


@pytest.fixture
def app(settings, engine):
    application = create_app(settings, engine=engine)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_store(app) -> RecordStore:
    """The store instance wired into ``app``."""
    return app.extensions["livevip.store"]
