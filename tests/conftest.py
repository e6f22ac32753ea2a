"""Shared pytest fixtures for CancelFlow tests.

This module provides common fixtures used across unit and integration tests.
Fixtures include a controllable clock, configuration, a session logger, an
in-memory SQLite database with sample rows, and the API application.
"""

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from cancelflow.api.app import create_app
from cancelflow.db.database import create_db_engine, create_session_factory, init_db
from cancelflow.db.seed import SAMPLE_SUBSCRIPTIONS, seed_sample_data
from cancelflow.security.store import InMemoryStore
from cancelflow.utils.config import AppConfig
from cancelflow.utils.session import SessionLogger

USER_ID = "550e8400-e29b-41d4-a716-446655440001"
SUBSCRIPTION_ID = SAMPLE_SUBSCRIPTIONS[0][0]


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """A FakeClock starting at a fixed epoch second."""
    return FakeClock()


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Test configuration.

    Uses small rate limits so limit behaviour is cheap to exercise.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.

    Returns:
        AppConfig: A configuration object for testing.
    """
    return AppConfig(
        database_url="sqlite://",
        output_dir=tmp_path / "output",
        get_rate_limit=5,
        get_rate_window=300,
        post_rate_limit=5,
        post_rate_window=900,
    )


@pytest.fixture
def session_log(tmp_path: Path) -> SessionLogger:
    """Session logger writing to a temporary directory."""
    return SessionLogger(
        output_dir=tmp_path, user_id=USER_ID, api_url="http://testserver"
    )


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine shared across threads, with tables created."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Session on the seeded in-memory database."""
    db = create_session_factory(db_engine)()
    seed_sample_data(db)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def api_app(app_config: AppConfig, db_engine: Engine, clock: FakeClock) -> FastAPI:
    """API application on the seeded in-memory database."""
    with create_session_factory(db_engine)() as db:
        seed_sample_data(db)
    return create_app(
        app_config,
        engine=db_engine,
        rate_limit_store=InMemoryStore(clock=clock),
        csrf_store=InMemoryStore(clock=clock),
    )


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    """Test client for the API."""
    return TestClient(api_app)


@pytest.fixture
def read_db(db_engine: Engine):
    """Open a fresh session for assertions against the database."""

    def _open() -> Session:
        return create_session_factory(db_engine)()

    return _open
