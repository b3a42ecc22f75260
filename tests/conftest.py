"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from chess_sync.core.config import Settings
from chess_sync.db.memory_repository import InMemoryGameStore
from chess_sync.db.schema import Base
from chess_sync.services.session_service import SessionService

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


class FakeClock:
    """Wall clock in milliseconds that only moves when a test says so."""

    def __init__(self, start: int = 0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def set(self, now: int) -> None:
        self.now = now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=0)


@pytest.fixture
def memory_store(clock: FakeClock) -> Generator[InMemoryGameStore, None, None]:
    """Ensures to clear the store between tests"""
    store = InMemoryGameStore(clock=clock)
    try:
        yield store
    finally:
        store.clear()


@pytest.fixture
def service(memory_store: InMemoryGameStore, clock: FakeClock) -> SessionService:
    return SessionService(memory_store, clock=clock)


@pytest.fixture
def settings() -> Settings:
    """Fast client settings: no delays worth waiting for in tests."""
    return Settings(
        store_backend="memory",
        poll_interval_s=0.01,
        liveness_check_interval_s=0.01,
        post_move_poll_delay_s=0.0,
    )
