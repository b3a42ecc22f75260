"""Generate database sessions and pick the session store backend from configuration"""

from sqlalchemy import StaticPool, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.config import Settings
from chess_sync.db.memory_repository import InMemoryGameStore
from chess_sync.db.repository import GameStore
from chess_sync.db.schema import Base
from chess_sync.db.sql_repository import SQLGameStore


def create_db_engine(settings: Settings) -> Engine:
    """Engine for the configured URL. In-memory SQLite needs a single shared connection across threads."""
    if settings.database_url.startswith("sqlite") and ":memory:" in settings.database_url:
        return create_engine(
            settings.database_url,
            echo=settings.database_echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(settings.database_url, echo=settings.database_echo)


def create_session_factory(settings: Settings) -> sessionmaker[Session]:
    engine = create_db_engine(settings)
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def build_store(settings: Settings, clock: Clock = now_ms) -> GameStore:
    """Process-lifetime map ('memory') or durable SQL backing ('sql')."""
    if settings.store_backend == "sql":
        session_factory = create_session_factory(settings)
        # thread-local sessions: FastAPI runs sync routes in a thread pool
        return SQLGameStore(scoped_session(session_factory), clock=clock)
    return InMemoryGameStore(clock=clock)
