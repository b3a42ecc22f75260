"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, BigInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "chess_games"
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    players: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    moves: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    current_turn: Mapped[str] = mapped_column(String(1), default="w")
    # milliseconds since epoch, same unit as the timestamps inside the JSON columns
    last_updated: Mapped[int] = mapped_column(BigInteger, default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
