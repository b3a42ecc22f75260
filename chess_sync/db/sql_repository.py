"""Implementation of the GameStore using SQLAlchemy (durable backing)"""

from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, scoped_session

from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.models import GameId, GameRecord
from chess_sync.db.repository import apply_changes
from chess_sync.db.schema import DBGame


class SQLGameStore:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(
        self, db_session: Session | scoped_session[Session], clock: Clock = now_ms
    ) -> None:
        self.db = db_session
        self._clock = clock

    def get_game(self, game_id: GameId) -> GameRecord | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        record = self._to_record(game_db) if game_db else None
        # end the read transaction, so the next poll sees rows written by other sessions
        self.db.commit()
        return record

    def upsert_game(self, record: GameRecord) -> None:
        """Insert the record, or overwrite the existing row with the same id."""
        game_db = self._fetch_game(record.id)
        if game_db is None:
            game_db = DBGame(id=record.id)
            self.db.add(game_db)
        self._write_fields(game_db, record)
        self.db.commit()

    def update_game(self, game_id: GameId, changes: Mapping[str, Any]) -> GameRecord | None:
        """Overwrite the given fields of an existing record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        updated = apply_changes(self._to_record(game_db), changes, self._clock())
        self._write_fields(game_db, updated)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_record(game_db)

    def delete_game(self, game_id: GameId) -> GameRecord | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        record = self._to_record(game_db)
        self.db.delete(game_db)
        self.db.commit()
        return record

    def _fetch_game(self, game_id: GameId) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _write_fields(self, game_db: DBGame, record: GameRecord) -> None:
        """Copy the wire form of the record onto the row. JSON columns get new lists (no in-place mutation)."""
        wire = record.to_wire()
        game_db.players = wire["players"]
        game_db.moves = wire["moves"]
        game_db.current_turn = wire["currentTurn"]
        game_db.last_updated = wire["lastUpdated"]

    def _to_record(self, game_db: DBGame) -> GameRecord:
        """Convert SQLAlchemy model to the shared record (validated at this boundary)."""
        return GameRecord.from_wire(
            {
                "id": game_db.id,
                "players": game_db.players,
                "moves": game_db.moves,
                "currentTurn": game_db.current_turn,
                "lastUpdated": game_db.last_updated,
            }
        )
