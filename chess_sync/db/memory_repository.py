"""Implementation of the GameStore as a process-wide in-memory map (no persistence across restarts)."""

import logging
import threading
from typing import Any, Mapping

from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.models import GameId, GameRecord
from chess_sync.db.repository import apply_changes

logger = logging.getLogger(__name__)


class InMemoryGameStore:
    """
    Records are kept in their wire form and re-validated on every read,
    so no caller ever holds a reference into the store's own state.
    """

    def __init__(self, clock: Clock = now_ms) -> None:
        self._games: dict[GameId, dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get_game(self, game_id: GameId) -> GameRecord | None:
        """Get game by ID, if record exists."""
        with self._lock:
            data = self._games.get(game_id)
        if data is None:
            return None
        return GameRecord.from_wire(data)

    def upsert_game(self, record: GameRecord) -> None:
        """Insert the record, or overwrite the existing record with the same id."""
        with self._lock:
            self._games[record.id] = record.to_wire()
        logger.debug("Stored game %s (%d moves)", record.id, len(record.moves))

    def update_game(self, game_id: GameId, changes: Mapping[str, Any]) -> GameRecord | None:
        """Overwrite the given fields of an existing record."""
        with self._lock:
            data = self._games.get(game_id)
            if data is None:
                return None
            updated = apply_changes(GameRecord.from_wire(data), changes, self._clock())
            self._games[game_id] = updated.to_wire()
        return updated

    def delete_game(self, game_id: GameId) -> GameRecord | None:
        """Remove a game's record."""
        with self._lock:
            data = self._games.pop(game_id, None)
        if data is None:
            return None
        return GameRecord.from_wire(data)

    def clear(self) -> None:
        """Drop every record (useful in between tests)"""
        with self._lock:
            self._games.clear()
