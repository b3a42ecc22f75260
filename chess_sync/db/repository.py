"""Protocol for the session store (implemented in memory and with SQLAlchemy)."""

from typing import Any, Mapping, Protocol

from pydantic import ValidationError

from chess_sync.core.exceptions import InvalidRecordError
from chess_sync.core.models import GameId, GameRecord

# fields a partial update may touch. 'id' is the key, 'last_updated' is always refreshed by the store.
UPDATABLE_FIELDS = ("players", "moves", "current_turn")
_ALIAS_TO_FIELD = {
    (GameRecord.model_fields[name].alias or name): name for name in UPDATABLE_FIELDS
}


class GameStore(Protocol):
    """
    Shared document store, one GameRecord per game id.

    No compare-and-swap: every write is a blind overwrite, callers must tolerate lost updates.
    """

    def get_game(self, game_id: GameId) -> GameRecord | None:
        """Get game by ID, if record exists."""
        ...

    def upsert_game(self, record: GameRecord) -> None:
        """Insert the record, or overwrite the existing record with the same id."""
        ...

    def update_game(self, game_id: GameId, changes: Mapping[str, Any]) -> GameRecord | None:
        """Overwrite the given fields of an existing record. Returns None for an unknown id."""
        ...

    def delete_game(self, game_id: GameId) -> GameRecord | None:
        """Remove a game's record."""
        ...


def apply_changes(record: GameRecord, changes: Mapping[str, Any], now: int) -> GameRecord:
    """
    Merge a partial update into a record and validate the result.
    ---
    Keys may be python field names or their wire aliases. lastUpdated is always set to 'now'.
    """
    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        name = _ALIAS_TO_FIELD.get(key, key)
        if name not in UPDATABLE_FIELDS:
            raise InvalidRecordError(
                f"Cannot update field {key!r}. Pick one from {', '.join(UPDATABLE_FIELDS)}."
            )
        normalized[name] = value

    data = record.model_dump()
    data.update(normalized)
    data["last_updated"] = now
    try:
        return GameRecord.model_validate(data)
    except ValidationError as error:
        raise InvalidRecordError(f"Update for game {record.id!r} is malformed: {error}") from error
