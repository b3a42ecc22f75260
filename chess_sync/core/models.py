"""
Boundary layer data model(s).

The GameRecord is the one document both participants share through the session store.
Every layer (store, service, API, sync client) exchanges these models rather than raw dicts, so a malformed
payload is rejected at the boundary instead of propagating untyped data.

Field names are snake_case in Python; the wire format (what the store and the HTTP API hold) uses the camelCase aliases.
"""

from typing import Any, Mapping, Optional, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from chess_sync.core.exceptions import InvalidRecordError
from chess_sync.core.shared_types import Color

# A participant is "active" while its last heartbeat is younger than this.
PRESENCE_WINDOW_MS = 30_000

ParticipantId = str
GameId = str


def is_algebraic_square(value: str) -> bool:
    """'a1' - 'h8'"""
    if len(value) != 2:
        return False
    file_character, rank_character = value[0], value[1]
    return file_character in "abcdefgh" and rank_character in "12345678"


class Participant(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: ParticipantId
    is_host: bool = Field(alias="isHost")
    last_seen: int = Field(alias="lastSeen")

    def is_active(self, now: int, window_ms: int = PRESENCE_WINDOW_MS) -> bool:
        return now - self.last_seen < window_ms


class Move(BaseModel):
    """A move as recorded in the shared log. Immutable once appended."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    player_id: ParticipantId = Field(alias="playerId")
    timestamp: int
    turn: Color

    @field_validator("from_square", "to_square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not is_algebraic_square(value):
            raise ValueError(f"Cannot interpret {value!r} as a square name.")
        return value


class GameRecord(BaseModel):
    """Transport-safe representation of one game, shared by both participants."""

    model_config = ConfigDict(populate_by_name=True)

    id: GameId
    players: list[Participant] = Field(default_factory=list)
    moves: list[Move] = Field(default_factory=list)
    current_turn: Color = Field(default=Color.WHITE, alias="currentTurn")
    last_updated: int = Field(default=0, alias="lastUpdated")

    # Coerce missing values the way older writers left them behind.
    @field_validator("players", "moves", mode="before")
    @classmethod
    def none_as_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("current_turn", mode="before")
    @classmethod
    def none_as_white(cls, value: Any) -> Any:
        return Color.WHITE if value is None else value

    @field_validator("last_updated", mode="before")
    @classmethod
    def none_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @classmethod
    def new(cls, game_id: GameId, now: int) -> Self:
        """Empty game: nobody joined yet, white to move."""
        return cls(id=game_id, players=[], moves=[], current_turn=Color.WHITE, last_updated=now)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Self:
        """Validate a raw (camelCase) payload read from the store or the network."""
        try:
            return cls.model_validate(data)
        except ValidationError as error:
            raise InvalidRecordError(f"Malformed game record: {error}") from error

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def find_player(self, player_id: ParticipantId) -> Optional[Participant]:
        return next((player for player in self.players if player.id == player_id), None)

    def active_players(self, now: int, window_ms: int = PRESENCE_WINDOW_MS) -> list[Participant]:
        return [player for player in self.players if player.is_active(now, window_ms)]

    def sorted_moves(self) -> list[Move]:
        return sorted(self.moves, key=lambda move: move.timestamp)

    @property
    def latest_move_timestamp(self) -> int:
        return max((move.timestamp for move in self.moves), default=0)
