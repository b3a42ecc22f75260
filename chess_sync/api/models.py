"""Requests and Response models"""

from typing import Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from chess_sync.core.exceptions import InvalidRequestError
from chess_sync.core.models import GameRecord, Move, is_algebraic_square
from chess_sync.core.shared_types import Color
from chess_sync.services.game_ids import validate_game_id


class _Request(BaseModel):
    """Requests accept both the camelCase wire names and the python field names."""

    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(alias="gameId")

    @field_validator("game_id")
    @classmethod
    def check_game_id(cls, value: str) -> str:
        if not validate_game_id(value):
            raise InvalidRequestError(f"Cannot interpret {value!r} as a game id.")
        return value


# --- REQUEST MODELS ---
class GetGameRequest(_Request):
    pass


class DeleteGameRequest(_Request):
    pass


class JoinRequest(_Request):
    player_id: str = Field(alias="playerId", min_length=1)
    is_host: bool = Field(alias="isHost")
    # client clock, informational only: the store stamps lastSeen with its own clock
    timestamp: Optional[int] = None


class PingRequest(JoinRequest):
    pass


class MoveRequest(_Request):
    player_id: str = Field(alias="playerId", min_length=1)
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    timestamp: int
    turn: Color
    next_turn: Optional[Color] = Field(default=None, alias="nextTurn")

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not is_algebraic_square(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value

    @model_validator(mode="after")
    def validate_next_turn(self) -> Self:
        if self.next_turn is not None and self.next_turn != self.turn.opposite():
            raise InvalidRequestError(
                f"Next turn must alternate: got turn={self.turn!r}, nextTurn={self.next_turn!r}."
            )
        return self

    @classmethod
    def from_move(cls, game_id: str, move: Move) -> Self:
        return cls(
            game_id=game_id,
            player_id=move.player_id,
            from_square=move.from_square,
            to_square=move.to_square,
            timestamp=move.timestamp,
            turn=move.turn,
            next_turn=move.turn.opposite(),
        )


# --- RESPONSE MODELS ---
class GameCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(alias="gameId")
    game: GameRecord


class MoveAcceptedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    current_turn: Color = Field(alias="currentTurn")
    move: Move
