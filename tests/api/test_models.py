"""Unit tests for chess_sync/api/models.py"""

import pytest
from pydantic import ValidationError

from chess_sync.api.models import JoinRequest, MoveRequest
from chess_sync.core.exceptions import InvalidRequestError
from chess_sync.core.models import Move
from chess_sync.core.shared_types import Color

GAME_ID = "ABC123"


# -- Validation - JoinRequest --
def test_join_request_accepts_wire_names() -> None:
    request = JoinRequest.model_validate(
        {"gameId": GAME_ID, "playerId": "k3x9", "isHost": True, "timestamp": 12}
    )
    assert request.game_id == GAME_ID
    assert request.player_id == "k3x9"
    assert request.is_host is True


@pytest.mark.parametrize("game_id", ["abc123", "ABC", "ABC1234", ""])
def test_invalid_game_id(game_id: str) -> None:
    with pytest.raises(InvalidRequestError):
        _ = JoinRequest(game_id=game_id, player_id="k3x9", is_host=False)


def test_empty_player_id() -> None:
    with pytest.raises(ValidationError):
        _ = JoinRequest(game_id=GAME_ID, player_id="", is_host=False)


# -- Validation - MoveRequest --
def test_valid_square_names() -> None:
    """Test that MoveRequest accepts correctly written squares in algebraic notation."""
    request = MoveRequest.model_validate(
        {
            "gameId": GAME_ID,
            "playerId": "k3x9",
            "from": "e2",
            "to": "e4",
            "timestamp": 100,
            "turn": "w",
            "nextTurn": "b",
        }
    )
    assert request.from_square == "e2"
    assert request.to_square == "e4"
    assert request.turn == Color.WHITE
    assert request.next_turn == Color.BLACK


@pytest.mark.parametrize(
    "square",
    [
        "nonsense",  # anything more than two characters.
        "11",  # First character is not a letter
        "aa",  # second character is not a number
        "i1",  # off the board
    ],
)
def test_invalid_from_square(square: str) -> None:
    """Test that an exception is raised when using invalid square name."""
    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(
            game_id=GAME_ID,
            player_id="k3x9",
            from_square=square,
            to_square="e2",
            timestamp=1,
            turn=Color.WHITE,
        )


@pytest.mark.parametrize("square", ["nonsense", "11", "aa", "a9"])
def test_invalid_to_square(square: str) -> None:
    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(
            game_id=GAME_ID,
            player_id="k3x9",
            from_square="e2",
            to_square=square,
            timestamp=1,
            turn=Color.WHITE,
        )


def test_next_turn_must_alternate() -> None:
    with pytest.raises(InvalidRequestError):
        _ = MoveRequest(
            game_id=GAME_ID,
            player_id="k3x9",
            from_square="e2",
            to_square="e4",
            timestamp=1,
            turn=Color.WHITE,
            next_turn=Color.WHITE,
        )


def test_move_request_from_logged_move() -> None:
    move = Move(from_square="e7", to_square="e5", player_id="g1", timestamp=200, turn=Color.BLACK)
    request = MoveRequest.from_move(GAME_ID, move)
    assert request.model_dump(by_alias=True, mode="json") == {
        "gameId": GAME_ID,
        "playerId": "g1",
        "from": "e7",
        "to": "e5",
        "timestamp": 200,
        "turn": "b",
        "nextTurn": "w",
    }
