"""Unit tests for chess_sync/core/turns.py"""

import pytest

from chess_sync.core.models import GameRecord, Move
from chess_sync.core.shared_types import Color
from chess_sync.core.turns import (
    inferred_turn,
    is_players_turn,
    next_turn,
    turn_after,
    turn_order_is_consistent,
)


def _move(timestamp: int, turn: Color) -> Move:
    return Move(from_square="a2", to_square="a3", player_id="p", timestamp=timestamp, turn=turn)


def test_turn_alternates() -> None:
    assert turn_after(Color.WHITE) == Color.BLACK
    assert turn_after(Color.BLACK) == Color.WHITE


@pytest.mark.parametrize(
    "turn, is_host, expected",
    [
        (Color.WHITE, True, True),
        (Color.WHITE, False, False),
        (Color.BLACK, True, False),
        (Color.BLACK, False, True),
    ],
)
def test_host_plays_white(turn: Color, is_host: bool, expected: bool) -> None:
    assert is_players_turn(turn, is_host) is expected


def test_next_turn_reads_the_explicit_field() -> None:
    """Even when the log says otherwise, gating uses currentTurn."""
    record = GameRecord(id="ABC123", moves=[_move(1, Color.WHITE)], current_turn=Color.WHITE)
    assert next_turn(record) == Color.WHITE
    assert inferred_turn(record.moves) == Color.BLACK


def test_inferred_turn() -> None:
    assert inferred_turn([]) == Color.WHITE
    # out of order on purpose: the latest move by timestamp decides
    assert inferred_turn([_move(2, Color.BLACK), _move(1, Color.WHITE)]) == Color.WHITE
    assert inferred_turn([_move(1, Color.WHITE)]) == Color.BLACK


def test_turn_order_consistency() -> None:
    assert turn_order_is_consistent([])
    assert turn_order_is_consistent([_move(3, Color.WHITE), _move(1, Color.WHITE), _move(2, Color.BLACK)])
    assert not turn_order_is_consistent([_move(1, Color.WHITE), _move(2, Color.WHITE)])
    assert not turn_order_is_consistent([_move(1, Color.BLACK)])
