"""
Whose turn is it?

The explicit currentTurn field of the shared record is the only source used to gate moves (next_turn).
The turn inferred from the move log (inferred_turn) is a derived value, used to detect inconsistent records.
"""

from typing import Iterable

from chess_sync.core.models import GameRecord, Move
from chess_sync.core.shared_types import Color, color_for


def next_turn(record: GameRecord) -> Color:
    """Authoritative side to move."""
    return record.current_turn


def turn_after(turn: Color) -> Color:
    """currentTurn after a move made under 'turn'."""
    return turn.opposite()


def is_players_turn(turn: Color, is_host: bool) -> bool:
    return turn == color_for(is_host)


def inferred_turn(moves: Iterable[Move]) -> Color:
    """White (the host) starts. Otherwise it is the side that did NOT make the latest move."""
    latest = max(moves, key=lambda move: move.timestamp, default=None)
    if latest is None:
        return Color.WHITE
    return turn_after(latest.turn)


def turn_order_is_consistent(moves: Iterable[Move]) -> bool:
    """Sorted by timestamp, the log starts with white and no two consecutive moves share a turn."""
    ordered = sorted(moves, key=lambda move: move.timestamp)
    expected = Color.WHITE
    for move in ordered:
        if move.turn != expected:
            return False
        expected = turn_after(expected)
    return True
