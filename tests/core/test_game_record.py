"""Unit tests for chess_sync/core/models.py"""

import pytest
from pydantic import ValidationError

from chess_sync.core.exceptions import InvalidRecordError
from chess_sync.core.models import GameRecord, Move, Participant
from chess_sync.core.shared_types import Color

WIRE_RECORD = {
    "id": "ABC123",
    "players": [
        {"id": "h0st", "isHost": True, "lastSeen": 1_000},
        {"id": "g1", "isHost": False, "lastSeen": 1_500},
    ],
    "moves": [
        {"from": "e2", "to": "e4", "playerId": "h0st", "timestamp": 100, "turn": "w"},
        {"from": "e7", "to": "e5", "playerId": "g1", "timestamp": 200, "turn": "b"},
    ],
    "currentTurn": "w",
    "lastUpdated": 1_500,
}


def test_wire_record_round_trip() -> None:
    """Reading and writing the camelCase wire format must not change a single field."""
    record = GameRecord.from_wire(WIRE_RECORD)
    assert record.to_wire() == WIRE_RECORD


def test_wire_record_fields() -> None:
    record = GameRecord.from_wire(WIRE_RECORD)
    assert record.current_turn == Color.WHITE
    assert record.players[0] == Participant(id="h0st", is_host=True, last_seen=1_000)
    assert record.moves[1].from_square == "e7"
    assert record.moves[1].turn == Color.BLACK
    assert record.latest_move_timestamp == 200


def test_missing_fields_are_coerced() -> None:
    """Older writers left null / missing values behind."""
    record = GameRecord.from_wire(
        {"id": "ABC123", "players": None, "moves": None, "currentTurn": None}
    )
    assert record.players == []
    assert record.moves == []
    assert record.current_turn == Color.WHITE
    assert record.last_updated == 0
    assert record.latest_move_timestamp == 0


@pytest.mark.parametrize(
    "malformed",
    [
        {"players": [], "moves": []},  # no id
        {**WIRE_RECORD, "currentTurn": "white"},  # not w / b
        {**WIRE_RECORD, "players": [{"id": "x", "isHost": True}]},  # no lastSeen
        {
            **WIRE_RECORD,
            "moves": [{"from": "z9", "to": "e4", "playerId": "h0st", "timestamp": 1, "turn": "w"}],
        },  # not a square
        {**WIRE_RECORD, "moves": "e2e4"},  # not a list
    ],
)
def test_malformed_records_are_rejected(malformed: dict) -> None:
    with pytest.raises(InvalidRecordError):
        _ = GameRecord.from_wire(malformed)


def test_moves_are_immutable() -> None:
    move = Move(from_square="e2", to_square="e4", player_id="p", timestamp=1, turn=Color.WHITE)
    with pytest.raises(ValidationError):
        move.timestamp = 2  # type: ignore[misc]


def test_sorted_moves_orders_by_timestamp() -> None:
    shuffled = {**WIRE_RECORD, "moves": list(reversed(WIRE_RECORD["moves"]))}
    record = GameRecord.from_wire(shuffled)
    assert [move.timestamp for move in record.sorted_moves()] == [100, 200]


@pytest.mark.parametrize(
    "now, expected",
    [
        (1_000, True),
        (30_999, True),  # 29.999 s after last heartbeat
        (31_000, False),  # exactly 30 s: inactive
        (60_000, False),
    ],
)
def test_participant_activity_window(now: int, expected: bool) -> None:
    participant = Participant(id="p", is_host=True, last_seen=1_000)
    assert participant.is_active(now) is expected


def test_active_players_and_lookup() -> None:
    record = GameRecord.from_wire(WIRE_RECORD)
    assert [p.id for p in record.active_players(now=31_200)] == ["g1"]
    assert record.find_player("g1") is not None
    assert record.find_player("nobody") is None


def test_new_record_is_white_to_move() -> None:
    record = GameRecord.new("ABC123", now=42)
    assert record.to_wire() == {
        "id": "ABC123",
        "players": [],
        "moves": [],
        "currentTurn": "w",
        "lastUpdated": 42,
    }
