"""Contract of the rules engine, as consumed by the synchronization client."""

from dataclasses import dataclass
from typing import Protocol

from chess_sync.core.shared_types import GameStatus


@dataclass(frozen=True)
class MoveOutcome:
    accepted: bool
    status: GameStatus


class MoveOracle(Protocol):
    """Decides legality of a move and applies it to the local position."""

    def apply_move(self, from_square: str, to_square: str) -> MoveOutcome:
        """Apply the move if legal. A rejected move leaves the position untouched."""
        ...

    def legal_destinations(self, square: str) -> set[str]:
        """Squares the piece on 'square' may legally move to."""
        ...
