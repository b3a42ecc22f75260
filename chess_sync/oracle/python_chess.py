"""MoveOracle backed by python-chess."""

import logging
from typing import Optional

import chess

from chess_sync.core.shared_types import GameStatus
from chess_sync.oracle.protocol import MoveOutcome

logger = logging.getLogger(__name__)


class PythonChessOracle:
    """
    One board per game view.
    ---
    Moves only carry from/to squares, so a pawn reaching the last rank always promotes to a queen.
    """

    def __init__(self, fen: Optional[str] = None) -> None:
        self.board = chess.Board(fen) if fen else chess.Board()

    @property
    def fen(self) -> str:
        return self.board.fen()

    def apply_move(self, from_square: str, to_square: str) -> MoveOutcome:
        move = self._find_legal_move(from_square, to_square)
        if move is None:
            logger.debug("Rejected %s%s in position %s", from_square, to_square, self.fen)
            return MoveOutcome(accepted=False, status=self.status())
        self.board.push(move)
        return MoveOutcome(accepted=True, status=self.status())

    def legal_destinations(self, square: str) -> set[str]:
        origin = self._parse_square(square)
        if origin is None:
            return set()
        return {
            chess.square_name(move.to_square)
            for move in self.board.legal_moves
            if move.from_square == origin
        }

    def status(self) -> GameStatus:
        """checkmate > stalemate > draw > check > active"""
        if self.board.is_checkmate():
            return GameStatus.CHECKMATE
        if self.board.is_stalemate():
            return GameStatus.STALEMATE
        if (
            self.board.is_insufficient_material()
            or self.board.is_seventyfive_moves()
            or self.board.is_fivefold_repetition()
            or self.board.can_claim_draw()
        ):
            return GameStatus.DRAW
        if self.board.is_check():
            return GameStatus.CHECK
        return GameStatus.ACTIVE

    def _find_legal_move(self, from_square: str, to_square: str) -> Optional[chess.Move]:
        origin = self._parse_square(from_square)
        target = self._parse_square(to_square)
        if origin is None or target is None:
            return None
        candidates = [
            move
            for move in self.board.legal_moves
            if move.from_square == origin and move.to_square == target
        ]
        if not candidates:
            return None
        # several candidates only for promotions
        return next(
            (move for move in candidates if move.promotion in (None, chess.QUEEN)),
            candidates[0],
        )

    @staticmethod
    def _parse_square(name: str) -> Optional[int]:
        try:
            return chess.parse_square(name)
        except ValueError:
            return None
