"""
Short, human-shareable game identifiers.

Uniqueness is only checked against the ids this process handed out (not globally unique).
"""

import re
import secrets
import time

from chess_sync.core.models import GameId

GAME_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no I, O, 0, 1: easy to read out loud
GAME_ID_LENGTH = 6
MAX_ATTEMPTS = 10
_GAME_ID_PATTERN = re.compile(r"^[A-Z0-9]{6}$")
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def validate_game_id(game_id: str) -> bool:
    """6 characters, upper case letters and digits."""
    return bool(_GAME_ID_PATTERN.match(game_id))


def _to_base36(value: int) -> str:
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = _BASE36[remainder] + digits
    return digits or "0"


class GameIdRegistry:
    """Process-local set of active game ids."""

    def __init__(self) -> None:
        self._active: set[GameId] = set()

    def generate(self) -> GameId:
        """
        Draw random ids until one is not in use (bounded number of attempts).
        ---
        If every attempt collided, fall back to 2 random characters + the last 4 base-36 digits of the current time.
        """
        game_id = self._random_id()
        attempts = 1
        while game_id in self._active and attempts < MAX_ATTEMPTS:
            game_id = self._random_id()
            attempts += 1

        if game_id in self._active:
            timestamp = _to_base36(int(time.time() * 1000))[-4:].rjust(4, "0")
            game_id = game_id[:2] + timestamp

        self._active.add(game_id)
        return game_id

    def reserve(self, game_id: GameId) -> None:
        """Mark an externally chosen id as in use."""
        self._active.add(game_id)

    def release(self, game_id: GameId) -> None:
        """Make the id available again once the game is over."""
        self._active.discard(game_id)

    def is_active(self, game_id: GameId) -> bool:
        return game_id in self._active

    def _random_id(self) -> GameId:
        return "".join(secrets.choice(GAME_ID_ALPHABET) for _ in range(GAME_ID_LENGTH))
