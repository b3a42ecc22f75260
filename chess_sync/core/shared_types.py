"""
Type definitions used across layers
"""

from enum import StrEnum


class Color(StrEnum):
    """Side to move. Values match the wire format ("w" / "b")."""

    WHITE = "w"
    BLACK = "b"

    def opposite(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class GameStatus(StrEnum):
    ACTIVE = "active"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


class ConnectionState(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def color_for(is_host: bool) -> Color:
    """Host always plays white, the joining participant always plays black."""
    return Color.WHITE if is_host else Color.BLACK
