"""
Custom exceptions shared by all layers.

Everything derives from GameError so callers (API layer, sync client) can catch one type.
"""


class GameError(Exception):
    """Top-level exception of this project."""


# --- Boundary validation ---
class InvalidRequestError(GameError):
    """Request data that cannot be interpreted."""


class InvalidRecordError(GameError):
    """Shared record does not match the GameRecord schema."""


# --- Persistence ---
class RepositoryError(GameError):
    """Something went wrong talking to the session store."""


class GameNotFoundError(RepositoryError):
    """No record exists for the requested game id."""


class StoreUnavailableError(RepositoryError):
    """Store could not be reached (timeout, connection refused, 5xx...). Transient."""


# --- Game flow ---
class GameStateError(GameError):
    """Operation not allowed in the current state of the game."""


class NotYourTurnError(GameStateError):
    """Participant tried to move while it is the opponent's turn."""


class PlayerNotFoundError(GameStateError):
    """Participant is not registered in the game."""


class IllegalMoveError(GameError):
    """Move oracle rejected the move."""


class IdentityCollisionError(GameError):
    """Two participants of the same game generated the same id."""
