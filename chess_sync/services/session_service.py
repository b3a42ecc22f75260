"""
Orchestration of the shared game record: join, presence heartbeat and move append.

Every operation is a read-modify-write on the GameStore without isolation. Join and heartbeat write the player
list only, so the worst a concurrent writer can lose is a lastSeen refresh, which the next heartbeat restores.
The move log is only ever appended to.
"""

import logging
from typing import Optional

from chess_sync.api.models import (
    DeleteGameRequest,
    GameCreatedResponse,
    GetGameRequest,
    JoinRequest,
    MoveAcceptedResponse,
    MoveRequest,
    PingRequest,
)
from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.exceptions import (
    GameNotFoundError,
    IdentityCollisionError,
    NotYourTurnError,
    PlayerNotFoundError,
)
from chess_sync.core.models import PRESENCE_WINDOW_MS, GameId, GameRecord, Move, Participant
from chess_sync.core.shared_types import color_for
from chess_sync.core.turns import next_turn, turn_after
from chess_sync.db.repository import GameStore
from chess_sync.services.game_ids import GameIdRegistry

logger = logging.getLogger(__name__)


class SessionService:
    """Orchestration of the store operations both participants rely on."""

    def __init__(
        self,
        repository: GameStore,
        id_registry: Optional[GameIdRegistry] = None,
        clock: Clock = now_ms,
        presence_window_ms: int = PRESENCE_WINDOW_MS,
    ) -> None:
        self.repo = repository
        self.ids = id_registry or GameIdRegistry()
        self.clock = clock
        self.presence_window_ms = presence_window_ms

    # -- API routes logic ---
    def create_game(self) -> GameCreatedResponse:
        """Host requested a new game: allocate an id and store an empty record."""
        game_id = self.ids.generate()
        record = GameRecord.new(game_id, now=self.clock())
        self.repo.upsert_game(record)
        logger.info("Created game %s", game_id)
        return GameCreatedResponse(game_id=game_id, game=record)

    def get_game_state(self, request: GetGameRequest) -> GameRecord:
        """
        Retrieve current game state.
        ----
        Used in the polling loop of every client.
        """
        return self._fetch_game(request.game_id)

    def join_game(self, request: JoinRequest) -> GameRecord:
        """
        Upsert the participant into the player list.
        ---
        The host may join a game that was not stored yet (the record gets created).
        A guest can only join an existing game.
        Joining again with the same id (e.g. after a page reload) only refreshes lastSeen.
        """
        now = self.clock()
        record = self.repo.get_game(request.game_id)
        created = record is None
        if record is None:
            if not request.is_host:
                raise GameNotFoundError(f"Game with game_id={request.game_id!r} not found.")
            record = GameRecord.new(request.game_id, now=now)
            self.ids.reserve(request.game_id)

        existing = record.find_player(request.player_id)
        if existing is not None and existing.is_host != request.is_host:
            raise IdentityCollisionError(
                f"Participant id {request.player_id!r} is already taken in game {request.game_id!r}."
            )

        players = self._prune(self._touch_player(record.players, request, now), now)
        if created:
            joined = record.model_copy(update={"players": players, "last_updated": now})
            self.repo.upsert_game(joined)
        else:
            joined = self._update_players(request.game_id, players)
        logger.info(
            "Player %s joined game %s as %s",
            request.player_id,
            request.game_id,
            "host" if request.is_host else "guest",
        )
        return joined

    def heartbeat(self, request: PingRequest) -> GameRecord:
        """
        Refresh lastSeen of the participant (re-inserting it if it got pruned),
        then drop every participant that has not been seen within the presence window.
        """
        now = self.clock()
        record = self._fetch_game(request.game_id)
        players = self._prune(self._touch_player(record.players, request, now), now)
        remaining = {player.id for player in players}
        pruned = [player.id for player in record.players if player.id not in remaining]
        if pruned:
            logger.info("Pruned inactive players %s from game %s", pruned, request.game_id)
        return self._update_players(request.game_id, players)

    def record_move(self, request: MoveRequest) -> MoveAcceptedResponse:
        """
        Append a move to the shared log and advance currentTurn in the same write.
        ----

        1. The player must be registered in the game.
        2. The player's color must match currentTurn.
        3. The stored timestamp is bumped past the latest logged move, so the log stays strictly increasing
           even when the clients' clocks disagree.
        """
        now = self.clock()
        record = self._fetch_game(request.game_id)

        player = record.find_player(request.player_id)
        if player is None:
            raise PlayerNotFoundError(
                f"Player {request.player_id!r} is not registered in game {request.game_id!r}."
            )

        turn = next_turn(record)
        if color_for(player.is_host) != turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for the player with color {turn!r} to make a move first."
            )

        move = Move(
            from_square=request.from_square,
            to_square=request.to_square,
            player_id=request.player_id,
            timestamp=max(request.timestamp, record.latest_move_timestamp + 1),
            turn=turn,
        )
        players = [
            p.model_copy(update={"last_seen": now}) if p.id == player.id else p
            for p in record.players
        ]
        updated = self.repo.update_game(
            request.game_id,
            {
                "moves": [*record.moves, move],
                "current_turn": turn_after(turn),
                "players": players,
            },
        )
        if updated is None:
            raise GameNotFoundError(f"Game with game_id={request.game_id!r} not found.")

        logger.info(
            "Game %s: %s played %s%s under turn %s",
            request.game_id,
            request.player_id,
            move.from_square,
            move.to_square,
            turn,
        )
        return MoveAcceptedResponse(current_turn=updated.current_turn, move=move)

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a game record. The id becomes available again."""
        self.repo.delete_game(request.game_id)
        self.ids.release(request.game_id)

    # -- Internal helpers --
    def _fetch_game(self, game_id: GameId) -> GameRecord:
        """Attempt to find the game in the repository and raise error if it fails."""
        record = self.repo.get_game(game_id)
        if record is None:
            raise GameNotFoundError(f"Game with {game_id=} not found.")
        return record

    def _update_players(self, game_id: GameId, players: list[Participant]) -> GameRecord:
        """Write the player list only. Moves and currentTurn appended meanwhile by the opponent are kept."""
        updated = self.repo.update_game(game_id, {"players": players})
        if updated is None:
            raise GameNotFoundError(f"Game with {game_id=} not found.")
        return updated

    def _touch_player(
        self, players: list[Participant], request: JoinRequest, now: int
    ) -> list[Participant]:
        """Set lastSeen of the requesting participant, appending it when absent. isHost never changes."""
        if any(player.id == request.player_id for player in players):
            return [
                player.model_copy(update={"last_seen": now})
                if player.id == request.player_id
                else player
                for player in players
            ]
        newcomer = Participant(id=request.player_id, is_host=request.is_host, last_seen=now)
        return [*players, newcomer]

    def _prune(self, players: list[Participant], now: int) -> list[Participant]:
        return [player for player in players if player.is_active(now, self.presence_window_ms)]
