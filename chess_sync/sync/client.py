"""
Synchronization client: one instance per participant per game view.

There is no push channel. The client polls the shared record on a fixed interval and merges the move log
into its local board, using a cursor (timestamp of the latest move already applied) to never apply a move twice.

Poll cycle
---
1. fetch the record
2. recompute opponent presence
3. take the moves newer than the cursor, sorted by timestamp
4. apply opponent moves to the local board (own moves were applied optimistically already)
5. advance the cursor past every processed move
6. adopt the authoritative currentTurn
7. heartbeat

Every failure degrades to "keep the current state, try again next cycle". Local board mutations
(remote moves and optimistic local moves) are serialized with one lock.
"""

import asyncio
import logging
import secrets
import string
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Optional

from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.config import Settings, get_settings
from chess_sync.core.exceptions import GameError, GameNotFoundError, IllegalMoveError
from chess_sync.core.models import GameId, GameRecord, Move, Participant
from chess_sync.core.shared_types import Color, ConnectionState, GameStatus, color_for
from chess_sync.core.turns import inferred_turn, is_players_turn, next_turn, turn_after
from chess_sync.oracle.protocol import MoveOracle
from chess_sync.sync.gateway import SessionGateway
from chess_sync.sync.liveness import ConnectionMonitor

logger = logging.getLogger(__name__)

PARTICIPANT_ID_ALPHABET = string.digits + string.ascii_lowercase
PARTICIPANT_ID_LENGTH = 13

MoveListener = Callable[[str, str], None]
StateListener = Callable[["SyncSnapshot"], None]


def new_participant_id() -> str:
    """Random base-36 token. Collisions are improbable, not impossible."""
    return "".join(secrets.choice(PARTICIPANT_ID_ALPHABET) for _ in range(PARTICIPANT_ID_LENGTH))


@dataclass(frozen=True)
class SyncSnapshot:
    """What the UI needs to render the multiplayer state."""

    participant_id: str
    color: Color
    connection_state: ConnectionState
    opponent: Optional[str]
    waiting_for_opponent: bool
    current_turn: Color
    is_player_turn: bool
    moving: bool
    game_missing: bool
    status: GameStatus
    cursor: int


class SyncClient:
    def __init__(
        self,
        game_id: GameId,
        is_host: bool,
        gateway: SessionGateway,
        oracle: MoveOracle,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = now_ms,
        participant_id: Optional[str] = None,
        on_move_received: Optional[MoveListener] = None,
        on_state_change: Optional[StateListener] = None,
    ) -> None:
        self.game_id = game_id
        self.is_host = is_host
        self.color = color_for(is_host)
        self.gateway = gateway
        self.oracle = oracle
        self.settings = settings or get_settings()
        self.clock = clock
        self.participant_id = participant_id or new_participant_id()
        self.on_move_received = on_move_received
        self.on_state_change = on_state_change

        # local cursor: timestamp of the latest move applied to the local board. Never decreases.
        self.cursor = 0
        self.current_turn = Color.WHITE
        self.opponent: Optional[str] = None
        self.waiting_for_opponent = is_host
        self.moving = False
        self.game_missing = False
        self.status = GameStatus.ACTIVE

        self.monitor = ConnectionMonitor(
            window_ms=self.settings.liveness_window_ms,
            clock=clock,
            on_change=lambda _state: self._notify(),
        )
        self._board_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    # --- state seen by the UI ---
    @property
    def connection_state(self) -> ConnectionState:
        return self.monitor.state

    @property
    def is_player_turn(self) -> bool:
        return is_players_turn(self.current_turn, self.is_host)

    def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(
            participant_id=self.participant_id,
            color=self.color,
            connection_state=self.connection_state,
            opponent=self.opponent,
            waiting_for_opponent=self.waiting_for_opponent,
            current_turn=self.current_turn,
            is_player_turn=self.is_player_turn,
            moving=self.moving,
            game_missing=self.game_missing,
            status=self.status,
            cursor=self.cursor,
        )

    def legal_destinations(self, square: str) -> set[str]:
        """Highlighting helper: nothing is selectable while it is the opponent's turn."""
        if not self.is_player_turn:
            return set()
        return self.oracle.legal_destinations(square)

    # --- lifecycle ---
    async def start(self) -> None:
        """Join once, then poll on a fixed interval and run the liveness watchdog until stop()."""
        self._closed = False
        await self.join()
        self._spawn(self._poll_loop())
        self._spawn(self._watch_liveness())

    async def stop(self) -> None:
        """Tear down the game view: cancel the loops and any scheduled poll, discard late results."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> "SyncClient":
        await self.start()
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.stop()

    # --- protocol ---
    async def join(self) -> bool:
        """
        One write: upsert self into the player list.
        ---
        Not retried on failure; the heartbeat of every poll cycle re-inserts the participant.
        """
        logger.info(
            "Joining game %s as %s (participant %s)",
            self.game_id,
            "host" if self.is_host else "guest",
            self.participant_id,
        )
        try:
            await self.gateway.join(self.game_id, self._participant())
        except GameNotFoundError as error:
            logger.warning("Cannot join game %s: %s", self.game_id, error)
            self.game_missing = True
            self._notify()
            return False
        except GameError as error:
            logger.warning("Joining game %s failed: %s", self.game_id, error)
            self.monitor.mark_failure(f"join failed: {error}")
            return False
        self.monitor.mark_success()
        self._notify()
        return True

    async def poll(self) -> bool:
        """One poll-merge-apply cycle. Returns True when the cycle (including the heartbeat) succeeded."""
        try:
            record = await self.gateway.fetch_game(self.game_id)
        except GameError as error:
            logger.warning("Polling game %s failed: %s", self.game_id, error)
            self.monitor.mark_failure(f"poll failed: {error}")
            return False

        if self._closed:
            return False

        if record is None:
            if not self.game_missing:
                logger.warning("Game %s does not exist (anymore)", self.game_id)
            self.game_missing = True
            self._notify()
            return False
        self.game_missing = False

        self._update_presence(record)
        await self._merge_moves(record)
        self._adopt_turn(record)

        try:
            await self.gateway.heartbeat(self.game_id, self._participant())
        except GameError as error:
            logger.warning("Heartbeat for game %s failed: %s", self.game_id, error)
            self.monitor.mark_failure(f"heartbeat failed: {error}")
            return False

        self.monitor.mark_success()
        self._notify()
        return True

    async def submit_move(self, from_square: str, to_square: str) -> bool:
        """
        Local player attempts a move.
        ----

        1. Gate: our color must match the current turn, and no other submission may be in flight.
        2. Apply to the local board right away (optimistic). An illegal move is never sent.
        3. Append the move to the shared log, currentTurn advances in the same write.
        4. Cursor moves past our own move, so the next poll skips it.
        5. Schedule an extra poll shortly after, on top of the regular interval.

        A failed write marks the connection as lost but does NOT undo the local move.
        """
        if self.moving or self.game_missing:
            return False
        if not self.is_player_turn:
            logger.info(
                "Ignoring %s%s: it is %s's turn", from_square, to_square, self.current_turn
            )
            return False

        self.moving = True
        try:
            async with self._board_lock:
                outcome = self.oracle.apply_move(from_square, to_square)
                if not outcome.accepted:
                    logger.info("Illegal move %s%s, not sent", from_square, to_square)
                    return False
                turn = self.current_turn
                self.current_turn = turn_after(turn)
                self.status = outcome.status
                move = Move(
                    from_square=from_square,
                    to_square=to_square,
                    player_id=self.participant_id,
                    timestamp=max(self.clock(), self.cursor + 1),
                    turn=turn,
                )
                self.cursor = move.timestamp
            self._notify()

            try:
                stored = await self.gateway.append_move(self.game_id, move)
            except GameError as error:
                logger.warning(
                    "Sending %s%s in game %s failed, local board keeps the move: %s",
                    from_square,
                    to_square,
                    self.game_id,
                    error,
                )
                self.monitor.mark_failure(f"move write failed: {error}")
                return False

            self.cursor = max(self.cursor, stored.timestamp)
            self.monitor.mark_success()
            logger.info("Sent %s%s in game %s at %d", from_square, to_square, self.game_id, stored.timestamp)
            self._schedule_poll(self.settings.post_move_poll_delay_s)
            return True
        finally:
            self.moving = False
            self._notify()

    def check_liveness(self) -> ConnectionState:
        return self.monitor.check()

    # --- helpers ---
    def _participant(self) -> Participant:
        return Participant(id=self.participant_id, is_host=self.is_host, last_seen=self.clock())

    def _update_presence(self, record: GameRecord) -> None:
        now = self.clock()
        opponent = next(
            (
                player
                for player in record.active_players(now, self.settings.presence_window_ms)
                if player.id != self.participant_id and player.is_host != self.is_host
            ),
            None,
        )
        opponent_id = opponent.id if opponent else None
        if opponent_id != self.opponent:
            if opponent_id:
                logger.info("Opponent %s is present in game %s", opponent_id, self.game_id)
            else:
                logger.info("Waiting for an opponent in game %s", self.game_id)
        self.opponent = opponent_id
        self.waiting_for_opponent = opponent is None

    async def _merge_moves(self, record: GameRecord) -> None:
        pending = sorted(
            (move for move in record.moves if move.timestamp > self.cursor),
            key=lambda move: move.timestamp,
        )
        if not pending:
            return
        async with self._board_lock:
            for move in pending:
                # a submission may have advanced the cursor while we waited for the lock
                if move.timestamp <= self.cursor:
                    continue
                if move.player_id != self.participant_id:
                    try:
                        self._apply_remote_move(move)
                    except IllegalMoveError as error:
                        # desynchronized board. Still consumed by the cursor so it is not retried every cycle.
                        logger.error("Game %s: %s", self.game_id, error)
                self.cursor = max(self.cursor, move.timestamp)

    def _apply_remote_move(self, move: Move) -> None:
        outcome = self.oracle.apply_move(move.from_square, move.to_square)
        if not outcome.accepted:
            raise IllegalMoveError(
                f"rule engine rejected {move.from_square}{move.to_square} by {move.player_id} (timestamp {move.timestamp})"
            )
        logger.info(
            "Game %s: applied opponent move %s%s", self.game_id, move.from_square, move.to_square
        )
        self.status = outcome.status
        self.current_turn = turn_after(move.turn)
        if self.on_move_received:
            self.on_move_received(move.from_square, move.to_square)

    def _adopt_turn(self, record: GameRecord) -> None:
        """Take currentTurn from the record, unless the record predates our own latest write."""
        if record.latest_move_timestamp < self.cursor:
            return
        authoritative = next_turn(record)
        if inferred_turn(record.moves) != authoritative:
            logger.warning(
                "Game %s: currentTurn=%s disagrees with the move log", self.game_id, authoritative
            )
        self.current_turn = authoritative

    def _schedule_poll(self, delay_s: float) -> None:
        if self._closed:
            return
        self._spawn(self._poll_after(delay_s))

    def _spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _poll_after(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        await self._guarded_poll()

    async def _poll_loop(self) -> None:
        """Fixed interval, no backoff: a lost connection is retried every cycle."""
        while True:
            await self._guarded_poll()
            await asyncio.sleep(self.settings.poll_interval_s)

    async def _guarded_poll(self) -> None:
        """A background cycle never dies: any unexpected error counts as a failed poll."""
        try:
            await self.poll()
        except Exception as error:
            logger.exception("Poll cycle for game %s crashed", self.game_id)
            self.monitor.mark_failure(f"poll crashed: {error!r}")

    async def _watch_liveness(self) -> None:
        while True:
            await asyncio.sleep(self.settings.liveness_check_interval_s)
            self.check_liveness()

    def _notify(self) -> None:
        if self.on_state_change:
            self.on_state_change(self.snapshot())
