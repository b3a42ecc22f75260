"""Connection liveness: connected <-> disconnected. Drives UI messaging only, never the poll loop."""

import logging
from typing import Callable, Optional

from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.shared_types import ConnectionState

logger = logging.getLogger(__name__)

LIVENESS_WINDOW_MS = 10_000

StateChangeListener = Callable[[ConnectionState], None]


class ConnectionMonitor:
    """
    Transitions
    ---
    * any failed join / poll / heartbeat / move write -> disconnected
    * no success within the liveness window (checked by a watchdog) -> disconnected
    * any later success -> connected
    """

    def __init__(
        self,
        window_ms: int = LIVENESS_WINDOW_MS,
        clock: Clock = now_ms,
        on_change: Optional[StateChangeListener] = None,
    ) -> None:
        self.window_ms = window_ms
        self.clock = clock
        self.on_change = on_change
        self.state = ConnectionState.CONNECTED
        self.last_success = clock()

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def mark_success(self) -> None:
        self.last_success = self.clock()
        self._change_state(ConnectionState.CONNECTED)

    def mark_failure(self, reason: str) -> None:
        self._change_state(ConnectionState.DISCONNECTED, reason)

    def check(self) -> ConnectionState:
        """Watchdog tick."""
        silence = self.clock() - self.last_success
        if silence >= self.window_ms:
            self._change_state(
                ConnectionState.DISCONNECTED, f"no successful poll for {silence} ms"
            )
        return self.state

    def _change_state(self, state: ConnectionState, reason: str = "") -> None:
        if state == self.state:
            return
        if state == ConnectionState.DISCONNECTED:
            logger.warning("Connection lost: %s", reason)
        else:
            logger.info("Connection restored")
        self.state = state
        if self.on_change:
            self.on_change(state)
