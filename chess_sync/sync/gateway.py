"""
How a synchronization client reaches the shared record.

LocalSessionGateway calls the SessionService in-process, HttpSessionGateway goes through the HTTP API.
Both raise StoreUnavailableError for transient failures, so the client can treat them alike.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

import requests
from pydantic import ValidationError

from chess_sync.api.models import GetGameRequest, JoinRequest, MoveRequest, PingRequest
from chess_sync.core.clock import now_ms
from chess_sync.core.config import Settings
from chess_sync.core.exceptions import (
    GameNotFoundError,
    GameStateError,
    IdentityCollisionError,
    InvalidRecordError,
    StoreUnavailableError,
)
from chess_sync.core.models import GameId, GameRecord, Move, Participant
from chess_sync.services.session_service import SessionService

logger = logging.getLogger(__name__)


class SessionGateway(Protocol):
    async def fetch_game(self, game_id: GameId) -> Optional[GameRecord]:
        """Whole record, or None when the game does not exist."""
        ...

    async def join(self, game_id: GameId, participant: Participant) -> GameRecord:
        """Upsert the participant into the player list."""
        ...

    async def heartbeat(self, game_id: GameId, participant: Participant) -> None:
        """Refresh lastSeen (re-inserting the participant if it got pruned)."""
        ...

    async def append_move(self, game_id: GameId, move: Move) -> Move:
        """Append the move and advance currentTurn. Returns the move as stored (timestamp may be bumped)."""
        ...


def _join_payload(game_id: GameId, participant: Participant) -> dict[str, Any]:
    return {
        "gameId": game_id,
        "playerId": participant.id,
        "isHost": participant.is_host,
        "timestamp": participant.last_seen,
    }


class LocalSessionGateway:
    """Talks to a SessionService living in the same process."""

    def __init__(self, service: SessionService) -> None:
        self.service = service

    async def fetch_game(self, game_id: GameId) -> Optional[GameRecord]:
        try:
            return self.service.get_game_state(GetGameRequest(game_id=game_id))
        except GameNotFoundError:
            return None

    async def join(self, game_id: GameId, participant: Participant) -> GameRecord:
        return self.service.join_game(JoinRequest.model_validate(_join_payload(game_id, participant)))

    async def heartbeat(self, game_id: GameId, participant: Participant) -> None:
        self.service.heartbeat(PingRequest.model_validate(_join_payload(game_id, participant)))

    async def append_move(self, game_id: GameId, move: Move) -> Move:
        return self.service.record_move(MoveRequest.from_move(game_id, move)).move


class HttpSessionGateway:
    """
    Talks to the HTTP API with requests.
    ---
    requests is blocking, so every call runs in a worker thread to keep the client's event loop free.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout_s: float = 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "HttpSessionGateway":
        return cls(settings.api_base_url, session=session, timeout_s=settings.request_timeout_s)

    async def fetch_game(self, game_id: GameId) -> Optional[GameRecord]:
        data = await self._request(
            "get", f"/api/games/{game_id}", params={"t": now_ms()}, allow_missing=True
        )
        return None if data is None else GameRecord.from_wire(data)

    async def join(self, game_id: GameId, participant: Participant) -> GameRecord:
        payload = {"type": "join", **_join_payload(game_id, participant)}
        data = await self._request("post", f"/api/games/{game_id}", payload=payload)
        return GameRecord.from_wire(data)

    async def heartbeat(self, game_id: GameId, participant: Participant) -> None:
        await self._request(
            "post", f"/api/games/{game_id}/ping", payload=_join_payload(game_id, participant)
        )

    async def append_move(self, game_id: GameId, move: Move) -> Move:
        payload = MoveRequest.from_move(game_id, move).model_dump(by_alias=True, mode="json")
        data = await self._request("post", f"/api/games/{game_id}/move", payload=payload)
        stored = data.get("move") if isinstance(data, dict) else None
        try:
            return Move.model_validate(stored)
        except ValidationError as error:
            raise InvalidRecordError(f"Move response for game {game_id!r} is malformed: {error}") from error

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        allow_missing: bool = False,
    ) -> Any:
        return await asyncio.to_thread(self._send, method, path, payload, params, allow_missing)

    def _send(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]],
        params: Optional[dict[str, Any]],
        allow_missing: bool,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                params=params,
                headers={"Accept": "application/json", "Cache-Control": "no-store"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as error:
            raise StoreUnavailableError(f"{method.upper()} {path}: {error}") from error

        if response.status_code == 404 and allow_missing:
            return None
        _raise_for_status(response, f"{method.upper()} {path}")
        try:
            return response.json()
        except ValueError as error:
            # e.g. an HTML page served by a proxy or captive portal
            raise StoreUnavailableError(f"{method.upper()} {path}: response is not JSON") from error


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text.strip()
    return str(data.get("error", "")) if isinstance(data, dict) else str(data)


def _raise_for_status(response: requests.Response, context: str) -> None:
    if response.ok:
        return
    message = f"{context}: {response.status_code} {_error_message(response)}".strip()
    if response.status_code == 404:
        raise GameNotFoundError(message)
    if response.status_code == 409:
        raise IdentityCollisionError(message)
    if response.status_code >= 500:
        raise StoreUnavailableError(message)
    raise GameStateError(message)
