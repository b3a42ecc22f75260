"""
HTTP surface of the session store, polled by the synchronization clients.

All responses disable caching: a cached GET would hide the opponent's moves from a polling client.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from chess_sync.api.models import (
    DeleteGameRequest,
    GetGameRequest,
    JoinRequest,
    MoveRequest,
    PingRequest,
)
from chess_sync.core.exceptions import InvalidRequestError
from chess_sync.services.session_service import SessionService

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

router = APIRouter(prefix="/api/games")


def get_service(request: Request) -> SessionService:
    return request.app.state.service


def _respond(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=NO_CACHE_HEADERS)


@router.post("")
def create_game(service: SessionService = Depends(get_service)) -> JSONResponse:
    response = service.create_game()
    return _respond(response.model_dump(by_alias=True, mode="json"), status_code=201)


@router.get("/{game_id}")
def get_game(game_id: str, service: SessionService = Depends(get_service)) -> JSONResponse:
    record = service.get_game_state(GetGameRequest(game_id=game_id))
    return _respond(record.to_wire())


@router.post("/{game_id}")
def post_game_action(
    game_id: str,
    payload: dict[str, Any] = Body(...),
    service: SessionService = Depends(get_service),
) -> JSONResponse:
    """Only the 'join' action exists: {"type": "join", "playerId": ..., "isHost": ...}"""
    action = payload.get("type")
    if action != "join":
        raise InvalidRequestError(f"Unknown action type: {action!r}.")
    request = JoinRequest.model_validate({**payload, "gameId": game_id})
    record = service.join_game(request)
    return _respond(record.to_wire())


@router.post("/{game_id}/ping")
def ping(
    game_id: str,
    payload: dict[str, Any] = Body(...),
    service: SessionService = Depends(get_service),
) -> JSONResponse:
    request = PingRequest.model_validate({**payload, "gameId": game_id})
    service.heartbeat(request)
    return _respond({"success": True})


@router.post("/{game_id}/move")
def move(
    game_id: str,
    payload: dict[str, Any] = Body(...),
    service: SessionService = Depends(get_service),
) -> JSONResponse:
    request = MoveRequest.model_validate({**payload, "gameId": game_id})
    response = service.record_move(request)
    return _respond(response.model_dump(by_alias=True, mode="json"))


@router.delete("/{game_id}")
def delete_game(game_id: str, service: SessionService = Depends(get_service)) -> JSONResponse:
    service.delete_game(DeleteGameRequest(game_id=game_id))
    return _respond({"success": True})
