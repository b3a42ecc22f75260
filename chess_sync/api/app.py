"""
FastAPI application exposing the session store.

Error mapping:
- GameNotFoundError        -> 404
- IdentityCollisionError   -> 409
- StoreUnavailableError    -> 503
- InvalidRecordError       -> 500 (the stored record itself is corrupt)
- any other GameError      -> 400
- pydantic ValidationError -> 422
"""

import argparse
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from chess_sync.api.routes import NO_CACHE_HEADERS, router
from chess_sync.core.clock import Clock, now_ms
from chess_sync.core.config import Settings, get_settings
from chess_sync.core.exceptions import (
    GameError,
    GameNotFoundError,
    IdentityCollisionError,
    InvalidRecordError,
    StoreUnavailableError,
)
from chess_sync.core.logging_utils import configure_logging
from chess_sync.db.database import build_store
from chess_sync.db.repository import GameStore
from chess_sync.services.session_service import SessionService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[GameError], int]] = [
    (GameNotFoundError, 404),
    (IdentityCollisionError, 409),
    (StoreUnavailableError, 503),
    (InvalidRecordError, 500),
]


def _status_for(error: GameError) -> int:
    return next((status for kind, status in _STATUS_BY_ERROR if isinstance(error, kind)), 400)


async def handle_game_error(request: Request, error: GameError) -> JSONResponse:
    status = _status_for(error)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, error)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, status, error)
    return JSONResponse(
        {"error": str(error), "kind": type(error).__name__},
        status_code=status,
        headers=NO_CACHE_HEADERS,
    )


async def handle_validation_error(request: Request, error: ValidationError) -> JSONResponse:
    return JSONResponse(
        {"error": "Invalid request payload.", "details": error.errors(include_url=False, include_context=False)},
        status_code=422,
        headers=NO_CACHE_HEADERS,
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[GameStore] = None,
    clock: Clock = now_ms,
) -> FastAPI:
    """Wire settings -> store -> service -> routes. A store can be injected (tests)."""
    settings = settings or get_settings()
    store = store if store is not None else build_store(settings, clock=clock)

    app = FastAPI(title="Chess sync session store", version="0.1.0")
    app.state.service = SessionService(
        store, clock=clock, presence_window_ms=settings.presence_window_ms
    )
    app.include_router(router)
    app.add_exception_handler(GameError, handle_game_error)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, handle_validation_error)  # type: ignore[arg-type]
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the chess sync session store over HTTP.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting session store (%s backend) on %s:%d", settings.store_backend, args.host, args.port)
    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
