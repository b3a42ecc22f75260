"""
Runtime configuration.

Defaults come from environment variables (CHESS_SYNC_*), optionally loaded from a .env file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

STORE_BACKENDS = ("memory", "sql")


def _env(name: str, default: str) -> str:
    return os.getenv(f"CHESS_SYNC_{name}", default)


def _env_float(name: str, default: float) -> float:
    return float(_env(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(_env(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "1" if default else "0").lower() in ("1", "true", "yes")


@dataclass(slots=True)
class Settings:
    """Settings for the session store, the HTTP API and the synchronization client."""

    # --- Session store ---
    store_backend: str = field(default_factory=lambda: _env("STORE_BACKEND", "memory"))
    database_url: str = field(
        default_factory=lambda: _env("DATABASE_URL", "sqlite:///chess_sync.db")
    )
    database_echo: bool = field(default_factory=lambda: _env_bool("DATABASE_ECHO", False))

    # --- Synchronization client ---
    poll_interval_s: float = field(default_factory=lambda: _env_float("POLL_INTERVAL_S", 1.0))
    presence_window_ms: int = field(
        default_factory=lambda: _env_int("PRESENCE_WINDOW_MS", 30_000)
    )
    liveness_window_ms: int = field(
        default_factory=lambda: _env_int("LIVENESS_WINDOW_MS", 10_000)
    )
    liveness_check_interval_s: float = field(
        default_factory=lambda: _env_float("LIVENESS_CHECK_INTERVAL_S", 5.0)
    )
    post_move_poll_delay_s: float = field(
        default_factory=lambda: _env_float("POST_MOVE_POLL_DELAY_S", 0.3)
    )

    # --- HTTP ---
    request_timeout_s: float = field(
        default_factory=lambda: _env_float("REQUEST_TIMEOUT_S", 5.0)
    )
    api_base_url: str = field(
        default_factory=lambda: _env("API_BASE_URL", "http://127.0.0.1:8000")
    )

    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown store backend {self.store_backend!r}. Pick one from {', '.join(STORE_BACKENDS)}."
            )


def get_settings(**overrides: object) -> Settings:
    """(Re)load the .env file and build a Settings instance. Keyword arguments win over the environment."""
    load_dotenv()
    return Settings(**overrides)  # type: ignore[arg-type]
