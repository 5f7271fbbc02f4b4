from __future__ import annotations

import os
from typing import Optional

from utils.env_loader import load_environments


DEFAULT_CONNECT_TIMEOUT_SECONDS = 5.0


def _read_seconds(name: str, default: Optional[float]) -> Optional[float]:
    load_environments()
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got: {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def connect_timeout_seconds() -> float:
    value = _read_seconds("DB_CONNECT_TIMEOUT_SECONDS", DEFAULT_CONNECT_TIMEOUT_SECONDS)
    return DEFAULT_CONNECT_TIMEOUT_SECONDS if value is None else value


def query_timeout_seconds() -> Optional[float]:
    # Unset means no bound beyond the driver's own defaults.
    return _read_seconds("DB_QUERY_TIMEOUT_SECONDS", None)


def log_level() -> str:
    load_environments()
    return (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()
