# app/config.py
"""
Runtime settings, read from the environment (a local .env is loaded once).

Values are read on every call so tests can monkeypatch os.environ without
reloading modules.
"""
from __future__ import annotations

import os
from datetime import date
from typing import FrozenSet, List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./church_stats.db"
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000", "http://127.0.0.1:3000",
    "http://localhost:5173", "http://127.0.0.1:5173",
]


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def database_url() -> str:
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def sql_echo() -> bool:
    return _truthy(os.getenv("SQL_ECHO"))


def statement_timeout_ms() -> Optional[int]:
    return _int_env("DB_STATEMENT_TIMEOUT_MS", None)


def reference_year() -> int:
    """Year that scopes faith_decisions_year. Defaults to the current calendar year."""
    return _int_env("STATS_REFERENCE_YEAR", None) or date.today().year


def membership_count_types() -> Optional[FrozenSet[str]]:
    """
    Member types counted in membership_count, or None for all types.

    MEMBERSHIP_COUNT_TYPES="standard,relative" restricts the count.
    """
    raw = os.getenv("MEMBERSHIP_COUNT_TYPES", "").strip()
    if not raw or raw.lower() == "all":
        return None
    return frozenset(p.strip().lower() for p in raw.split(",") if p.strip())


def stats_max_attempts() -> int:
    return max(1, _int_env("STATS_MAX_ATTEMPTS", 3) or 1)


def stats_retry_backoff_ms() -> int:
    return max(0, _int_env("STATS_RETRY_BACKOFF_MS", 50) or 0)


def stats_lock_timeout_s() -> float:
    return float(_int_env("STATS_LOCK_TIMEOUT_S", 30) or 30)


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
