from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from sqlalchemy.engine import URL, make_url

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _int_env(env: Mapping[str, str], name: str, default: int | None) -> int | None:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    database_url: URL
    pool_size: int = 5
    statement_timeout_ms: int | None = None
    echo: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        explicit = env.get("DATABASE_URL", "").strip()
        if explicit:
            url = make_url(explicit)
        else:
            port = _int_env(env, "DB_PORT", None)
            url = URL.create(
                "postgresql+psycopg2",
                username=env.get("DB_USER") or None,
                password=env.get("DB_PASS") or None,
                host=env.get("DB_HOST") or "localhost",
                port=port,
                database=env.get("DB_NAME") or "songs",
            )
        return cls(
            database_url=url,
            pool_size=_int_env(env, "DB_POOL_SIZE", 5),
            statement_timeout_ms=_int_env(env, "DB_STATEMENT_TIMEOUT_MS", None),
            echo=env.get("DB_ECHO", "").strip().lower() in _TRUE_VALUES,
        )
