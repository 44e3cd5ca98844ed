from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Literal

DEFAULT_PORT = 8000

StoreKind = Literal["redis", "memory"]


@dataclass(slots=True)
class AppConfig:
    store: StoreKind
    redis_url: str
    key_prefix: str
    host: str
    port: int


def _parse_port(raw: str | None) -> int:
    value = (raw or "").strip()
    try:
        port = int(value) if value else DEFAULT_PORT
    except ValueError:
        return DEFAULT_PORT
    return port if 0 < port < 65536 else DEFAULT_PORT


def _parse_store(raw: str | None) -> StoreKind:
    # Unknown values fall back to redis
    return "memory" if (raw or "").strip().lower() == "memory" else "redis"


def load_config(env: dict[str, str] | None = None) -> AppConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    return AppConfig(
        store=_parse_store(e.get("TASKS_STORE")),
        redis_url=e.get("REDIS_URL") or "redis://localhost:6379/0",
        key_prefix=(e.get("TASKS_KEY_PREFIX") or "tasks").strip() or "tasks",
        host=e.get("TASKBOARD_HOST") or "127.0.0.1",
        port=_parse_port(e.get("TASKBOARD_PORT")),
    )


__all__ = ["AppConfig", "StoreKind", "load_config"]
