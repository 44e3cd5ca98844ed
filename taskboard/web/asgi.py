from __future__ import annotations

from taskboard.config import load_config
from taskboard.store.interface import TaskStore
from taskboard.store.memory import InMemoryTaskStore
from taskboard.store.redis_store import RedisTaskStore

from .app import create_app

_config = load_config()
_store: TaskStore
if _config.store == "memory":
    _store = InMemoryTaskStore()
else:
    _store = RedisTaskStore(url=_config.redis_url, key_prefix=_config.key_prefix)
app = create_app(_store)
