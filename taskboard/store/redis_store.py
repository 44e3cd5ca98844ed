from __future__ import annotations

import datetime as _dt
import uuid
from typing import Any, cast

import redis

from taskboard.models.task import Task, TaskStatus
from taskboard.observability import get_json_logger

from .interface import TaskNotFound, TaskStore


class RedisTaskStore(TaskStore):
    """Redis-backed task store.

    Data structures:
    - Hash per task: key `{prefix}:task:{id}` with field `json`
    - Sorted set per status for the todo/done partitions:
      key `{prefix}:status:{status}` with score=created_at epoch seconds, member=task_id

    A task id is a member of exactly one status set; `save` moves it between
    sets in the same transaction that rewrites the hash.
    """

    def __init__(
        self, *, url: str | None = None, key_prefix: str = "tasks", client: Any | None = None
    ) -> None:
        if client is not None:
            self._redis = client
        else:
            self._redis = redis.Redis.from_url(url or "redis://localhost:6379/0")
        self._prefix = key_prefix.rstrip(":")
        self._logger = get_json_logger("taskboard.store")

    # key helpers
    def _task_key(self, task_id: str) -> str:
        return f"{self._prefix}:task:{task_id}"

    def _status_key(self, status: str) -> str:
        return f"{self._prefix}:status:{status}"

    def _load(self, task_id: str) -> Task | None:
        raw = cast(bytes | str | None, self._redis.hget(self._task_key(task_id), "json"))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return Task.model_validate_json(raw)

    def find(self, task_id: str) -> Task:
        task = self._load(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def where_status(self, status: TaskStatus) -> list[Task]:
        members = cast(list[bytes | str], self._redis.zrange(self._status_key(status.value), 0, -1))
        result: list[Task] = []
        for member in members:
            tid = member.decode("utf-8") if isinstance(member, bytes) else member
            task = self._load(tid)
            if task is not None:
                result.append(task)
        return result

    def save(self, task: Task) -> bool:
        errors = task.validation_errors()
        if errors:
            task.errors = errors
            return False
        task.errors = {}
        now = _dt.datetime.now(_dt.UTC)
        if task.is_new:
            task.id = str(uuid.uuid4())
            task.created_at = now
        task.updated_at = now
        task_id = cast(str, task.id)
        score = (task.created_at or now).timestamp()
        payload = task.model_dump_json()
        p = self._redis.pipeline()
        p.hset(self._task_key(task_id), mapping={"json": payload})
        for status in TaskStatus:
            if status.value != task.status:
                p.zrem(self._status_key(status.value), task_id)
        p.zadd(self._status_key(task.status), {task_id: score})
        p.execute()
        self._logger.debug(
            "task saved", extra={"event": "store_save", "service": "store", "task_id": task.id}
        )
        return True

    def destroy(self, task: Task) -> None:
        if task.id is None:
            return
        p = self._redis.pipeline()
        p.delete(self._task_key(task.id))
        for status in TaskStatus:
            p.zrem(self._status_key(status.value), task.id)
        p.execute()
        self._logger.debug(
            "task destroyed",
            extra={"event": "store_destroy", "service": "store", "task_id": task.id},
        )

    def ping(self) -> bool:
        return bool(self._redis.ping())


__all__ = ["RedisTaskStore"]
