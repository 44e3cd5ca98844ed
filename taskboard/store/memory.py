from __future__ import annotations

import datetime as _dt
import threading
import uuid

from taskboard.models.task import Task, TaskStatus

from .interface import TaskNotFound, TaskStore


class InMemoryTaskStore(TaskStore):
    """Thread-safe in-process task store.

    Used for local runs without Redis and by the test suite. Tasks are kept as
    copies so callers never share instances with the store.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = threading.RLock()

    def find(self, task_id: str) -> Task:
        with self._lock:
            task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task.model_copy(deep=True)

    def where_status(self, status: TaskStatus) -> list[Task]:
        with self._lock:
            items = [t for t in self._tasks.values() if t.status == status.value]
        items.sort(key=lambda t: t.created_at or _dt.datetime.min.replace(tzinfo=_dt.UTC))
        return [t.model_copy(deep=True) for t in items]

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
        with self._lock:
            self._tasks[str(task.id)] = task.model_copy(deep=True)
        return True

    def destroy(self, task: Task) -> None:
        with self._lock:
            self._tasks.pop(str(task.id), None)

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)


__all__ = ["InMemoryTaskStore"]
