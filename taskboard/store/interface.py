from __future__ import annotations

from typing import Protocol

from taskboard.models.task import Task, TaskStatus


class TaskNotFound(LookupError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Couldn't find Task with id={task_id!r}")
        self.task_id = task_id


class TaskStore(Protocol):
    """Record store consumed by the request handler.

    The store is the source of truth; callers re-fetch by id instead of
    holding on to Task instances across requests.
    """

    def find(self, task_id: str) -> Task:
        """Return the task with this id or raise TaskNotFound."""

    def where_status(self, status: TaskStatus) -> list[Task]:
        """Tasks in one partition, oldest first."""

    def save(self, task: Task) -> bool:
        """Validate and persist.

        On failure, fill `task.errors` and return False without writing. On
        success, assign `id`/`created_at` to new tasks, refresh `updated_at`,
        clear `task.errors` and return True.
        """

    def destroy(self, task: Task) -> None:
        """Remove the task permanently."""

    def ping(self) -> bool:
        """Cheap connectivity check used by the readiness probe."""


__all__ = ["TaskNotFound", "TaskStore"]
