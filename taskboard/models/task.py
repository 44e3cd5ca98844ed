from __future__ import annotations

import datetime as _dt
from enum import StrEnum

from pydantic import BaseModel, Field

NAME_MAX_LENGTH = 255


class TaskStatus(StrEnum):
    TODO = "todo"
    DONE = "done"


class Task(BaseModel):
    """A task on the board.

    - `id` stays None until the store saves the task for the first time
    - `status` is kept as the raw submitted string so an invalid value can be
      echoed back in the form; `validation_errors` rejects unknown values
    - `errors` holds the messages of the last failed save and is never persisted
    """

    id: str | None = None
    name: str = ""
    status: str = TaskStatus.TODO.value
    created_at: _dt.datetime | None = None
    updated_at: _dt.datetime | None = None
    errors: dict[str, list[str]] = Field(default_factory=dict, exclude=True)

    @property
    def is_new(self) -> bool:
        return self.id is None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE.value

    def validation_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        if not self.name.strip():
            errors.setdefault("name", []).append("can't be blank")
        elif len(self.name) > NAME_MAX_LENGTH:
            errors.setdefault("name", []).append(
                f"is too long (maximum is {NAME_MAX_LENGTH} characters)"
            )
        if self.status not in {s.value for s in TaskStatus}:
            errors.setdefault("status", []).append("is not included in the list")
        return errors

    def full_error_messages(self) -> list[str]:
        return [
            f"{field.capitalize()} {message}"
            for field, messages in self.errors.items()
            for message in messages
        ]


def dom_id(task: Task, prefix: str | None = None) -> str:
    """Stable element id for a task: `task_<id>`, or `new_task` before it is saved."""
    base = "new_task" if task.is_new else f"task_{task.id}"
    return f"{prefix}_{base}" if prefix else base


def form_dom_id(task: Task) -> str:
    return f"{dom_id(task)}_form"


__all__ = ["NAME_MAX_LENGTH", "Task", "TaskStatus", "dom_id", "form_dom_id"]
