from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from taskboard.models.task import Task, TaskStatus, dom_id, form_dom_id
from taskboard.observability import get_json_logger, get_metrics
from taskboard.store.interface import TaskStore

from .params import permit_task_params
from .views import Page, Redirect, ResponseFormat, Stream, StreamAction, ViewIntent

TASKS_PATH = "/tasks"


def task_path(task: Task) -> str:
    return f"/tasks/{task.id}"


def _append_task(task: Task) -> StreamAction:
    return StreamAction("append", f"{task.status}_tasks", "tasks/_task.html", {"task": task})


class TaskHandler:
    """Turns routed task requests into store calls and view intents.

    Each operation performs at most one write and returns exactly one intent;
    rendering the intent as HTML or as a turbo stream is left to the caller.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._logger = get_json_logger("taskboard.web")
        self._metrics = get_metrics()

    def index(self) -> Page:
        return Page(
            "tasks/index.html",
            {
                "todo_tasks": self._store.where_status(TaskStatus.TODO),
                "done_tasks": self._store.where_status(TaskStatus.DONE),
                "new_task": Task(),
            },
        )

    def show(self, task_id: str) -> Page:
        return Page("tasks/show.html", {"task": self._store.find(task_id)})

    def new(self) -> Page:
        return Page("tasks/new.html", {"task": Task()})

    def edit(self, task_id: str) -> Page:
        return Page("tasks/edit.html", {"task": self._store.find(task_id)})

    def create(self, params: Mapping[str, Any], fmt: ResponseFormat) -> ViewIntent:
        task = Task(**permit_task_params(params))
        if not self._store.save(task):
            return self._invalid(task, "tasks/new.html", fmt)
        self._log_change("task created", "task_created", task, fmt)
        self._metrics.increment("tasks_created")
        if fmt is ResponseFormat.TURBO_STREAM:
            return Stream(
                [
                    _append_task(task),
                    StreamAction("replace", "new_task_form", "tasks/_form.html", {"task": Task()}),
                ]
            )
        return Redirect(task_path(task), notice="Task was successfully created.")

    def update(self, task_id: str, params: Mapping[str, Any], fmt: ResponseFormat) -> ViewIntent:
        task = self._store.find(task_id)
        previous_status = task.status
        for key, value in permit_task_params(params).items():
            setattr(task, key, value)
        if not self._store.save(task):
            return self._invalid(task, "tasks/edit.html", fmt)
        self._log_change("task updated", "task_updated", task, fmt)
        self._metrics.increment("tasks_updated")
        if fmt is ResponseFormat.TURBO_STREAM:
            if task.status == previous_status:
                return Stream(
                    [StreamAction("replace", dom_id(task), "tasks/_task.html", {"task": task})]
                )
            # Status changed: move the item to the list matching its new status
            return Stream([StreamAction("remove", dom_id(task)), _append_task(task)])
        return Redirect(task_path(task), notice="Task was successfully updated.", status_code=303)

    def destroy(self, task_id: str, fmt: ResponseFormat) -> ViewIntent:
        task = self._store.find(task_id)
        self._store.destroy(task)
        self._log_change("task destroyed", "task_destroyed", task, fmt)
        self._metrics.increment("tasks_destroyed")
        if fmt is ResponseFormat.TURBO_STREAM:
            return Stream([StreamAction("remove", dom_id(task))])
        return Redirect(TASKS_PATH, notice="Task was successfully destroyed.", status_code=303)

    def _invalid(self, task: Task, template: str, fmt: ResponseFormat) -> ViewIntent:
        self._logger.info(
            "task invalid",
            extra={
                "event": "task_invalid",
                "service": "web",
                "task_id": task.id,
                "format": fmt.value,
                "attributes": {"errors": sorted(task.errors)},
            },
        )
        self._metrics.increment("tasks_invalid")
        if fmt is ResponseFormat.TURBO_STREAM:
            return Stream(
                [StreamAction("replace", form_dom_id(task), "tasks/_form.html", {"task": task})],
                status_code=422,
            )
        return Page(template, {"task": task}, status_code=422)

    def _log_change(self, msg: str, event: str, task: Task, fmt: ResponseFormat) -> None:
        self._logger.info(
            msg,
            extra={
                "event": event,
                "service": "web",
                "task_id": task.id,
                "format": fmt.value,
                "attributes": {"status": task.status, "name_len": len(task.name)},
            },
        )


__all__ = ["TASKS_PATH", "TaskHandler", "task_path"]
