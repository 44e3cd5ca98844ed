from __future__ import annotations

import pytest

from taskboard.models.task import Task, TaskStatus
from taskboard.observability import get_metrics
from taskboard.store.interface import TaskNotFound
from taskboard.store.memory import InMemoryTaskStore
from taskboard.web.handler import TaskHandler
from taskboard.web.views import Page, Redirect, ResponseFormat, Stream

HTML = ResponseFormat.HTML
STREAM = ResponseFormat.TURBO_STREAM


def _seed(store: InMemoryTaskStore, name: str, status: str = "todo") -> Task:
    task = Task(name=name, status=status)
    assert store.save(task)
    return task


def test_index_partitions_by_status(store: InMemoryTaskStore) -> None:
    a = _seed(store, "a")
    b = _seed(store, "b", "done")
    c = _seed(store, "c")

    page = TaskHandler(store).index()
    todo_ids = [t.id for t in page.context["todo_tasks"]]
    done_ids = [t.id for t in page.context["done_tasks"]]
    assert todo_ids == [a.id, c.id]
    assert done_ids == [b.id]
    assert set(todo_ids).isdisjoint(done_ids)
    assert page.context["new_task"].is_new


def test_index_empty(store: InMemoryTaskStore) -> None:
    page = TaskHandler(store).index()
    assert page.template == "tasks/index.html"
    assert page.context["todo_tasks"] == []
    assert page.context["done_tasks"] == []


def test_show_and_edit_unknown_id_raise(store: InMemoryTaskStore) -> None:
    handler = TaskHandler(store)
    with pytest.raises(TaskNotFound):
        handler.show("missing")
    with pytest.raises(TaskNotFound):
        handler.edit("missing")


def test_new_renders_unsaved_task(store: InMemoryTaskStore) -> None:
    page = TaskHandler(store).new()
    assert page.template == "tasks/new.html"
    assert page.context["task"].is_new
    assert len(store) == 0


def test_create_html_redirects_to_show(store: InMemoryTaskStore) -> None:
    intent = TaskHandler(store).create({"task": {"name": "Buy milk", "status": "todo"}}, HTML)
    assert isinstance(intent, Redirect)
    assert intent.status_code == 302
    assert intent.notice == "Task was successfully created."
    task_id = intent.location.rsplit("/", 1)[-1]
    stored = store.find(task_id)
    assert stored.name == "Buy milk"
    assert stored.status == "todo"
    assert get_metrics().value("tasks_created") == 1


def test_create_stream_appends_and_resets_form(store: InMemoryTaskStore) -> None:
    intent = TaskHandler(store).create({"task": {"name": "Ship it", "status": "done"}}, STREAM)
    assert isinstance(intent, Stream)
    assert intent.status_code == 200
    append, replace = intent.actions
    assert (append.action, append.target) == ("append", "done_tasks")
    assert append.context["task"].name == "Ship it"
    assert (replace.action, replace.target) == ("replace", "new_task_form")
    assert replace.context["task"].is_new


def test_create_invalid_html_rerenders_new_with_422(store: InMemoryTaskStore) -> None:
    intent = TaskHandler(store).create({"task": {"name": "", "status": "todo"}}, HTML)
    assert isinstance(intent, Page)
    assert intent.template == "tasks/new.html"
    assert intent.status_code == 422
    assert intent.context["task"].errors["name"] == ["can't be blank"]
    assert len(store) == 0
    assert get_metrics().value("tasks_invalid") == 1


def test_create_invalid_stream_replaces_new_form(store: InMemoryTaskStore) -> None:
    intent = TaskHandler(store).create({"task": {"name": "x", "status": "later"}}, STREAM)
    assert isinstance(intent, Stream)
    assert intent.status_code == 422
    (action,) = intent.actions
    assert (action.action, action.target) == ("replace", "new_task_form")
    assert action.context["task"].status == "later"
    assert len(store) == 0


def test_create_ignores_submitted_id(store: InMemoryTaskStore) -> None:
    intent = TaskHandler(store).create({"task": {"name": "x", "id": "chosen"}}, HTML)
    assert isinstance(intent, Redirect)
    assert not intent.location.endswith("/chosen")
    with pytest.raises(TaskNotFound):
        store.find("chosen")


def test_update_changes_only_permitted_fields(store: InMemoryTaskStore) -> None:
    task = _seed(store, "Buy milk")
    intent = TaskHandler(store).update(
        str(task.id), {"task": {"status": "done", "id": "other"}}, HTML
    )
    assert isinstance(intent, Redirect)
    assert intent.status_code == 303
    assert intent.location == f"/tasks/{task.id}"
    assert intent.notice == "Task was successfully updated."
    stored = store.find(str(task.id))
    assert stored.name == "Buy milk"
    assert stored.status == "done"
    assert stored.created_at == task.created_at
    assert [t.id for t in store.where_status(TaskStatus.DONE)] == [task.id]
    assert store.where_status(TaskStatus.TODO) == []


def test_update_stream_moves_item_to_its_partition(store: InMemoryTaskStore) -> None:
    task = _seed(store, "Buy milk")
    intent = TaskHandler(store).update(str(task.id), {"task": {"status": "done"}}, STREAM)
    assert isinstance(intent, Stream)
    remove, append = intent.actions
    assert (remove.action, remove.target) == ("remove", f"task_{task.id}")
    assert (append.action, append.target) == ("append", "done_tasks")


def test_update_invalid_keeps_stored_values(store: InMemoryTaskStore) -> None:
    task = _seed(store, "Buy milk")
    handler = TaskHandler(store)

    page = handler.update(str(task.id), {"task": {"name": ""}}, HTML)
    assert isinstance(page, Page)
    assert page.template == "tasks/edit.html"
    assert page.status_code == 422
    assert page.context["task"].id == task.id

    stream = handler.update(str(task.id), {"task": {"name": ""}}, STREAM)
    assert isinstance(stream, Stream)
    assert stream.status_code == 422
    assert stream.actions[0].target == f"task_{task.id}_form"

    assert store.find(str(task.id)).name == "Buy milk"


def test_update_unknown_id_raises(store: InMemoryTaskStore) -> None:
    with pytest.raises(TaskNotFound):
        TaskHandler(store).update("missing", {"task": {"name": "x"}}, HTML)


def test_destroy(store: InMemoryTaskStore) -> None:
    keep = _seed(store, "keep")
    gone = _seed(store, "gone")
    handler = TaskHandler(store)

    intent = handler.destroy(str(gone.id), HTML)
    assert isinstance(intent, Redirect)
    assert intent.location == "/tasks"
    assert intent.status_code == 303
    assert intent.notice == "Task was successfully destroyed."
    with pytest.raises(TaskNotFound):
        handler.show(str(gone.id))
    assert [t.id for t in handler.index().context["todo_tasks"]] == [keep.id]


def test_destroy_stream_removes_element(store: InMemoryTaskStore) -> None:
    task = _seed(store, "gone")
    intent = TaskHandler(store).destroy(str(task.id), STREAM)
    assert isinstance(intent, Stream)
    (action,) = intent.actions
    assert (action.action, action.target, action.template) == ("remove", f"task_{task.id}", None)
    assert len(store) == 0


def test_update_stream_replaces_in_place_when_status_unchanged(
    store: InMemoryTaskStore,
) -> None:
    task = _seed(store, "Buy milk")
    intent = TaskHandler(store).update(str(task.id), {"task": {"name": "Buy oat milk"}}, STREAM)
    assert isinstance(intent, Stream)
    (action,) = intent.actions
    assert (action.action, action.target) == ("replace", f"task_{task.id}")
    assert action.template == "tasks/_task.html"
    assert action.context["task"].name == "Buy oat milk"
