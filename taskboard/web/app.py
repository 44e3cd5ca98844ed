from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import redis
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from taskboard.observability import (
    configure_uvicorn_logging,
    get_json_logger,
    get_metrics,
    use_request_context,
)
from taskboard.store.interface import TaskNotFound, TaskStore

from .handler import TASKS_PATH, TaskHandler
from .params import ParameterMissing, nest_form_params
from .render import build_templates, render
from .views import TURBO_STREAM_MEDIA_TYPE, ResponseFormat

_OVERRIDE_METHODS = {"patch", "put", "delete"}


def negotiate_format(request: Request) -> ResponseFormat:
    """Pick fragment mode when the client advertises turbo stream support."""
    if request.query_params.get("format") == ResponseFormat.TURBO_STREAM.value:
        return ResponseFormat.TURBO_STREAM
    if TURBO_STREAM_MEDIA_TYPE in request.headers.get("accept", ""):
        return ResponseFormat.TURBO_STREAM
    return ResponseFormat.HTML


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


async def read_params(request: Request) -> dict[str, Any]:
    """Read a create/update payload from a JSON body or a form body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as exc:  # JSONDecodeError and UnicodeDecodeError
            raise HTTPException(status_code=400, detail="malformed JSON body") from exc
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return nest_form_params(form.multi_items())


def create_app(store: TaskStore) -> FastAPI:
    app = FastAPI(title="taskboard")
    # Configure uvicorn logging at app startup to avoid import-time side effects
    configure_uvicorn_logging()
    logger = get_json_logger("taskboard.web")
    metrics = get_metrics()
    templates = build_templates()
    handler = TaskHandler(store)

    @app.middleware("http")
    async def request_context(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        started = time.perf_counter()
        with use_request_context(request_id, request.method, request.url.path):
            response = await call_next(request)
            logger.info(
                "request completed",
                extra={
                    "event": "http_request",
                    "service": "web",
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000.0, 3),
                },
            )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(TaskNotFound)
    async def _not_found(request: Request, exc: TaskNotFound) -> Response:
        metrics.increment("tasks_not_found")
        if _wants_json(request):
            return JSONResponse({"detail": str(exc)}, status_code=404)
        return templates.TemplateResponse(
            request, "404.html", {"detail": str(exc), "notice": None}, status_code=404
        )

    @app.exception_handler(ParameterMissing)
    async def _bad_params(request: Request, exc: ParameterMissing) -> Response:
        return JSONResponse({"detail": str(exc)}, status_code=400)

    @app.exception_handler(redis.exceptions.RedisError)
    async def _store_error(request: Request, exc: redis.exceptions.RedisError) -> Response:
        logger.error(
            "store error",
            exc_info=exc,
            extra={"event": "store_error", "service": "web"},
        )
        metrics.increment("store_errors", {"path": request.url.path})
        return JSONResponse({"detail": "store unavailable"}, status_code=503)

    @app.get("/health")
    async def health() -> dict[str, str]:  # lightweight healthcheck endpoint
        return {"status": "ok"}

    @app.get("/ready")
    async def ready() -> dict[str, str]:
        try:
            ok = await asyncio.to_thread(store.ping)
        except redis.exceptions.RedisError as exc:
            logger.error(
                "store not ready",
                extra={"event": "store_error", "service": "web", "path": "ready"},
            )
            raise HTTPException(status_code=503, detail="store not ready") from exc
        if not ok:
            raise HTTPException(status_code=503, detail="store not ready")
        return {"status": "ok"}

    @app.get("/")
    async def root() -> RedirectResponse:
        return RedirectResponse(TASKS_PATH)

    @app.get("/tasks", response_class=HTMLResponse)
    async def index(request: Request) -> Response:
        intent = await asyncio.to_thread(handler.index)
        return render(templates, request, intent)

    # Registered before /tasks/{task_id} so "new" is not taken for an id
    @app.get("/tasks/new", response_class=HTMLResponse)
    async def new(request: Request) -> Response:
        return render(templates, request, handler.new())

    @app.get("/tasks/{task_id}", response_class=HTMLResponse)
    async def show(task_id: str, request: Request) -> Response:
        intent = await asyncio.to_thread(handler.show, task_id)
        return render(templates, request, intent)

    @app.get("/tasks/{task_id}/edit", response_class=HTMLResponse)
    async def edit(task_id: str, request: Request) -> Response:
        intent = await asyncio.to_thread(handler.edit, task_id)
        return render(templates, request, intent)

    @app.post("/tasks")
    async def create(request: Request) -> Response:
        params = await read_params(request)
        intent = await asyncio.to_thread(handler.create, params, negotiate_format(request))
        return render(templates, request, intent)

    @app.api_route("/tasks/{task_id}", methods=["PATCH", "PUT"])
    async def update(task_id: str, request: Request) -> Response:
        params = await read_params(request)
        intent = await asyncio.to_thread(handler.update, task_id, params, negotiate_format(request))
        return render(templates, request, intent)

    @app.delete("/tasks/{task_id}")
    async def destroy(task_id: str, request: Request) -> Response:
        intent = await asyncio.to_thread(handler.destroy, task_id, negotiate_format(request))
        return render(templates, request, intent)

    @app.post("/tasks/{task_id}")
    async def method_override(task_id: str, request: Request) -> Response:
        """HTML forms can only POST; honour a hidden `_method` field."""
        params = await read_params(request)
        method = str(params.get("_method") or "").strip().lower()
        if method not in _OVERRIDE_METHODS:
            raise HTTPException(status_code=405, detail="Method Not Allowed")
        fmt = negotiate_format(request)
        if method == "delete":
            intent = await asyncio.to_thread(handler.destroy, task_id, fmt)
        else:
            intent = await asyncio.to_thread(handler.update, task_id, params, fmt)
        return render(templates, request, intent)

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        logger.info(
            "taskboard shutdown",
            extra={"event": "app_shutdown", "service": "web"},
        )

    return app


__all__ = ["create_app", "negotiate_format", "read_params"]
