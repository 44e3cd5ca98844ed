from __future__ import annotations

from pathlib import Path
from urllib.parse import urlencode

from fastapi import Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from taskboard.models.task import TaskStatus, dom_id, form_dom_id

from .views import TURBO_STREAM_MEDIA_TYPE, Page, Redirect, Stream, ViewIntent

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def build_templates(directory: Path = TEMPLATES_DIR) -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(directory))
    templates.env.globals.update(
        dom_id=dom_id,
        form_dom_id=form_dom_id,
        task_statuses=[s.value for s in TaskStatus],
    )
    return templates


def redirect_location(intent: Redirect) -> str:
    if not intent.notice:
        return intent.location
    sep = "&" if "?" in intent.location else "?"
    return f"{intent.location}{sep}{urlencode({'notice': intent.notice})}"


def render_page(templates: Jinja2Templates, request: Request, intent: Page) -> Response:
    context = {"notice": request.query_params.get("notice"), **intent.context}
    return templates.TemplateResponse(
        request, intent.template, context, status_code=intent.status_code
    )


def render_stream(templates: Jinja2Templates, intent: Stream) -> Response:
    """Render stream actions as `<turbo-stream>` elements.

    Each action that carries a template is rendered from its partial and
    wrapped in a `<template>` element; `remove` actions have no body.
    """
    body = templates.get_template("turbo_stream.html").render(actions=intent.actions)
    return HTMLResponse(body, status_code=intent.status_code, media_type=TURBO_STREAM_MEDIA_TYPE)


def render(templates: Jinja2Templates, request: Request, intent: ViewIntent) -> Response:
    if isinstance(intent, Redirect):
        return RedirectResponse(redirect_location(intent), status_code=intent.status_code)
    if isinstance(intent, Stream):
        return render_stream(templates, intent)
    return render_page(templates, request, intent)


__all__ = ["TEMPLATES_DIR", "build_templates", "redirect_location", "render"]
