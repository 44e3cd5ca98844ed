from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

TURBO_STREAM_MEDIA_TYPE = "text/vnd.turbo-stream.html"

StreamActionName = Literal["append", "prepend", "replace", "update", "remove"]


class ResponseFormat(StrEnum):
    HTML = "html"
    TURBO_STREAM = "turbo_stream"


@dataclass(slots=True)
class Redirect:
    location: str
    notice: str | None = None
    status_code: int = 302


@dataclass(slots=True)
class Page:
    template: str
    context: dict[str, Any] = field(default_factory=dict)
    status_code: int = 200


@dataclass(slots=True)
class StreamAction:
    action: StreamActionName
    target: str
    template: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Stream:
    actions: list[StreamAction]
    status_code: int = 200


ViewIntent = Redirect | Page | Stream


__all__ = [
    "Page",
    "Redirect",
    "ResponseFormat",
    "Stream",
    "StreamAction",
    "StreamActionName",
    "TURBO_STREAM_MEDIA_TYPE",
    "ViewIntent",
]
