from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

PERMITTED_TASK_FIELDS = ("name", "status")

_BRACKET_KEY = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


class ParameterMissing(ValueError):
    def __init__(self, key: str) -> None:
        super().__init__(f"param is missing or the value is empty: {key}")
        self.key = key


def nest_form_params(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Fold bracketed form keys into nested dicts.

    `task[name]=x` becomes `{"task": {"name": "x"}}`; plain keys such as
    `_method` stay at the top level. For repeated keys the last value wins.
    """
    params: dict[str, Any] = {}
    for key, value in items:
        m = _BRACKET_KEY.match(key)
        if m is None:
            params[key] = value
            continue
        outer, inner = m.group(1), m.group(2)
        nested = params.get(outer)
        if not isinstance(nested, dict):
            nested = {}
            params[outer] = nested
        nested[inner] = value
    return params


def permit_task_params(params: Mapping[str, Any]) -> dict[str, str]:
    """Return only the allowlisted task fields from a request payload.

    The payload must nest the fields under a `task` key. Anything besides
    `name` and `status` (an `id`, timestamps, unknown keys) is dropped here,
    before a Task is built or touched.
    """
    nested = params.get("task")
    if not isinstance(nested, Mapping) or not nested:
        raise ParameterMissing("task")
    permitted: dict[str, str] = {}
    for key in PERMITTED_TASK_FIELDS:
        if key not in nested:
            continue
        value = nested[key]
        # Only scalars are permitted; nested mappings and lists are dropped
        if isinstance(value, Mapping | list | tuple):
            continue
        permitted[key] = "" if value is None else str(value)
    return permitted


__all__ = ["PERMITTED_TASK_FIELDS", "ParameterMissing", "nest_form_params", "permit_task_params"]
