"""Task payload validation helpers (library-facing)."""

from __future__ import annotations

from typing import Any, List


class TaskPayloadError(ValueError):
    """Raised when a task payload fails validation."""


_DATE_FIELDS = ("created", "due", "scheduled")
_ID_LIST_FIELDS = ("depends_on", "part_of")


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def tasks_list(payload: Any) -> Any:
    """The task list of a payload: a bare list, or the `tasks` key of an object."""
    if isinstance(payload, dict):
        return payload.get("tasks")
    return payload


def _is_str_list(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def validate_tasks_payload(payload: Any, *, label: str = "tasks") -> List[str]:
    errs: List[str] = []
    tasks = tasks_list(payload)
    if not isinstance(tasks, list):
        return [f"{label}: expected a list of tasks or an object with a 'tasks' list"]

    for i, t in enumerate(tasks):
        if not isinstance(t, dict):
            errs.append(f"{label}[{i}] must be dict")
            continue
        tid = t.get("id")
        _require(isinstance(tid, str) and bool(tid.strip()), f"{label}[{i}].id must be non-empty string", errs)

        for k in ("markdown", "path"):
            v = t.get(k)
            _require(v is None or isinstance(v, str), f"{label}[{i}].{k} must be string", errs)

        tags = t.get("tags")
        _require(tags is None or _is_str_list(tags), f"{label}[{i}].tags must be list of strings", errs)

        for k in _DATE_FIELDS:
            v = t.get(k)
            ok = v is None or isinstance(v, str) or (isinstance(v, int) and not isinstance(v, bool))
            _require(ok, f"{label}[{i}].{k} must be string, epoch ms int or null", errs)

        dur = t.get("duration")
        ok = dur is None or isinstance(dur, str) or (isinstance(dur, (int, float)) and not isinstance(dur, bool))
        _require(ok, f"{label}[{i}].duration must be minutes, a duration string or null", errs)

        auth = t.get("authority")
        _require(auth is None or isinstance(auth, bool), f"{label}[{i}].authority must be bool", errs)

        for k in _ID_LIST_FIELDS:
            v = t.get(k)
            _require(v is None or _is_str_list(v), f"{label}[{i}].{k} must be list of task ids", errs)

    return errs


def assert_valid_tasks_payload(payload: Any) -> None:
    errs = validate_tasks_payload(payload)
    if errs:
        raise TaskPayloadError(errs[0])


__all__ = [
    "TaskPayloadError",
    "assert_valid_tasks_payload",
    "tasks_list",
    "validate_tasks_payload",
]
