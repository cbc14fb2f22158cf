"""JSON loaders for task snapshots and the options file."""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .lexicon import normalize_tag
from .model import TaskRecord
from .util.console import eprint, obs_enabled
from .util.duration import parse_duration_to_minutes
from .util.timeparse import parse_instant_to_ms
from .validate import assert_valid_tasks_payload, tasks_list

JsonPath = Union[str, Path]

CONFIG_SECTIONS = ("schedule", "thresholds", "b5_slots", "lexicon", "day_profiles")


def _read_json(path: JsonPath) -> Any:
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8", errors="replace"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{p}: invalid JSON: {e}") from e


def _instant_ms(v: Any, tz: dt.tzinfo, *, field: str, task_id: str) -> Optional[int]:
    if v is None:
        return None
    if isinstance(v, int) and not isinstance(v, bool):
        return v
    ms = parse_instant_to_ms(v, tz)
    if ms is None and obs_enabled():
        eprint(f"[taskx.io] WARN: invalid {field} timestamp id={task_id} value={v!r}")
    return ms


def _tags(raw: Any) -> tuple:
    out = []
    for t in raw or ():
        n = normalize_tag(t, lowercase=False)
        if n is not None and n not in out:
            out.append(n)
    return tuple(out)


def _ids(raw: Any) -> tuple:
    return tuple(s.strip() for s in (raw or ()) if isinstance(s, str) and s.strip())


def task_record_from_dict(d: Dict[str, Any], tz: dt.tzinfo) -> TaskRecord:
    """Build a TaskRecord from one (already validated) task object.

    Dates may be epoch ms ints or strings understood by `parse_instant_to_ms`;
    unparseable dates are dropped. `duration` takes minutes or "1h30m" / "PT45M".
    """
    tid = str(d["id"]).strip()
    return TaskRecord(
        id=tid,
        markdown=str(d.get("markdown") or ""),
        path=str(d.get("path") or ""),
        tags=_tags(d.get("tags")),
        created_ms=_instant_ms(d.get("created"), tz, field="created", task_id=tid),
        due_ms=_instant_ms(d.get("due"), tz, field="due", task_id=tid),
        scheduled_ms=_instant_ms(d.get("scheduled"), tz, field="scheduled", task_id=tid),
        duration_min=parse_duration_to_minutes(d.get("duration")),
        is_authority=bool(d.get("authority") or False),
        depends_on=_ids(d.get("depends_on")),
        part_of=_ids(d.get("part_of")),
    )


def tasks_from_payload(payload: Any, tz: dt.tzinfo) -> List[TaskRecord]:
    """Validate a payload and convert it; on duplicate ids the first task wins."""
    assert_valid_tasks_payload(payload)

    out: List[TaskRecord] = []
    seen = set()
    for d in tasks_list(payload):
        rec = task_record_from_dict(d, tz)
        if rec.id in seen:
            if obs_enabled():
                eprint(f"[taskx.io] WARN: duplicate task id={rec.id} (keeping first)")
            continue
        seen.add(rec.id)
        out.append(rec)
    return out


def load_tasks_json(path: JsonPath, tz: dt.tzinfo) -> List[TaskRecord]:
    """Load task records from a JSON file.

    Expected format: a list of task objects, or {"tasks": [...]}.
    Raises ValueError (TaskPayloadError for structural problems).
    """
    tasks = tasks_from_payload(_read_json(path), tz)
    if obs_enabled():
        eprint(f"[taskx.io] loaded tasks={len(tasks)} path={path}")
    return tasks


def load_json_config(path: Optional[JsonPath]) -> Dict[str, Any]:
    """Load the options file and return its known sections (missing ones are None).

    Section contents are left raw; each consumer sanitizes its own section.
    """
    if path is None:
        return {k: None for k in CONFIG_SECTIONS}
    obj = _read_json(path)
    if not isinstance(obj, dict):
        raise ValueError(f"options file must be a JSON object; got {type(obj).__name__}")
    return {k: obj.get(k) for k in CONFIG_SECTIONS}


def load_json_file(path: JsonPath) -> Any:
    return _read_json(path)
