# taskx/schedule/options.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from ..util.timeparse import hhmm_to_minutes
from ..util.tz import normalize_tz_name

DEFAULT_R0_MINUTES = 35
MAX_R0_MINUTES = 90


@dataclass(frozen=True)
class LogisticsSpec:
    prep_min: int = 10
    travel_one_way_min: int = 20
    recover_min: int = 10


@dataclass(frozen=True)
class ScheduleOptions:
    tz: str = "local"
    work_start: str = "09:00"
    work_end: str = "19:00"
    lunch_start: str = "12:30"
    lunch_minutes: int = 45
    default_rendezvous_minutes: int = 60
    r0_minutes: int = DEFAULT_R0_MINUTES
    is_r0_done: Optional[bool] = None  # None: detect from tasks
    has_b5: Optional[bool] = None  # None: detect from tasks
    logistics: LogisticsSpec = field(default_factory=LogisticsSpec)
    r0_tags: Tuple[str, ...] = ("#r0", "#R0")
    committed_tags: Tuple[str, ...] = ("#b5", "#B5")


def _hhmm(raw: dict, key: str, default: str, diags: List[str]) -> str:
    v = raw.get(key)
    if v is None:
        return default
    try:
        hhmm_to_minutes(str(v))
    except ValueError:
        diags.append(f"⚠ schedule.{key}={v!r} is not HH:MM → using {default}")
        return default
    return str(v).strip()


def _minutes(raw: dict, key: str, default: int, diags: List[str], *, minimum: int = 0) -> int:
    v = raw.get(key)
    if v is None:
        return default
    if isinstance(v, bool) or not isinstance(v, (int, float)) or v != v or v < minimum:
        diags.append(f"⚠ schedule.{key}={v!r} must be a number >= {minimum} → using {default}")
        return default
    return int(v)


def _opt_bool(raw: dict, key: str, diags: List[str]) -> Optional[bool]:
    v = raw.get(key)
    if v is None or isinstance(v, bool):
        return v
    diags.append(f"⚠ schedule.{key}={v!r} must be true/false → detecting from tasks")
    return None


def _tags(raw: dict, key: str, default: Tuple[str, ...], diags: List[str]) -> Tuple[str, ...]:
    v = raw.get(key)
    if v is None:
        return default
    if not isinstance(v, list):
        diags.append(f"⚠ schedule.{key} must be a list of tags → using defaults")
        return default
    tags = tuple(t.strip() for t in v if isinstance(t, str) and t.strip())
    return tags or default


def normalize_schedule_options(raw: Any) -> Tuple[ScheduleOptions, List[str]]:
    """Defensive reader for the `schedule` config section; never raises."""
    diags: List[str] = []
    base = ScheduleOptions()
    if raw is None:
        return base, diags
    if not isinstance(raw, dict):
        diags.append("❌ schedule is not an object → using defaults")
        return base, diags

    work_start = _hhmm(raw, "work_start", base.work_start, diags)
    work_end = _hhmm(raw, "work_end", base.work_end, diags)
    if hhmm_to_minutes(work_end) <= hhmm_to_minutes(work_start):
        diags.append(f"⚠ schedule work hours {work_start}-{work_end} are empty → using {base.work_start}-{base.work_end}")
        work_start, work_end = base.work_start, base.work_end

    lg_raw = raw.get("logistics")
    logistics = base.logistics
    if lg_raw is not None:
        if isinstance(lg_raw, dict):
            logistics = LogisticsSpec(
                prep_min=_minutes(lg_raw, "prep_min", logistics.prep_min, diags),
                travel_one_way_min=_minutes(lg_raw, "travel_one_way_min", logistics.travel_one_way_min, diags),
                recover_min=_minutes(lg_raw, "recover_min", logistics.recover_min, diags),
            )
        else:
            diags.append("⚠ schedule.logistics is not an object → using defaults")

    tz = raw.get("tz")
    opts = ScheduleOptions(
        tz=normalize_tz_name(tz) if isinstance(tz, str) else base.tz,
        work_start=work_start,
        work_end=work_end,
        lunch_start=_hhmm(raw, "lunch_start", base.lunch_start, diags),
        lunch_minutes=_minutes(raw, "lunch_minutes", base.lunch_minutes, diags),
        default_rendezvous_minutes=_minutes(
            raw, "default_rendezvous_minutes", base.default_rendezvous_minutes, diags, minimum=1
        ),
        r0_minutes=_minutes(raw, "r0_minutes", base.r0_minutes, diags, minimum=1),
        is_r0_done=_opt_bool(raw, "is_r0_done", diags),
        has_b5=_opt_bool(raw, "has_b5", diags),
        logistics=logistics,
        r0_tags=_tags(raw, "r0_tags", base.r0_tags, diags),
        committed_tags=_tags(raw, "committed_tags", base.committed_tags, diags),
    )
    return opts, diags
