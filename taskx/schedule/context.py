# taskx/schedule/context.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional, Sequence

from ..model import RankedTask
from ..util.timeparse import at_local_time
from ..util.tz import date_from_ms, same_day, weekday_sun0
from .options import ScheduleOptions
from .types import DayContext


@dataclass(frozen=True)
class R0Status:
    is_done: bool
    task_id: Optional[str]
    reason: str


def detect_r0(
    tasks: Sequence[RankedTask],
    now_ms: int,
    tz: dt.tzinfo,
    r0_tags: Sequence[str] = ("#r0", "#R0"),
) -> R0Status:
    """Is today's governance task (R0) out of the way?

    Open tasks only are expected here, so a visible #r0 task is not done. It
    gates the day when dated today, or when it carries no date at all. A dated
    #r0 for another day does not gate.
    """
    tags = tuple(r0_tags) or ("#r0", "#R0")
    r0 = next((t for t in tasks if t.record.has_any_tag(tags)), None)
    if r0 is None:
        return R0Status(True, None, "no open #r0 task found")

    sd = r0.record.scheduled_ms
    dd = r0.record.due_ms
    if sd is not None and same_day(sd, now_ms, tz):
        return R0Status(False, r0.id, "#r0 scheduled today")
    if dd is not None and same_day(dd, now_ms, tz):
        return R0Status(False, r0.id, "#r0 due today")
    if sd is not None or dd is not None:
        return R0Status(True, r0.id, "#r0 exists but not for today → not gating")
    return R0Status(False, r0.id, "open timeless #r0 task found")


def build_day_context(
    tasks: Sequence[RankedTask],
    options: ScheduleOptions,
    *,
    now_ms: int,
    tz: dt.tzinfo,
) -> DayContext:
    day = date_from_ms(now_ms, tz)

    r0 = detect_r0(tasks, now_ms, tz, options.r0_tags)
    if options.is_r0_done is not None:
        is_r0_done = options.is_r0_done
        reason = f"R0 set explicitly ({'done' if is_r0_done else 'not done'})"
    else:
        is_r0_done = r0.is_done
        reason = r0.reason

    if options.has_b5 is not None:
        has_b5 = options.has_b5
    else:
        has_b5 = any(t.record.has_any_tag(options.committed_tags) for t in tasks)

    return DayContext(
        now_ms=int(now_ms),
        tz=tz,
        day=day,
        day_start_ms=at_local_time(day, options.work_start, tz),
        day_end_ms=at_local_time(day, options.work_end, tz),
        lunch_start_ms=at_local_time(day, options.lunch_start, tz),
        lunch_minutes=int(options.lunch_minutes),
        is_r0_done=is_r0_done,
        has_b5=has_b5,
        weekday=weekday_sun0(day),
        r0_reason=reason,
        r0_task_id=r0.task_id,
    )
