# taskx/schedule/timeline.py
"""Fixed timeline: lunch, rendezvous, their logistics envelopes, and free slots."""

from __future__ import annotations

import dataclasses
from typing import Iterable, List, Optional, Sequence, Tuple

from ..model import MIN_MS, RankedTask
from .options import LogisticsSpec
from .types import (
    ROLE_PREP,
    ROLE_RECOVER,
    ROLE_TRAVEL,
    BlockKind,
    DayContext,
    FixedEvent,
    FreeSlot,
    minutes_between,
)


def clamp_to_horizon(ctx: DayContext, e: FixedEvent) -> Optional[FixedEvent]:
    start = max(e.start_ms, ctx.day_start_ms)
    end = min(e.end_ms, ctx.day_end_ms)
    if end <= start:
        return None
    return dataclasses.replace(e, start_ms=start, end_ms=end)


def _by_start(events: Iterable[FixedEvent]) -> List[FixedEvent]:
    return sorted(events, key=lambda e: e.start_ms)


def extract_rendezvous(
    ctx: DayContext,
    tasks: Iterable[RankedTask],
    default_minutes: int = 60,
) -> List[FixedEvent]:
    """One rendezvous per scheduled task; the task's own duration wins over the default."""
    out: List[FixedEvent] = []
    for t in tasks:
        start = t.record.scheduled_ms
        if start is None:
            continue
        own = t.record.duration_min
        minutes = own if own and own > 0 else default_minutes
        e = FixedEvent(
            kind=BlockKind.FIXED_RENDEZVOUS,
            start_ms=start,
            end_ms=start + minutes * MIN_MS,
            label="rendez-vous",
            group_id=t.id,
        )
        clipped = clamp_to_horizon(ctx, e)
        if clipped is not None:
            out.append(clipped)
    return _by_start(out)


def build_fixed_events(
    ctx: DayContext,
    tasks: Iterable[RankedTask],
    default_rendezvous_minutes: int = 60,
) -> List[FixedEvent]:
    fixed: List[FixedEvent] = []
    meal = FixedEvent(
        kind=BlockKind.FIXED_MEAL,
        start_ms=ctx.lunch_start_ms,
        end_ms=ctx.lunch_start_ms + ctx.lunch_minutes * MIN_MS,
        label="lunch",
    )
    clipped = clamp_to_horizon(ctx, meal)
    if clipped is not None:
        fixed.append(clipped)
    fixed.extend(extract_rendezvous(ctx, tasks, default_rendezvous_minutes))
    return _by_start(fixed)


def _logistics_event(ctx: DayContext, base: FixedEvent, role: str, start_ms: int, minutes: int) -> Optional[FixedEvent]:
    if minutes <= 0:
        return None
    e = FixedEvent(
        kind=BlockKind.FIXED_LOGISTICS,
        start_ms=start_ms,
        end_ms=start_ms + minutes * MIN_MS,
        label=role,
        group_id=base.group_id or base.label,
        role=role,
    )
    return clamp_to_horizon(ctx, e)


def expand_with_logistics(
    ctx: DayContext,
    fixed: Sequence[FixedEvent],
    spec: LogisticsSpec = LogisticsSpec(),
) -> Tuple[List[FixedEvent], List[str]]:
    """Wrap every rendezvous in prep -> travel -> event -> travel -> recover.

    Returns all events sorted by start plus one diagnostic per overlap between
    consecutive events.
    """
    out: List[FixedEvent] = list(fixed)

    for r in (e for e in fixed if e.kind is BlockKind.FIXED_RENDEZVOUS):
        travel_before_start = r.start_ms - spec.travel_one_way_min * MIN_MS
        prep_start = travel_before_start - spec.prep_min * MIN_MS
        travel_after_start = r.end_ms
        recover_start = travel_after_start + spec.travel_one_way_min * MIN_MS

        for e in (
            _logistics_event(ctx, r, ROLE_PREP, prep_start, spec.prep_min),
            _logistics_event(ctx, r, ROLE_TRAVEL, travel_before_start, spec.travel_one_way_min),
            _logistics_event(ctx, r, ROLE_TRAVEL, travel_after_start, spec.travel_one_way_min),
            _logistics_event(ctx, r, ROLE_RECOVER, recover_start, spec.recover_min),
        ):
            if e is not None:
                out.append(e)

    events = _by_start(out)
    diagnostics: List[str] = []
    for prev, cur in zip(events, events[1:]):
        if cur.start_ms < prev.end_ms:
            overlap = minutes_between(cur.start_ms, prev.end_ms)
            diagnostics.append(f"Overlap ({overlap}m): {prev.describe()} → {cur.describe()}")
    return events, diagnostics


def compute_free_slots(ctx: DayContext, fixed: Iterable[FixedEvent]) -> List[FreeSlot]:
    """Gaps of [day_start, day_end] not covered by any fixed event."""
    slots: List[FreeSlot] = []
    cursor = ctx.day_start_ms

    for e in _by_start(fixed):
        if e.start_ms > cursor:
            end = min(e.start_ms, ctx.day_end_ms)
            minutes = minutes_between(cursor, end)
            if minutes > 0:
                slots.append(FreeSlot(start_ms=cursor, end_ms=end, minutes=minutes))
        cursor = max(cursor, e.end_ms)

    if ctx.day_end_ms > cursor:
        minutes = minutes_between(cursor, ctx.day_end_ms)
        if minutes > 0:
            slots.append(FreeSlot(start_ms=cursor, end_ms=ctx.day_end_ms, minutes=minutes))
    return slots
