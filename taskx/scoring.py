# taskx/scoring.py
"""Dimension scoring.

Pipeline (fixed order, each stage folded into the previous one with max):
  1. tag dimensions (injected resolver)
  2. time-constraint pressure from due / scheduled / created dates
  3. partOf friction adjustment

score = gain * pressure / (1 + friction)

A missing date contributes nothing to its stage.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Iterable, List, Optional

from .graph import RelationGraph, RelationGraphs
from .model import (
    IN,
    OUT,
    ZERO,
    Dimensions,
    RelationKind,
    ScoredTask,
    TaskRecord,
    compute_priority_score,
    fold_max,
)
from .util.tz import days_between

TagToDimensions = Callable[[str], Dimensions]


def no_tag_dimensions(_tag: str) -> Dimensions:
    return ZERO


def dimensions_from_tags(
    tags: Iterable[str],
    tag_to_dimensions: TagToDimensions,
    prior: Dimensions = ZERO,
) -> Dimensions:
    out = prior
    for tag in tags:
        out = fold_max(out, tag_to_dimensions(tag))
    return out


def pressure_from_due(due_ms: int, now_ms: int, tz: dt.tzinfo) -> int:
    days_until = days_between(now_ms, due_ms, tz)
    if days_until <= 1:
        return 5  # overdue, today or tomorrow
    if days_until <= 3:
        return 4
    if days_until <= 7:
        return 3
    if days_until <= 14:
        return 2
    if days_until <= 30:
        return 1
    return 0


def pressure_from_scheduled(scheduled_ms: int, now_ms: int, tz: dt.tzinfo) -> int:
    days_until = days_between(now_ms, scheduled_ms, tz)
    if days_until < 0:
        return 3  # missed appointment
    if days_until <= 1:
        return 4
    if days_until <= 7:
        return 3
    if days_until <= 14:
        return 2
    return 1


def pressure_from_created(created_ms: int, now_ms: int, tz: dt.tzinfo) -> int:
    age = days_between(created_ms, now_ms, tz)
    if age < 0:
        return 5  # created in the future: data bug
    if age <= 1:
        return 2
    if age <= 14:
        return 1
    if age <= 45:
        return 2
    return 4  # needs review


def dimensions_from_time_constraints(
    record: TaskRecord,
    now_ms: int,
    tz: dt.tzinfo,
    prior: Dimensions = ZERO,
) -> Dimensions:
    out = prior

    if record.due_ms is not None:
        out = fold_max(out, Dimensions.of(pressure=pressure_from_due(record.due_ms, now_ms, tz)))

    if record.scheduled_ms is not None:
        out = fold_max(out, Dimensions.of(pressure=pressure_from_scheduled(record.scheduled_ms, now_ms, tz)))

    if record.created_ms is not None:
        pressure = pressure_from_created(record.created_ms, now_ms, tz)
        may_be_obsolete = pressure == 4 and record.due_ms is None and record.scheduled_ms is None
        has_bug = pressure == 5
        gain = 5 if (may_be_obsolete or has_bug) else 0
        out = fold_max(out, Dimensions.of(gain=gain, pressure=pressure))

    return out


def dimensions_from_part_of(task_id: str, part_of: RelationGraph, prior: Dimensions = ZERO) -> Dimensions:
    friction = prior.friction
    if part_of.neighbors(task_id, RelationKind.PART_OF, OUT):
        friction = max(0, friction - 1)
    if part_of.neighbors(task_id, RelationKind.PART_OF, IN):
        friction = min(5, friction + 1)
    return Dimensions.of(gain=prior.gain, pressure=prior.pressure, friction=friction)


def score_dimensions(
    record: TaskRecord,
    *,
    graphs: RelationGraphs,
    now_ms: int,
    tz: dt.tzinfo,
    tag_to_dimensions: Optional[TagToDimensions] = None,
) -> Dimensions:
    resolver = tag_to_dimensions or no_tag_dimensions
    d = dimensions_from_tags(record.tags, resolver)
    d = dimensions_from_time_constraints(record, now_ms, tz, d)
    d = dimensions_from_part_of(record.id, graphs.part_of, d)
    return d


def score_task(
    record: TaskRecord,
    *,
    graphs: RelationGraphs,
    now_ms: int,
    tz: dt.tzinfo,
    tag_to_dimensions: Optional[TagToDimensions] = None,
) -> ScoredTask:
    d = score_dimensions(record, graphs=graphs, now_ms=now_ms, tz=tz, tag_to_dimensions=tag_to_dimensions)
    return ScoredTask(id=record.id, dimensions=d, score=compute_priority_score(d))


def score_tasks(
    records: Iterable[TaskRecord],
    *,
    graphs: RelationGraphs,
    now_ms: int,
    tz: dt.tzinfo,
    tag_to_dimensions: Optional[TagToDimensions] = None,
) -> List[ScoredTask]:
    """Score every record; highest score first, ties by id."""
    out = [
        score_task(r, graphs=graphs, now_ms=now_ms, tz=tz, tag_to_dimensions=tag_to_dimensions)
        for r in records
    ]
    out.sort(key=lambda s: (-s.score, s.id))
    return out
