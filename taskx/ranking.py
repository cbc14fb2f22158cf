# taskx/ranking.py
from __future__ import annotations

import datetime as dt
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .basins import is_authority_task
from .durations import POLICY_LEAVES_ONLY, compute_part_of_durations
from .graph import RelationGraphs
from .model import OUT, Dimensions, RankedTask, RelationKind, TaskRecord, compute_priority_score
from .scoring import TagToDimensions, score_dimensions
from .util.duration import format_minutes

TagToAuthority = Callable[[str], bool]

# (max_low, max_mid) thresholds for display buckets.
DEFAULT_FRICTION_BINS: Tuple[int, int] = (1, 3)

BADGE_LOW = "🟢"
BADGE_MID = "🟠"
BADGE_HIGH = "🔴"


def bin3(value: int, bins: Tuple[int, int]) -> int:
    max_low, max_mid = bins
    if value <= max_low:
        return 0
    if value <= max_mid:
        return 1
    return 2


def friction_badge(friction: int, bins: Tuple[int, int] = DEFAULT_FRICTION_BINS) -> str:
    return (BADGE_LOW, BADGE_MID, BADGE_HIGH)[bin3(friction, bins)]


def format_task_visual(
    record: TaskRecord,
    dimensions: Dimensions,
    score: float,
    duration_min: Optional[int],
    friction_bins: Tuple[int, int] = DEFAULT_FRICTION_BINS,
) -> str:
    """'(g,p,badge) score markdown' plus the effective duration when it was computed."""
    prefix = f"({dimensions.gain},{dimensions.pressure},{friction_badge(dimensions.friction, friction_bins)}) {score:.1f}"
    text = record.markdown or record.id
    if duration_min is None:
        text = f"{text} ⏱️ ❓"
    elif record.duration_min != duration_min:
        text = f"{text} ⏱️ {format_minutes(duration_min)}"
    return f"{prefix} {text}"


def rank_tasks(
    records: Iterable[TaskRecord],
    *,
    graphs: RelationGraphs,
    now_ms: int,
    tz: dt.tzinfo,
    tag_to_dimensions: Optional[TagToDimensions] = None,
    tag_to_authority: Optional[TagToAuthority] = None,
    authority_tags: Sequence[str] = (),
    duration_policy: str = POLICY_LEAVES_ONLY,
    friction_bins: Tuple[int, int] = DEFAULT_FRICTION_BINS,
) -> List[RankedTask]:
    """Score, attach effective durations and authority, sort by (-score, id)."""
    recs = list(records)
    by_id = {r.id: r for r in recs}
    durations = compute_part_of_durations(graphs.part_of, by_id, policy=duration_policy).durations

    out: List[RankedTask] = []
    for r in recs:
        d = score_dimensions(r, graphs=graphs, now_ms=now_ms, tz=tz, tag_to_dimensions=tag_to_dimensions)
        score = compute_priority_score(d)
        dur = durations.get(r.id)
        authority = (
            r.is_authority
            or is_authority_task(r.tags, authority_tags)
            or (tag_to_authority is not None and any(tag_to_authority(t) for t in r.tags))
        )
        out.append(
            RankedTask(
                record=r,
                dimensions=d,
                score=score,
                duration_min=dur,
                is_authority=bool(authority),
                visual=format_task_visual(r, d, score, dur, friction_bins),
            )
        )

    out.sort(key=lambda t: (-t.score, t.id))
    return out


def next_task(tasks: Sequence[RankedTask], graphs: RelationGraphs, *, keep_blocked: bool = False) -> Optional[RankedTask]:
    """First task in rank order that has no prerequisites (unless keep_blocked)."""
    for t in tasks:
        blocked = bool(graphs.depends_on.neighbors(t.id, RelationKind.DEPENDS_ON, OUT))
        if keep_blocked or not blocked:
            return t
    return None
