# taskx/schedule/fill.py
"""Greedy block filler.

Pools are built once per day and never mutated; a single `placed` id set is
the available-pool state threaded through the whole pass, so a task can be
placed at most once per day whichever pool offered it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..basins import DecisionEngine
from ..model import MIN_MS, RankedTask
from .hints import LEVEL_RANK, SchedulingHint, compute_scheduling_hint
from .types import URGENCY_RANK, BlockKind, ProfileMode, ScheduledItem, TimeBlockPlan

MIN_GRAIN_MINUTES = 10

POOL_COMMITTED = "committed"
POOL_CANDIDATES = "candidates"
POOL_WORKSHOP = "workshop"
POOL_AUTHORITY = "authority"
POOL_GENERAL = "general"

SOURCES_BY_KIND: Dict[BlockKind, Tuple[str, ...]] = {
    BlockKind.OP_B5_EXECUTE: (POOL_COMMITTED, POOL_CANDIDATES, POOL_GENERAL),
    BlockKind.OP_B4_WORKSHOP: (POOL_WORKSHOP, POOL_GENERAL),
    BlockKind.OP_B3_CLOSE: (POOL_AUTHORITY, POOL_COMMITTED, POOL_GENERAL),
    BlockKind.OP_B2_JUDGE: (POOL_GENERAL,),
    BlockKind.OP_B1_DO_NOW: (POOL_CANDIDATES, POOL_GENERAL),
}


@dataclass(frozen=True)
class FillPools:
    committed: Tuple[RankedTask, ...]
    candidates: Tuple[RankedTask, ...]
    workshop: Tuple[RankedTask, ...]
    authority: Tuple[RankedTask, ...]
    general: Tuple[RankedTask, ...]

    def get(self, name: str) -> Tuple[RankedTask, ...]:
        return getattr(self, name)


def duration_minutes(task: RankedTask) -> Optional[int]:
    m = task.duration_min
    return int(m) if m and m > 0 else None


def fits(block: TimeBlockPlan, task: RankedTask, remaining_min: int) -> bool:
    m = duration_minutes(task)
    if m is None:
        return False
    return m <= remaining_min and m <= block.minutes


def _by_score(tasks: Iterable[RankedTask]) -> Tuple[RankedTask, ...]:
    return tuple(sorted(tasks, key=lambda t: (-t.score, t.id)))


def build_fill_pools(
    tasks: Sequence[RankedTask],
    engine: DecisionEngine,
    committed_tags: Sequence[str] = ("#b5", "#B5"),
) -> FillPools:
    committed = _by_score(t for t in tasks if t.record.has_any_tag(committed_tags))
    committed_ids = {t.id for t in committed}
    return FillPools(
        committed=committed,
        candidates=tuple(engine.collect_b5_candidates(tasks)),
        workshop=tuple(engine.collect_workshop_candidates(tasks)),
        authority=_by_score(t for t in tasks if t.is_authority),
        general=tuple(t for t in tasks if t.id not in committed_ids),
    )


def admits(block: TimeBlockPlan, task: RankedTask, hint: SchedulingHint) -> bool:
    if not block.allow_authority and task.is_authority:
        return False
    if block.min_urgency and URGENCY_RANK[hint.urgency] < URGENCY_RANK[block.min_urgency]:
        return False
    return True


def _sort_key(block: TimeBlockPlan, task: RankedTask, hint: SchedulingHint) -> tuple:
    urg = URGENCY_RANK[hint.urgency]
    val = LEVEL_RANK[hint.value]
    fr = LEVEL_RANK[hint.friction]
    if block.profile is ProfileMode.DEEP:
        return (-val, -urg, fr, -task.score, task.id)
    return (-urg, fr, -val, -task.score, task.id)


def pick(
    block: TimeBlockPlan,
    candidates: Iterable[RankedTask],
    remaining_min: int,
    placed: Set[str],
    hints: Dict[str, SchedulingHint],
) -> Optional[RankedTask]:
    """Best admissible, unplaced task of one pool that fits the block."""
    admissible = [t for t in candidates if t.id not in placed and admits(block, t, hints[t.id])]
    admissible.sort(key=lambda t: _sort_key(block, t, hints[t.id]))
    for t in admissible:
        if fits(block, t, remaining_min):
            return t
    return None


def fill_day_schedule(
    blocks: Sequence[TimeBlockPlan],
    tasks: Sequence[RankedTask],
    *,
    engine: DecisionEngine,
    is_r0_done: bool,
    committed_tags: Sequence[str] = ("#b5", "#B5"),
) -> List[ScheduledItem]:
    """Interleave each block with the tasks placed inside it.

    With R0 not done the blocks are returned bare. Governance, fixed and
    embargo blocks never receive tasks.
    """
    items: List[ScheduledItem] = []
    if not is_r0_done:
        return [ScheduledItem.for_block(b) for b in blocks]

    pools = build_fill_pools(tasks, engine, committed_tags)
    hints = {t.id: compute_scheduling_hint(t) for t in tasks}
    placed: Set[str] = set()

    for b in blocks:
        items.append(ScheduledItem.for_block(b))
        sources = SOURCES_BY_KIND.get(b.kind)
        if not sources:
            continue

        cursor = b.start_ms
        remaining = b.minutes
        count = 0

        while remaining >= MIN_GRAIN_MINUTES:
            if b.max_tasks is not None and count >= b.max_tasks:
                break
            chosen = None
            for name in sources:
                chosen = pick(b, pools.get(name), remaining, placed, hints)
                if chosen is not None:
                    break
            if chosen is None:
                break

            m = duration_minutes(chosen) or 0
            placed.add(chosen.id)
            items.append(ScheduledItem.for_task(b, chosen, cursor, cursor + m * MIN_MS))
            cursor += m * MIN_MS
            remaining -= m
            count += 1

    return items
