# taskx/schedule/now.py
from __future__ import annotations

from typing import List, Optional, Tuple

from ..basins import DecisionEngine
from ..model import RankedTask
from .hints import compute_scheduling_hint
from .types import URGENCY_RANK, BlockKind, DaySchedule, ScheduledItem, TimeBlockPlan

_EXPLAIN = {
    BlockKind.GOVERNANCE_R0: "We decide the rail of the day (R0). Until this is done, we don’t pretend we can schedule execution.",
    BlockKind.GOVERNANCE_B5_COMMIT: "We build/confirm explicit commitments (#b5) so execution is anchored in reality.",
    BlockKind.OP_B5_EXECUTE: "We execute eligible tasks (leaf, unblocked, with duration) chosen by score and profile.",
    BlockKind.OP_B4_WORKSHOP: "We improve tasks: clarify, split, add durations, unblock prerequisites, then dispatch.",
    BlockKind.OP_B3_CLOSE: "We close authority/external tasks: accept / negotiate / refuse, then produce next actions.",
    BlockKind.OP_B2_JUDGE: "We triage candidates: decide next operator (commit / workshop / embargo / hold).",
    BlockKind.OP_B6_EMBARGO: "We park/contain residue and define exit events (no rumination).",
    BlockKind.OP_B1_DO_NOW: "We do very short stable actions locally (no planning overhead).",
}

_GUIDANCE = {
    BlockKind.OP_B5_EXECUTE: "No executable task was placed here (likely missing durations or blocked). Consider workshop.",
    BlockKind.OP_B4_WORKSHOP: "Pick 1–3 tasks from B4 candidates: add ⏱️, split, unblock, or park parents.",
    BlockKind.OP_B2_JUDGE: "Open B2 view and decide next operator for top candidates (commit/workshop/embargo/hold).",
    BlockKind.OP_B3_CLOSE: "Open B3 view and close one authority task (accept / negotiate / refuse).",
    BlockKind.GOVERNANCE_R0: "Do R0 now: choose 1–2 bounded actions today (priority contest), then return here.",
}


def explain_kind(kind: BlockKind) -> str:
    return _EXPLAIN.get(kind, "Time block.")


def block_guidance(kind: BlockKind) -> str:
    return _GUIDANCE.get(kind, "Follow the block intent.")


def _in_interval(ms: int, start_ms: int, end_ms: int) -> bool:
    return start_ms <= ms < end_ms


def active_block(schedule: DaySchedule, at_ms: Optional[int] = None) -> Optional[TimeBlockPlan]:
    now = schedule.context.now_ms if at_ms is None else at_ms
    return next((b for b in schedule.blocks if _in_interval(now, b.start_ms, b.end_ms)), None)


def find_active_item(schedule: DaySchedule) -> Tuple[Optional[ScheduledItem], Optional[TimeBlockPlan]]:
    """Task item running now (preferred), else the block item running now."""
    now = schedule.context.now_ms
    block = active_block(schedule)
    for it in schedule.items:
        if it.is_task and _in_interval(now, it.start_ms, it.end_ms):
            return it, block
    if block is not None:
        return ScheduledItem.for_block(block), block
    return None, None


def next_task_in_block(schedule: DaySchedule, block: TimeBlockPlan) -> Optional[ScheduledItem]:
    now = schedule.context.now_ms
    for it in schedule.items:
        if not it.is_task:
            continue
        if _in_interval(it.start_ms, block.start_ms, block.end_ms) and it.start_ms >= now:
            return it
    return None


def top_commit_candidates(
    schedule: DaySchedule,
    engine: DecisionEngine,
    block: TimeBlockPlan,
    limit: int = 5,
) -> List[RankedTask]:
    """Eligible B5 candidates worth committing now: urgency first, then score."""
    out = []
    for t in engine.collect_b5_candidates(schedule.all_tasks):
        if block.allow_authority is False and t.is_authority:
            continue
        if not t.duration_min or t.duration_min <= 0:
            continue
        out.append(t)
    out.sort(key=lambda t: (-URGENCY_RANK[compute_scheduling_hint(t).urgency], -t.score, t.id))
    return out[:limit]
