# taskx/schedule/compile.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..model import MIN_MS
from ..util.timeparse import at_local_time
from .options import DEFAULT_R0_MINUTES, MAX_R0_MINUTES
from .profiles import BlockRecipe, DayProfileSettings, GrandProfile, should_apply_recipe
from .types import BlockKind, DayContext, FreeSlot, ProfileMode, TimeBlockPlan, minutes_between

R0_LABEL = "R0 — decision rail"
NO_FREE_SLOT_DIAG = "⚠ No free slot available in horizon."


@dataclass(frozen=True)
class CompileResult:
    blocks: List[TimeBlockPlan] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)


def clamp_to_free_slots(now_ms: int, free_slots: Sequence[FreeSlot], minutes: int) -> Optional[Tuple[int, int]]:
    """Earliest `minutes`-long interval inside a free slot, starting no earlier than now."""
    for s in free_slots:
        start = max(s.start_ms, now_ms)
        if s.end_ms > start and minutes_between(start, s.end_ms) >= minutes:
            return start, start + minutes * MIN_MS
    return None


def intersects(a0: int, a1: int, b0: int, b1: int) -> bool:
    return a0 < b1 and b0 < a1


def clip_interval(start: int, end: int, clip_start: int, clip_end: int) -> Optional[Tuple[int, int]]:
    s = max(start, clip_start)
    e = min(end, clip_end)
    return (s, e) if e > s else None


def split_into_blocks(
    start: int,
    end: int,
    minutes: int,
    make: Callable[[int, int, int], TimeBlockPlan],
) -> List[TimeBlockPlan]:
    out: List[TimeBlockPlan] = []
    cursor = start
    while cursor < end:
        nxt = min(cursor + minutes * MIN_MS, end)
        m = minutes_between(cursor, nxt)
        if m <= 0:
            break
        out.append(make(cursor, nxt, m))
        cursor = nxt
    return out


def r0_minutes_for(profile: Optional[GrandProfile], default: int = DEFAULT_R0_MINUTES) -> int:
    v = profile.schedule.get("r0_minutes") if profile is not None else None
    if isinstance(v, bool) or not isinstance(v, (int, float)) or v != v or v <= 0:
        v = default
    return min(int(v), MAX_R0_MINUTES)


def _r0_block(ctx: DayContext, free_slots: Sequence[FreeSlot], minutes: int) -> CompileResult:
    slot = clamp_to_free_slots(ctx.now_ms, free_slots, minutes)
    if slot is None:
        return CompileResult([], ["R0 not done but no free slot available in horizon."])
    start, end = slot
    block = TimeBlockPlan(
        kind=BlockKind.GOVERNANCE_R0,
        start_ms=start,
        end_ms=end,
        minutes=minutes_between(start, end),
        profile=ProfileMode.ADMIN,
        label=R0_LABEL,
        min_urgency="low",
        allow_authority=True,
        priority=0,
    )
    return CompileResult([block], ["R0 not done → governance only (R0)."])


def _project_recipe(ctx: DayContext, r: BlockRecipe, free_slots: Sequence[FreeSlot]) -> List[TimeBlockPlan]:
    w_start = at_local_time(ctx.day, r.window_start, ctx.tz)
    w_end = at_local_time(ctx.day, r.window_end, ctx.tz)

    def make(s: int, e: int, m: int) -> TimeBlockPlan:
        return TimeBlockPlan(
            kind=r.kind,
            start_ms=s,
            end_ms=e,
            minutes=m,
            profile=r.profile,
            label=r.label,
            min_urgency=r.min_urgency,
            allow_authority=r.allow_authority,
            max_tasks=r.max_tasks,
            priority=r.priority,
            recipe_id=r.id,
        )

    out: List[TimeBlockPlan] = []
    for slot in free_slots:
        if not intersects(w_start, w_end, slot.start_ms, slot.end_ms):
            continue
        clipped = clip_interval(w_start, w_end, slot.start_ms, slot.end_ms)
        if clipped is None:
            continue
        out.extend(split_into_blocks(clipped[0], clipped[1], r.chunk_minutes, make))
    return out


def compile_blocks_from_profile(
    ctx: DayContext,
    free_slots: Sequence[FreeSlot],
    settings: DayProfileSettings,
    profile: Optional[GrandProfile],
    *,
    default_r0_minutes: int = DEFAULT_R0_MINUTES,
) -> CompileResult:
    """Turn today's grand profile into concrete blocks on the free slots.

    While R0 is not done only the single governance block is produced.
    """
    if not ctx.is_r0_done:
        return _r0_block(ctx, free_slots, r0_minutes_for(profile, default_r0_minutes))
    if not free_slots:
        return CompileResult([], [NO_FREE_SLOT_DIAG])

    diagnostics: List[str] = []
    if profile is None:
        return CompileResult([], ["No grand profile available → no blocks."])
    if not settings.enabled:
        return CompileResult([], ["ℹ day profiles disabled → no recipe blocks"])

    recipes: List[BlockRecipe] = []
    for pid in profile.pack_ids:
        pack = settings.pack(pid)
        if pack is not None:
            recipes.extend(pack.recipes)

    blocks: List[TimeBlockPlan] = []
    for r in recipes:
        if not should_apply_recipe(ctx, r):
            continue
        if r.kind is BlockKind.GOVERNANCE_B5_COMMIT and ctx.has_b5:
            diagnostics.append(f'ℹ commitments (#b5) already present → skipping recipe "{r.id}"')
            continue
        blocks.extend(_project_recipe(ctx, r, free_slots))

    blocks.sort(key=lambda b: (b.start_ms, b.priority, b.kind.value, b.profile.value))
    return CompileResult(blocks, diagnostics)
