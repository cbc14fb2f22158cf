# taskx/schedule/build.py
from __future__ import annotations

import datetime as dt
from typing import Any, Optional, Sequence

from ..basins import DecisionEngine
from ..model import RankedTask
from ..util.console import eprint, obs_enabled
from .compile import compile_blocks_from_profile
from .context import build_day_context
from .fill import fill_day_schedule
from .options import ScheduleOptions
from .profiles import DayProfileSettings, load_day_profiles_config, select_grand_profile
from .timeline import build_fixed_events, compute_free_slots, expand_with_logistics
from .types import DaySchedule


def build_day_schedule(
    tasks: Sequence[RankedTask],
    *,
    engine: DecisionEngine,
    now_ms: int,
    tz: dt.tzinfo,
    options: Optional[ScheduleOptions] = None,
    day_profiles: Any = None,
    default_profiles: Optional[DayProfileSettings] = None,
) -> DaySchedule:
    """Compile today's schedule.

    Stages: context -> fixed timeline (+ logistics) -> free slots ->
    grand profile selection -> block compilation (R0 gated) -> greedy fill.
    `day_profiles` is the raw config object; it is sanitized here.
    """
    opts = options or ScheduleOptions()
    snapshot = tuple(tasks)

    ctx = build_day_context(snapshot, opts, now_ms=now_ms, tz=tz)

    fixed0 = build_fixed_events(ctx, snapshot, opts.default_rendezvous_minutes)
    fixed, logistics_diags = expand_with_logistics(ctx, fixed0, opts.logistics)
    free = compute_free_slots(ctx, fixed)

    loaded = load_day_profiles_config(day_profiles, default_profiles)
    profile = select_grand_profile(ctx, loaded.settings)

    compiled = compile_blocks_from_profile(
        ctx,
        free,
        loaded.settings,
        profile,
        default_r0_minutes=opts.r0_minutes,
    )

    diagnostics = [*logistics_diags, *loaded.diagnostics, *compiled.diagnostics]
    diagnostics.append(f"ℹ grand_profile: {profile.id if profile else '-'}")

    items = fill_day_schedule(
        compiled.blocks,
        snapshot,
        engine=engine,
        is_r0_done=ctx.is_r0_done,
        committed_tags=opts.committed_tags,
    )

    schedule = DaySchedule(
        context=ctx,
        fixed=tuple(fixed),
        free_slots=tuple(free),
        blocks=tuple(compiled.blocks),
        items=tuple(items),
        diagnostics=tuple(diagnostics),
        all_tasks=snapshot,
        profile_id=profile.id if profile else None,
    )

    if obs_enabled():
        eprint(
            f"[taskx.schedule] day={ctx.today_iso} profile={schedule.profile_id} r0_done={ctx.is_r0_done} "
            f"fixed={len(fixed)} free={len(free)} blocks={len(schedule.blocks)} "
            f"placed={len(schedule.placed_task_ids())} diagnostics={len(diagnostics)}"
        )
    return schedule
