"""Day schedule compiler (fixed timeline, day profiles, R0 gate, greedy fill)."""

from __future__ import annotations

from .build import build_day_schedule
from .compile import CompileResult, compile_blocks_from_profile
from .context import R0Status, build_day_context, detect_r0
from .fill import fill_day_schedule
from .hints import SchedulingHint, compute_scheduling_hint
from .now import explain_kind, find_active_item, next_task_in_block, top_commit_candidates
from .options import LogisticsSpec, ScheduleOptions, normalize_schedule_options
from .profiles import (
    DEFAULT_DAY_PROFILE_SETTINGS,
    BlockRecipe,
    DayProfileSettings,
    GrandProfile,
    load_day_profiles_config,
    select_grand_profile,
)
from .render import render_b5_slots, render_day_schedule, render_decision_rows, render_now_view
from .timeline import build_fixed_events, compute_free_slots, expand_with_logistics
from .types import (
    BlockKind,
    DayContext,
    DaySchedule,
    FixedEvent,
    FreeSlot,
    ProfileMode,
    ScheduledItem,
    TimeBlockPlan,
)

__all__ = [
    "BlockKind",
    "BlockRecipe",
    "CompileResult",
    "DEFAULT_DAY_PROFILE_SETTINGS",
    "DayContext",
    "DayProfileSettings",
    "DaySchedule",
    "FixedEvent",
    "FreeSlot",
    "GrandProfile",
    "LogisticsSpec",
    "ProfileMode",
    "R0Status",
    "ScheduleOptions",
    "ScheduledItem",
    "SchedulingHint",
    "TimeBlockPlan",
    "build_day_context",
    "build_day_schedule",
    "build_fixed_events",
    "compile_blocks_from_profile",
    "compute_free_slots",
    "compute_scheduling_hint",
    "detect_r0",
    "expand_with_logistics",
    "explain_kind",
    "fill_day_schedule",
    "find_active_item",
    "load_day_profiles_config",
    "next_task_in_block",
    "normalize_schedule_options",
    "render_b5_slots",
    "render_day_schedule",
    "render_decision_rows",
    "render_now_view",
    "select_grand_profile",
    "top_commit_candidates",
]
