"""taskx.api

Stable *library* entrypoint for taskx.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from taskx.basins import (
    B5Slot,
    B5SlotPlan,
    DecisionEngine,
    DecisionHint,
    DecisionRow,
    TaskFlags,
    Thresholds,
    normalize_b5_slot_plan,
    normalize_thresholds,
)
from taskx.durations import DurationResult, compute_part_of_durations
from taskx.graph import RelationGraph, RelationGraphs, build_relation_graphs
from taskx.io import load_json_config, load_tasks_json
from taskx.lexicon import TagLexicon, load_lexicon_config
from taskx.model import (
    Basin,
    Dimensions,
    NextOperator,
    RankedTask,
    RelationKind,
    TaskRecord,
    clamp0to5,
    compute_priority_score,
    fold_max,
)
from taskx.ranking import next_task, rank_tasks
from taskx.schedule import (
    BlockKind,
    DaySchedule,
    ScheduleOptions,
    TimeBlockPlan,
    build_day_schedule,
    load_day_profiles_config,
    normalize_schedule_options,
)
from taskx.scoring import score_task, score_tasks
from taskx.validate import TaskPayloadError, assert_valid_tasks_payload, validate_tasks_payload


# --- Public API exports ---------------------------------------------------
_PUBLIC_EXPORTS = (
    "B5Slot",
    "B5SlotPlan",
    "Basin",
    "BlockKind",
    "DaySchedule",
    "DecisionEngine",
    "DecisionHint",
    "DecisionRow",
    "Dimensions",
    "DurationResult",
    "NextOperator",
    "RankedTask",
    "RelationGraph",
    "RelationGraphs",
    "RelationKind",
    "ScheduleOptions",
    "TagLexicon",
    "TaskFlags",
    "TaskPayloadError",
    "TaskRecord",
    "Thresholds",
    "TimeBlockPlan",
    "assert_valid_tasks_payload",
    "build_day_schedule",
    "build_relation_graphs",
    "clamp0to5",
    "compute_part_of_durations",
    "compute_priority_score",
    "fold_max",
    "load_day_profiles_config",
    "load_json_config",
    "load_lexicon_config",
    "load_tasks_json",
    "next_task",
    "normalize_b5_slot_plan",
    "normalize_schedule_options",
    "normalize_thresholds",
    "rank_tasks",
    "score_task",
    "score_tasks",
    "validate_tasks_payload",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
