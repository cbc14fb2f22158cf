from __future__ import annotations

import datetime as dt
import unittest

from taskx.basins import DecisionEngine
from taskx.graph import build_relation_graphs
from taskx.model import TaskRecord
from taskx.ranking import rank_tasks
from taskx.schedule import (
    BlockKind,
    ScheduleOptions,
    build_day_schedule,
    explain_kind,
    find_active_item,
    next_task_in_block,
    render_day_schedule,
    render_now_view,
    top_commit_candidates,
)
from taskx.lexicon import load_lexicon_config

UTC = dt.timezone.utc

# 2020-01-01 UTC midnight baseline (a Wednesday).
BASE = 1577836800000
M = 60000
H = 60 * M


def _t(hh: int, mm: int = 0) -> int:
    return BASE + hh * H + mm * M


LEXICON, _ = load_lexicon_config(
    {
        "tags": {
            "#deep": {"gain": 4, "pressure": 3},
            "#chore": {"gain": 1, "pressure": 2},
        }
    }
)


def _schedule(records, now_ms, **opts):
    graphs = build_relation_graphs(records)
    ranked = rank_tasks(records, graphs=graphs, now_ms=now_ms, tz=UTC, tag_to_dimensions=LEXICON.dimensions)
    engine = DecisionEngine(graphs)
    sched = build_day_schedule(ranked, engine=engine, now_ms=now_ms, tz=UTC, options=ScheduleOptions(**opts))
    return sched, engine


class TestBuildDayScheduleContract(unittest.TestCase):
    def test_pending_r0_only_schedules_governance(self) -> None:
        records = [
            TaskRecord(id="r0", markdown="Decide the day", tags=("#r0",)),
            TaskRecord(id="w", markdown="Write", tags=("#deep",), duration_min=30),
        ]
        sched, _ = _schedule(records, _t(8))

        self.assertFalse(sched.context.is_r0_done)
        self.assertEqual([b.kind for b in sched.blocks], [BlockKind.GOVERNANCE_R0])
        self.assertEqual(sched.placed_task_ids(), ())
        self.assertEqual(
            list(sched.diagnostics),
            [
                "ℹ day_profiles missing → using defaults",
                "R0 not done → governance only (R0).",
                "ℹ grand_profile: weekday",
            ],
        )
        self.assertEqual(sched.profile_id, "weekday")

    def test_full_day_places_each_task_once_inside_its_block(self) -> None:
        records = [
            TaskRecord(id=f"d{i}", markdown=f"Deep {i}", tags=("#deep",), duration_min=45) for i in range(6)
        ] + [
            TaskRecord(id=f"c{i}", markdown=f"Chore {i}", tags=("#chore",), duration_min=15) for i in range(6)
        ] + [
            TaskRecord(id="meet", markdown="Meeting", scheduled_ms=_t(15), duration_min=60),
        ]
        sched, _ = _schedule(records, _t(8))

        placed = sched.placed_task_ids()
        self.assertTrue(placed)
        self.assertEqual(len(placed), len(set(placed)))
        self.assertNotIn("meet", placed)
        for it in sched.items:
            if it.task is not None:
                self.assertTrue(it.block.start_ms <= it.start_ms < it.end_ms <= it.block.end_ms)
                self.assertNotIn(it.block.kind, (BlockKind.GOVERNANCE_B5_COMMIT, BlockKind.OP_B6_EMBARGO))
        for b in sched.blocks:
            for e in sched.fixed:
                self.assertFalse(b.start_ms < e.end_ms and e.start_ms < b.end_ms, (b, e))

    def test_render_day_table(self) -> None:
        records = [TaskRecord(id="r0", tags=("#r0",))]
        text = render_day_schedule(_schedule(records, _t(8))[0])
        lines = text.splitlines()
        self.assertIn("- R0 not done → governance only (R0).", lines)
        header = next(i for i, ln in enumerate(lines) if ln.startswith("Time"))
        self.assertIn("Plan", lines[header])
        self.assertIn("Why", lines[header])
        self.assertTrue(lines[header + 2].startswith("09:00–09:35  [R0 — decision rail]"))


class TestNowViewContract(unittest.TestCase):
    def test_pending_r0_guidance(self) -> None:
        sched, engine = _schedule([TaskRecord(id="r0", tags=("#r0",))], _t(9, 10))
        item, block = find_active_item(sched)
        self.assertIs(block.kind, BlockKind.GOVERNANCE_R0)
        self.assertFalse(item.is_task)

        text = render_now_view(sched, engine)
        self.assertIn("Active block: 09:10–09:45 · governance:r0 · profile=admin", text)
        self.assertIn(explain_kind(BlockKind.GOVERNANCE_R0), text)
        self.assertTrue(text.endswith("Do R0 now: choose 1–2 bounded actions today (priority contest), then return here."))

    def test_commit_block_lists_candidates(self) -> None:
        records = [
            TaskRecord(id="a", markdown="Alpha", tags=("#deep",), duration_min=30),
            TaskRecord(id="b", markdown="Beta", tags=("#chore",), duration_min=20),
            TaskRecord(id="v", markdown="Vague", tags=("#deep",)),
        ]
        sched, engine = _schedule(records, _t(9, 5), is_r0_done=True)
        item, block = find_active_item(sched)
        self.assertIs(block.kind, BlockKind.GOVERNANCE_B5_COMMIT)
        self.assertIsNone(next_task_in_block(sched, block))

        top = top_commit_candidates(sched, engine, block)
        self.assertEqual([t.id for t in top], ["a", "b"])

        text = render_now_view(sched, engine)
        self.assertIn("Top eligible tasks to commit (#b5):", text)
        self.assertIn("- (4,3,🟢) 12.0 Alpha", text)
        self.assertNotIn("Vague", text)

    def test_active_task_is_preferred(self) -> None:
        records = [TaskRecord(id="a", markdown="Alpha", tags=("#deep",), duration_min=30)]
        sched, engine = _schedule(records, _t(9, 20), is_r0_done=True, has_b5=True)
        item, block = find_active_item(sched)
        self.assertEqual(block.recipe_id, "deep-am")
        self.assertTrue(item.is_task)
        self.assertEqual(item.task.id, "a")
        self.assertIn("Do now: (4,3,🟢) 12.0 Alpha", render_now_view(sched, engine))

    def test_explain_unknown_kind(self) -> None:
        self.assertEqual(explain_kind(BlockKind.FIXED_MEAL), "Time block.")

    def test_outside_horizon(self) -> None:
        sched, engine = _schedule([], _t(20), is_r0_done=True)
        self.assertEqual(find_active_item(sched), (None, None))
        self.assertTrue(render_now_view(sched, engine).endswith("No active block within today’s horizon."))


if __name__ == "__main__":
    unittest.main(verbosity=2)
