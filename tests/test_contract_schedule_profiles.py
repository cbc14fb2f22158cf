from __future__ import annotations

import datetime as dt
import unittest

from taskx.schedule.context import build_day_context
from taskx.schedule.options import ScheduleOptions
from taskx.schedule.profiles import (
    DEFAULT_DAY_PROFILE_SETTINGS,
    WHEN_WEEKDAY,
    load_day_profiles_config,
    select_grand_profile,
    should_apply_recipe,
)
from taskx.schedule.types import BlockKind, ProfileMode

UTC = dt.timezone.utc

# 2020-01-01 UTC midnight baseline (a Wednesday).
BASE = 1577836800000
H = 60 * 60000
D = 24 * H


def _ctx(day_offset: int = 0):
    return build_day_context([], ScheduleOptions(is_r0_done=True), now_ms=BASE + day_offset * D + 8 * H, tz=UTC)


def _recipe(rid: str, **kw):
    r = {
        "id": rid,
        "window": {"start": "10:00", "end": "11:00"},
        "kind": "op:b5-execute",
        "profile": "deep",
        "chunk_minutes": 30,
    }
    r.update(kw)
    return r


def _config(**kw):
    cfg = {
        "packs": [{"id": "p1", "label": "Pack one", "recipes": [_recipe("r1")]}],
        "grand_profiles": [
            {"id": "g1", "priority": 10, "selectors": [{"kind": "weekday"}], "pack_ids": ["p1"]},
        ],
    }
    cfg.update(kw)
    return cfg


class TestDayProfilesLoaderContract(unittest.TestCase):
    def test_missing_config_uses_defaults(self) -> None:
        loaded = load_day_profiles_config(None)
        self.assertIs(loaded.settings, DEFAULT_DAY_PROFILE_SETTINGS)
        self.assertEqual(loaded.diagnostics, ["ℹ day_profiles missing → using defaults"])

        loaded = load_day_profiles_config(["not", "an", "object"])
        self.assertIs(loaded.settings, DEFAULT_DAY_PROFILE_SETTINGS)
        self.assertTrue(loaded.diagnostics[0].startswith("❌"))

    def test_valid_recipe_is_normalized(self) -> None:
        loaded = load_day_profiles_config(_config())
        self.assertEqual(loaded.diagnostics, [])
        r = loaded.settings.pack("p1").recipes[0]
        self.assertIs(r.kind, BlockKind.OP_B5_EXECUTE)
        self.assertIs(r.profile, ProfileMode.DEEP)
        self.assertFalse(r.allow_authority)
        self.assertEqual(r.label, "r1")
        self.assertEqual(r.priority, 9999)

    def test_duplicate_recipe_ids_keep_first(self) -> None:
        cfg = _config(
            packs=[{"id": "p1", "recipes": [_recipe("r1"), _recipe("r1", kind="op:b2-judge"), _recipe("r2")]}]
        )
        loaded = load_day_profiles_config(cfg)
        recipes = loaded.settings.pack("p1").recipes
        self.assertEqual([r.id for r in recipes], ["r1", "r2"])
        self.assertIs(recipes[0].kind, BlockKind.OP_B5_EXECUTE)
        self.assertEqual(loaded.diagnostics, ['❌ duplicate recipe id "r1" → later one dropped'])

    def test_profile_object_form_and_clamps(self) -> None:
        cfg = _config(
            packs=[
                {
                    "id": "p1",
                    "recipes": [
                        _recipe("r1", profile={"mode": "admin"}, chunk_minutes=1, max_tasks=500, min_urgency="urgent"),
                    ],
                }
            ]
        )
        loaded = load_day_profiles_config(cfg)
        r = loaded.settings.pack("p1").recipes[0]
        self.assertIs(r.profile, ProfileMode.ADMIN)
        self.assertTrue(r.allow_authority)
        self.assertEqual(r.chunk_minutes, 5)
        self.assertEqual(r.max_tasks, 99)
        self.assertIsNone(r.min_urgency)
        self.assertEqual(loaded.diagnostics, ['⚠ recipe "r1" invalid min_urgency → ignored'])

    def test_invalid_recipes_are_skipped(self) -> None:
        cfg = _config(
            packs=[
                {
                    "id": "p1",
                    "recipes": [
                        _recipe("ok"),
                        _recipe("bad-kind", kind="op:nope"),
                        _recipe("bad-window", window={"start": "11:00", "end": "10:00"}),
                        _recipe("bad-mode", profile="sleepy"),
                        _recipe("bad-chunk", chunk_minutes=0),
                        "junk",
                    ],
                }
            ]
        )
        loaded = load_day_profiles_config(cfg)
        self.assertEqual([r.id for r in loaded.settings.pack("p1").recipes], ["ok"])
        self.assertEqual(
            loaded.diagnostics,
            [
                '❌ recipe "bad-kind" unknown kind="op:nope" → skipped',
                '❌ recipe "bad-window" window.start/window.end invalid → skipped',
                '❌ recipe "bad-mode" invalid profile.mode="sleepy" → skipped',
                '❌ recipe "bad-chunk" chunk_minutes must be > 0 → skipped',
                "❌ recipe[5] is not an object → skipped",
            ],
        )

    def test_duplicates_keep_first_and_missing_packs_are_reported(self) -> None:
        cfg = _config(
            packs=[
                {"id": "p1", "label": "first", "recipes": [_recipe("r1")]},
                {"id": "p1", "label": "second", "recipes": []},
            ],
            grand_profiles=[{"id": "g1", "pack_ids": ["p1", "ghost"]}],
        )
        loaded = load_day_profiles_config(cfg)
        self.assertEqual(len(loaded.settings.packs), 1)
        self.assertEqual(loaded.settings.packs[0].label, "first")
        self.assertIn('❌ duplicate pack id "p1" → later one dropped', loaded.diagnostics)
        self.assertIn('❌ grand_profile "g1" references missing pack_ids: ghost', loaded.diagnostics)
        g = loaded.settings.grand_profiles[0]
        self.assertEqual(g.priority, 1000)
        self.assertEqual(g.selectors[0].kind, WHEN_WEEKDAY)

    def test_empty_result_falls_back_to_defaults(self) -> None:
        loaded = load_day_profiles_config({"packs": [], "grand_profiles": []})
        self.assertIs(loaded.settings, DEFAULT_DAY_PROFILE_SETTINGS)
        self.assertEqual(loaded.diagnostics[-1], "❌ day_profiles ended up empty after normalization → using defaults")

    def test_missing_sections_use_default_sections(self) -> None:
        loaded = load_day_profiles_config({"enabled": False})
        self.assertFalse(loaded.settings.enabled)
        self.assertEqual(loaded.settings.packs, DEFAULT_DAY_PROFILE_SETTINGS.packs)
        self.assertEqual(len(loaded.diagnostics), 2)


class TestGrandProfileSelectionContract(unittest.TestCase):
    def test_defaults_pick_weekday_and_weekend(self) -> None:
        self.assertEqual(select_grand_profile(_ctx(0), DEFAULT_DAY_PROFILE_SETTINGS).id, "weekday")
        # 2020-01-04 is a Saturday.
        self.assertEqual(select_grand_profile(_ctx(3), DEFAULT_DAY_PROFILE_SETTINGS).id, "weekend")

    def test_lowest_priority_number_wins_then_manual_override(self) -> None:
        cfg = _config(
            grand_profiles=[
                {"id": "normal", "priority": 100, "selectors": [{"kind": "weekday"}], "pack_ids": ["p1"]},
                {
                    "id": "holiday",
                    "priority": 5,
                    "selectors": [{"kind": "date_range", "start_iso": "2019-12-24", "end_iso": "2020-01-01"}],
                    "pack_ids": ["p1"],
                },
            ]
        )
        settings = load_day_profiles_config(cfg).settings
        self.assertEqual(select_grand_profile(_ctx(0), settings).id, "holiday")
        self.assertEqual(select_grand_profile(_ctx(1), settings).id, "normal")
        # Saturday matches nothing → first profile.
        self.assertEqual(select_grand_profile(_ctx(3), settings).id, "normal")

        cfg["manual_by_date"] = {"2020-01-01": "normal"}
        settings = load_day_profiles_config(cfg).settings
        self.assertEqual(select_grand_profile(_ctx(0), settings).id, "normal")

    def test_recipe_when_filters(self) -> None:
        cfg = _config(
            packs=[
                {
                    "id": "p1",
                    "recipes": [
                        _recipe("wed-only", when={"kind": "weekday", "days": [3]}),
                        _recipe("weekend", when={"kind": "weekend"}),
                        _recipe("january", when={"kind": "date_range", "start_iso": "2020-01-01", "end_iso": "2020-01-31"}),
                        _recipe("always"),
                    ],
                }
            ]
        )
        recipes = {r.id: r for r in load_day_profiles_config(cfg).settings.pack("p1").recipes}
        wed, thu, sat = _ctx(0), _ctx(1), _ctx(3)

        self.assertTrue(should_apply_recipe(wed, recipes["wed-only"]))
        self.assertFalse(should_apply_recipe(thu, recipes["wed-only"]))
        self.assertTrue(should_apply_recipe(sat, recipes["weekend"]))
        self.assertFalse(should_apply_recipe(wed, recipes["weekend"]))
        self.assertTrue(should_apply_recipe(thu, recipes["january"]))
        self.assertTrue(should_apply_recipe(sat, recipes["always"]))


if __name__ == "__main__":
    unittest.main(verbosity=2)
