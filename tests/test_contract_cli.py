from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from taskx.cli import main

NOW = "2020-01-01T09:05:00Z"

TASKS = {
    "tasks": [
        {"id": "a", "markdown": "Alpha", "tags": ["#deep"], "duration": 30},
        {"id": "b", "markdown": "Beta", "tags": ["#chore"], "duration": "20m", "depends_on": ["a"]},
        {"id": "p", "markdown": "Project"},
        {"id": "c", "markdown": "Child", "part_of": ["p"]},
    ]
}

OPTIONS = {
    "schedule": {"is_r0_done": True},
    "lexicon": {"tags": {"#deep": {"gain": 4, "pressure": 3}, "#chore": {"gain": 1, "pressure": 2}}},
}


class TestCliContract(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        root = Path(self._td.name)
        self.tasks = root / "tasks.json"
        self.tasks.write_text(json.dumps(TASKS), encoding="utf-8")
        self.options = root / "options.json"
        self.options.write_text(json.dumps(OPTIONS), encoding="utf-8")

    def tearDown(self) -> None:
        self._td.cleanup()

    def run_cli(self, *args: str) -> str:
        buf = io.StringIO()
        argv = [*args, "--tasks", str(self.tasks), "--options", str(self.options), "--now", NOW, "--tz", "UTC"]
        with patch.dict(os.environ, {"TASKX_OBS_LOG": "0"}), redirect_stdout(buf):
            main(argv)
        return buf.getvalue()

    def test_score(self) -> None:
        lines = self.run_cli("score").splitlines()
        self.assertEqual(lines[0], "(4,3,🟢) 12.0 Alpha")
        self.assertEqual(lines[1], "(1,2,🟢) 2.0 Beta")
        self.assertEqual(lines[-1], "Next: (4,3,🟢) 12.0 Alpha")

    def test_basin_view_accepts_lowercase(self) -> None:
        out = self.run_cli("basin", "b4")
        self.assertIn("Beta", out)
        self.assertIn("Child", out)
        self.assertNotIn("Alpha", out)

    def test_slots(self) -> None:
        out = self.run_cli("slots")
        self.assertTrue(out.startswith("## all 〔0 committed | 1 candidates | 30m candidates〕"))

    def test_day_and_now(self) -> None:
        day = self.run_cli("day")
        self.assertIn("Time", day)
        self.assertIn("[B5 commit]", day)

        now = self.run_cli("now")
        self.assertIn("governance:b5-commit", now)
        self.assertIn("- (4,3,🟢) 12.0 Alpha", now)

    def test_doctor(self) -> None:
        out = self.run_cli("doctor")
        self.assertIn("Missing durations (1):", out)
        self.assertIn("- c Child", out)
        self.assertIn("Config diagnostics (0):", out)

    def test_errors_exit(self) -> None:
        with self.assertRaises(SystemExit):
            self.run_cli("basin", "B9")
        with self.assertRaises(SystemExit):
            main(["score", "--tasks", str(self.tasks), "--tz", "No/Such_Zone"])
        with self.assertRaises(SystemExit):
            main(["score", "--tasks", str(Path(self._td.name) / "missing.json"), "--tz", "UTC"])
        with self.assertRaises(SystemExit):
            main(["score", "--tasks", str(self.tasks), "--tz", "UTC", "--now", "whenever"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
