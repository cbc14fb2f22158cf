from __future__ import annotations

import argparse
import datetime as dt
import os
from typing import List, Optional

from .basins import DecisionEngine, normalize_b5_slot_plan, normalize_thresholds
from .durations import POLICY_EXPLICIT_OVERRIDES, POLICY_LEAVES_ONLY, compute_part_of_durations
from .graph import build_relation_graphs
from .io import load_json_config, load_json_file, load_tasks_json
from .lexicon import load_lexicon_config
from .model import Basin, RankedTask, TaskRecord
from .ranking import next_task, rank_tasks
from .schedule import (
    build_day_schedule,
    normalize_schedule_options,
    render_b5_slots,
    render_day_schedule,
    render_decision_rows,
    render_now_view,
)
from .util.console import eprint, obs_enabled
from .util.timeparse import parse_instant_to_ms
from .util.tz import normalize_tz_name, resolve_tz

COMMANDS = ("score", "basin", "slots", "day", "now", "doctor")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="taskx",
        description="Score, classify and schedule a snapshot of markdown tasks.",
    )
    ap.add_argument("command", choices=COMMANDS, help="What to print")
    ap.add_argument("basin", nargs="?", default=None, type=str.upper, help="Basin for the 'basin' command (B0..B6)")
    ap.add_argument("--tasks", required=True, help="Tasks JSON (list, or object with a 'tasks' list)")
    ap.add_argument("--options", default=None, help="Options JSON (schedule / thresholds / b5_slots / lexicon / day_profiles)")
    ap.add_argument("--profiles", default=None, help="Day profiles JSON (overrides the options 'day_profiles' section)")
    ap.add_argument("--now", default=None, help="Reference instant, ISO or YYYYMMDDTHHMMSSZ (default: current time)")
    ap.add_argument(
        "--tz",
        default=os.getenv("TASKX_TZ"),
        help="Timezone for day boundaries (default: env TASKX_TZ, else schedule.tz, else 'local')",
    )
    ap.add_argument(
        "--duration-policy",
        default=POLICY_LEAVES_ONLY,
        choices=(POLICY_LEAVES_ONLY, POLICY_EXPLICIT_OVERRIDES),
        help="How container durations are derived (default: leaves_only)",
    )
    ap.add_argument("--limit", type=int, default=None, help="Max rows for 'score'")
    return ap


def _report_diags(diags: List[str]) -> None:
    if not obs_enabled():
        return
    for d in diags:
        eprint(f"[taskx.cli] {d}")


def _print_score(ranked: List[RankedTask], graphs, limit: Optional[int]) -> None:
    rows = ranked if limit is None else ranked[: max(0, limit)]
    for t in rows:
        print(t.visual)
    nxt = next_task(ranked, graphs)
    print(f"\nNext: {nxt.visual if nxt else '-'}")


def _print_doctor(records: List[TaskRecord], graphs, policy: str, config_diags: List[str]) -> None:
    by_id = {r.id: r for r in records}
    res = compute_part_of_durations(graphs.part_of, by_id, policy=policy)

    print(f"Missing durations ({len(res.needs_duration)}):")
    for tid in res.needs_duration:
        print(f"- {tid} {by_id[tid].markdown}".rstrip())
    print(f"\nDuration warnings ({len(res.warnings)}):")
    for w in res.warnings:
        print(f"- {w}")
    print(f"\nConfig diagnostics ({len(config_diags)}):")
    for d in config_diags:
        print(f"- {d}")


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    try:
        cfg = load_json_config(args.options)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Failed to load options: {e}")

    opts, config_diags = normalize_schedule_options(cfg["schedule"])
    thresholds, d = normalize_thresholds(cfg["thresholds"])
    config_diags += d
    slot_plan, d = normalize_b5_slot_plan(cfg["b5_slots"])
    config_diags += d
    lexicon, d = load_lexicon_config(cfg["lexicon"])
    config_diags += d

    day_profiles = cfg["day_profiles"]
    if args.profiles:
        try:
            day_profiles = load_json_file(args.profiles)
        except (OSError, ValueError) as e:
            raise SystemExit(f"Failed to load day profiles: {e}")

    try:
        tz = resolve_tz(normalize_tz_name(args.tz or opts.tz))
    except ValueError as e:
        raise SystemExit(f"Invalid --tz value: {e}")

    if args.now:
        now_ms = parse_instant_to_ms(args.now, tz)
        if now_ms is None:
            raise SystemExit(f"Invalid --now value: {args.now!r}")
    else:
        now_ms = int(dt.datetime.now(tz).timestamp() * 1000)

    try:
        records = load_tasks_json(args.tasks, tz)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Failed to load tasks: {e}")

    _report_diags(config_diags)

    graphs = build_relation_graphs(records)

    if args.command == "doctor":
        _print_doctor(records, graphs, args.duration_policy, config_diags)
        return

    ranked = rank_tasks(
        records,
        graphs=graphs,
        now_ms=now_ms,
        tz=tz,
        tag_to_dimensions=lexicon.dimensions,
        tag_to_authority=lexicon.is_authority,
        duration_policy=args.duration_policy,
    )
    engine = DecisionEngine(graphs, thresholds)

    if args.command == "score":
        _print_score(ranked, graphs, args.limit)
    elif args.command == "basin":
        try:
            basin = Basin(args.basin or "")
        except ValueError:
            raise SystemExit(f"basin must be one of {', '.join(b.value for b in Basin)}; got {args.basin!r}")
        print(render_decision_rows(engine.decision(basin, ranked)))
    elif args.command == "slots":
        print(render_b5_slots(engine.build_b5_slots(ranked, slot_plan)))
    else:
        schedule = build_day_schedule(
            ranked,
            engine=engine,
            now_ms=now_ms,
            tz=tz,
            options=opts,
            day_profiles=day_profiles,
        )
        if args.command == "day":
            print(render_day_schedule(schedule))
        else:
            print(render_now_view(schedule, engine))


if __name__ == "__main__":
    main()
