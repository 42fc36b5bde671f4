"""Command-line interface for rota conflict checks and recurring generation."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime

import pandas as pd

from rota.config import load_config
from rota.domain.db import create_db_engine, get_session_factory, init_database
from rota.exceptions import RotaError
from rota.io.import_csv import (
    import_availability_csv,
    import_jobs_csv,
    import_leave_csv,
    import_locations_csv,
    import_workers_csv,
)
from rota.services.assignment import assign_job, find_day_conflicts
from rota.services.recurring import generate_recurring_instances
from rota.services.validator import validate_assignment
from rota.services.week import clone_week, find_week_conflicts, summarize_week
from rota.services.workload import get_worker_workload, week_bounds


def _parse_datetime(value: str) -> datetime:
    return pd.Timestamp(value).to_pydatetime()


def _parse_date(value: str) -> date:
    return pd.Timestamp(value).date()


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _factory(args: argparse.Namespace, cfg):
    db_url = args.db or cfg.db_url
    return get_session_factory(engine=create_db_engine(db_url))


def _cmd_init_db(args: argparse.Namespace, cfg) -> None:
    """Initialize the database."""
    db_url = args.db or cfg.db_url
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_import_csv(args: argparse.Namespace, cfg) -> None:
    """Import CSV data into database, dependencies first."""
    steps = [
        (args.workers, import_workers_csv, "workers"),
        (args.availability, import_availability_csv, "availability windows"),
        (args.leave, import_leave_csv, "leave requests"),
        (args.locations, import_locations_csv, "locations"),
        (args.jobs, import_jobs_csv, "jobs"),
    ]
    with _factory(args, cfg)() as session:
        try:
            for path, importer, label in steps:
                if path:
                    count = importer(session, path)
                    print(f"[OK] Imported {count} {label}")
        except Exception:
            session.rollback()
            raise
    print("[OK] CSV import complete")


def _cmd_validate(args: argparse.Namespace, cfg) -> None:
    """Validate a proposed assignment and print its warnings."""
    result = validate_assignment(
        _factory(args, cfg),
        args.worker,
        args.job,
        _parse_datetime(args.at),
        args.location,
        duration_minutes=args.duration,
        week_start=_parse_date(args.week_start) if args.week_start else None,
        week_end=_parse_date(args.week_end) if args.week_end else None,
        config=cfg,
    )
    _print_json(result.to_dict())


def _cmd_assign(args: argparse.Namespace, cfg) -> None:
    """Assign a worker to a job, printing any warnings."""
    outcome = assign_job(_factory(args, cfg), args.job, args.worker, config=cfg)
    _print_json(outcome.to_dict())


def _cmd_generate(args: argparse.Namespace, cfg) -> None:
    """Generate recurring instances for a template."""
    with _factory(args, cfg)() as session:
        result = generate_recurring_instances(
            session,
            args.template,
            days_ahead=args.days_ahead,
            today=_parse_date(args.today) if args.today else None,
            config=cfg,
        )
        _print_json(result.to_dict())
    print(f"[OK] {result.count} new instance(s), {len(result.instances)} in horizon", file=sys.stderr)


def _cmd_workload(args: argparse.Namespace, cfg) -> None:
    """Print a worker's committed hours for the week containing a date."""
    week_start, week_end = week_bounds(_parse_date(args.date))
    with _factory(args, cfg)() as session:
        hours = get_worker_workload(session, args.worker, week_start, week_end, config=cfg)
    _print_json({"workerId": args.worker, "weekStart": week_start, "weekEnd": week_end, "hours": hours})


def _cmd_conflicts(args: argparse.Namespace, cfg) -> None:
    """List jobs a worker already has on a day."""
    with _factory(args, cfg)() as session:
        jobs = find_day_conflicts(session, args.worker, _parse_date(args.date))
        payload = {
            "hasConflict": bool(jobs),
            "conflicts": [
                {"id": j.job_id, "title": j.title, "address": j.location.address if j.location else None}
                for j in jobs
            ],
        }
    _print_json(payload)


def _week_args(args: argparse.Namespace):
    return _parse_date(args.week_start), _parse_date(args.week_end) if args.week_end else None


def _cmd_clone_week(args: argparse.Namespace, cfg) -> None:
    """Copy last week's jobs into the given week."""
    week_start, week_end = _week_args(args)
    with _factory(args, cfg)() as session:
        result = clone_week(session, week_start, week_end)
        _print_json(result.to_dict())
    print(f"[OK] Cloned {len(result.jobs)} job(s)", file=sys.stderr)


def _cmd_week_conflicts(args: argparse.Namespace, cfg) -> None:
    """List jobs sharing a day with another job of the same worker."""
    week_start, week_end = _week_args(args)
    with _factory(args, cfg)() as session:
        conflicts = find_week_conflicts(session, week_start, week_end, config=cfg)
    _print_json({"conflicts": [c.to_dict() for c in conflicts]})


def _cmd_rota(args: argparse.Namespace, cfg) -> None:
    """Print the week's jobs with per-worker workload."""
    week_start, week_end = _week_args(args)
    with _factory(args, cfg)() as session:
        summary = summarize_week(session, week_start, week_end, config=cfg)
        _print_json(summary.to_dict())


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="rota",
        description="Rota assignment conflict checks and recurring job generation",
    )

    # Global options
    parser.add_argument("--db", help="Database URL (default: from config, sqlite:///rota.db)")
    parser.add_argument("--config", help="Path to config YAML or JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--workers", help="Path to workers CSV")
    imp.add_argument("--availability", help="Path to availability CSV")
    imp.add_argument("--leave", help="Path to leave requests CSV")
    imp.add_argument("--locations", help="Path to locations CSV")
    imp.add_argument("--jobs", help="Path to jobs CSV")
    imp.set_defaults(func=_cmd_import_csv)

    # validate command
    val = sub.add_parser("validate", help="Check a proposed assignment for conflicts")
    val.add_argument("--worker", type=int, required=True)
    val.add_argument("--job", type=int, help="Job being assigned (excluded from totals)")
    val.add_argument("--location", type=int, required=True)
    val.add_argument("--at", required=True, help="Proposed start, e.g. 2025-06-02T09:00")
    val.add_argument("--duration", type=int, help="Duration in minutes")
    val.add_argument("--week-start", help="Explicit week start date for the hours cap")
    val.add_argument("--week-end", help="Explicit week end date for the hours cap")
    val.set_defaults(func=_cmd_validate)

    # assign command
    asg = sub.add_parser("assign", help="Assign a worker to a job (warnings never block)")
    asg.add_argument("--job", type=int, required=True)
    asg.add_argument("--worker", type=int, required=True)
    asg.set_defaults(func=_cmd_assign)

    # generate-recurring command
    gen = sub.add_parser("generate-recurring", help="Create instances of a recurring job")
    gen.add_argument("--template", type=int, required=True)
    gen.add_argument("--days-ahead", type=int, help="Horizon in days (default: from config)")
    gen.add_argument("--today", help="Override the start date (YYYY-MM-DD)")
    gen.set_defaults(func=_cmd_generate)

    # workload command
    wl = sub.add_parser("workload", help="Show a worker's committed hours for a week")
    wl.add_argument("--worker", type=int, required=True)
    wl.add_argument("--date", required=True, help="Any date in the week")
    wl.set_defaults(func=_cmd_workload)

    # conflicts command
    cf = sub.add_parser("conflicts", help="List a worker's jobs on a day")
    cf.add_argument("--worker", type=int, required=True)
    cf.add_argument("--date", required=True)
    cf.set_defaults(func=_cmd_conflicts)

    # week-level commands
    for name, func, help_text in (
        ("clone-week", _cmd_clone_week, "Copy the previous week's jobs into a week as PLANNED"),
        ("week-conflicts", _cmd_week_conflicts, "Find workers with several jobs on one day"),
        ("rota", _cmd_rota, "Show a week's jobs and per-worker workload"),
    ):
        wk = sub.add_parser(name, help=help_text)
        wk.add_argument("--week-start", required=True, help="First day of the week (YYYY-MM-DD)")
        wk.add_argument("--week-end", help="Last day of the week (default: start + 6 days)")
        wk.set_defaults(func=func)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(args.config)
        args.func(args, cfg)
    except RotaError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
