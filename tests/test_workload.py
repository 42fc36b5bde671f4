"""Tests for the weekly hours cap and workload queries."""

from datetime import date, datetime

from rota.services.workload import check_max_hours, get_worker_workload, week_bounds
from rota.services.warnings import MaxHoursDetails, WarningType


def _commit_38_hours(make_job):
    # Four 9.5 hour jobs, Monday-Thursday of the week 2025-06-01 .. 2025-06-07
    for day in (2, 3, 4, 5):
        make_job(f"Shift {day}", worker_id=1, scheduled_at=datetime(2025, 6, day, 7, 0), duration=570)


def test_week_bounds_are_sunday_to_saturday():
    expected = (date(2025, 6, 1), date(2025, 6, 7))
    assert week_bounds(date(2025, 6, 1)) == expected
    assert week_bounds(date(2025, 6, 4)) == expected
    assert week_bounds(date(2025, 6, 7)) == expected
    assert week_bounds(date(2025, 6, 8)) == (date(2025, 6, 8), date(2025, 6, 14))


def test_worker_without_cap_is_never_warned(db_session, make_worker, make_job):
    make_worker(1)
    _commit_38_hours(make_job)

    assert check_max_hours(db_session, 1, None, datetime(2025, 6, 6, 9), 600) == []


def test_exceeding_cap_reports_totals(db_session, make_worker, make_job):
    make_worker(1, max_weekly_hours=40)
    _commit_38_hours(make_job)

    warnings = check_max_hours(db_session, 1, None, datetime(2025, 6, 6, 9), 180)

    assert len(warnings) == 1
    assert warnings[0].type == WarningType.MAX_HOURS
    assert warnings[0].details == MaxHoursDetails(
        current_hours=38.0, new_job_hours=3.0, total_hours=41.0, max_hours=40.0
    )
    assert "41.0/40" in warnings[0].message


def test_reaching_cap_exactly_is_allowed(db_session, make_worker, make_job):
    make_worker(1, max_weekly_hours=40)
    _commit_38_hours(make_job)

    # Default duration is two hours: 38 + 2 == 40
    assert check_max_hours(db_session, 1, None, datetime(2025, 6, 6, 9)) == []


def test_jobs_outside_week_and_inactive_jobs_not_counted(db_session, make_worker, make_job):
    make_worker(1, max_weekly_hours=10)
    make_job("Last week", worker_id=1, scheduled_at=datetime(2025, 5, 31, 9), duration=600)
    make_job("Next week", worker_id=1, scheduled_at=datetime(2025, 6, 8, 9), duration=600)
    make_job("Draft", worker_id=1, scheduled_at=datetime(2025, 6, 3, 9), duration=600, status="DRAFT")

    assert check_max_hours(db_session, 1, None, datetime(2025, 6, 4, 9), 120) == []


def test_job_being_validated_not_double_counted(db_session, make_worker, make_job):
    make_worker(1, max_weekly_hours=8)
    job = make_job("Long shift", worker_id=1, scheduled_at=datetime(2025, 6, 3, 9), duration=420)

    assert check_max_hours(db_session, 1, job.job_id, job.scheduled_at, 420) == []


def test_explicit_week_bounds_are_used(db_session, make_worker, make_job):
    make_worker(1, max_weekly_hours=10)
    make_job("Saturday", worker_id=1, scheduled_at=datetime(2025, 6, 7, 9), duration=540)

    # Monday-based week starting 2025-06-02 includes Saturday the 7th
    warnings = check_max_hours(
        db_session, 1, None, datetime(2025, 6, 8, 9), 120,
        week_start=date(2025, 6, 2), week_end=date(2025, 6, 8),
    )
    assert len(warnings) == 1
    assert warnings[0].details.current_hours == 9.0

    # The default Sunday-based week of the 8th does not
    assert check_max_hours(db_session, 1, None, datetime(2025, 6, 8, 9), 120) == []


def test_get_worker_workload_applies_default_duration(db_session, make_worker, make_job):
    make_worker(1)
    make_job("Estimated", worker_id=1, scheduled_at=datetime(2025, 6, 2, 9), duration=90)
    make_job("Unestimated", worker_id=1, scheduled_at=datetime(2025, 6, 3, 9))

    hours = get_worker_workload(db_session, 1, date(2025, 6, 1), date(2025, 6, 7))

    assert hours == 3.5


def test_get_worker_workload_excludes_job(db_session, make_worker, make_job):
    make_worker(1)
    job = make_job("Estimated", worker_id=1, scheduled_at=datetime(2025, 6, 2, 9), duration=90)

    assert get_worker_workload(db_session, 1, date(2025, 6, 1), date(2025, 6, 7), exclude_job_id=job.job_id) == 0
