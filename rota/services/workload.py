"""Weekly working-hours cap enforcement and workload queries."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Tuple

from sqlalchemy.orm import Session

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.repositories import JobRepository, WorkerRepository

from .warnings import ConflictWarning, MaxHoursDetails, WarningType

logger = logging.getLogger(__name__)


def week_bounds(day: date) -> Tuple[date, date]:
    """Sunday-to-Saturday week containing ``day``."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def _as_range(week_start: date | datetime, week_end: date | datetime) -> Tuple[datetime, datetime]:
    # Plain dates cover whole days; datetimes are taken as given
    if not isinstance(week_start, datetime):
        week_start = datetime.combine(week_start, time.min)
    if not isinstance(week_end, datetime):
        week_end = datetime.combine(week_end, time.max)
    return week_start, week_end


def get_worker_workload(
    session: Session,
    worker_id: int,
    week_start: date | datetime,
    week_end: date | datetime,
    exclude_job_id: int | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> float:
    """
    Hours of active jobs assigned to the worker within an inclusive window.

    Jobs without a duration estimate count with the default duration.
    """
    start, end = _as_range(week_start, week_end)
    jobs = JobRepository.get_for_worker_between(
        session, worker_id, start, end, config.active_statuses, exclude_job_id=exclude_job_id
    )
    return sum(config.hours_or_default(job.estimated_duration_minutes) for job in jobs)


def check_max_hours(
    session: Session,
    worker_id: int,
    job_id: int | None,
    scheduled_at: datetime,
    duration_minutes: int | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
    week_start: date | datetime | None = None,
    week_end: date | datetime | None = None,
) -> List[ConflictWarning]:
    """
    Warn when the proposed job would push the worker past their weekly cap.

    Workers without ``max_weekly_hours`` are never capped. When week bounds
    are not supplied, the Sunday-to-Saturday week of ``scheduled_at`` is used.
    """
    worker = WorkerRepository.get_by_id(session, worker_id)
    if worker is None or not worker.max_weekly_hours:
        return []

    if week_start is None or week_end is None:
        week_start, week_end = week_bounds(scheduled_at.date())

    current_hours = get_worker_workload(
        session, worker_id, week_start, week_end, exclude_job_id=job_id, config=config
    )
    new_hours = config.hours_or_default(duration_minutes)
    total_hours = current_hours + new_hours
    cap = float(worker.max_weekly_hours)

    if total_hours <= cap:
        return []

    return [
        ConflictWarning(
            type=WarningType.MAX_HOURS,
            message=f"Assignment would exceed maximum working hours ({total_hours:.1f}/{cap:g} hours)",
            details=MaxHoursDetails(
                current_hours=round(current_hours, 1),
                new_job_hours=round(new_hours, 1),
                total_hours=round(total_hours, 1),
                max_hours=cap,
            ),
        )
    ]
