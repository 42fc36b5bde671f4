"""Week-level rota operations: cloning a week, scanning it for conflicts, summarising workload."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.models import ChecklistItem, Job, JobAssignment, JobStatus
from rota.domain.repositories import JobRepository, LeaveRepository, WorkerRepository
from rota.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


def _week_range(week_start: date, week_end: date | None) -> Tuple[date, date]:
    # Without an explicit end the week is seven days from the start
    week_end = week_end or week_start + timedelta(days=6)
    if week_end < week_start:
        raise InvalidInputError(f"week_end {week_end} is before week_start {week_start}")
    return week_start, week_end


def _day_span(start: date, end: date) -> Tuple[datetime, datetime]:
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


@dataclass
class WeekCloneResult:
    source_start: date
    source_end: date
    jobs: List[Job] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceWeekStart": self.source_start.isoformat(),
            "sourceWeekEnd": self.source_end.isoformat(),
            "clonedJobsCount": len(self.jobs),
            "jobs": [job.to_dict() for job in self.jobs],
        }


def clone_week(session: Session, week_start: date, week_end: date | None = None) -> WeekCloneResult:
    """
    Copy the jobs of the previous week into the week starting ``week_start``.

    Every one-off job scheduled in [week_start - 7, week_end - 7] is copied
    seven days later as PLANNED, keeping its location, workers, duration and
    checklist. Recurring templates and their generated instances are skipped;
    the recurring generator owns those.

    Args:
        session: Database session (committed on return)
        week_start: First day of the target week
        week_end: Last day of the target week (default: week_start + 6)

    Returns:
        WeekCloneResult with the new jobs in schedule order
    """
    week_start, week_end = _week_range(week_start, week_end)
    source_start, source_end = week_start - WEEK, week_end - WEEK

    source = [
        job
        for job in JobRepository.get_scheduled_between(session, *_day_span(source_start, source_end))
        if job.parent_template_id is None
    ]

    result = WeekCloneResult(source_start=source_start, source_end=source_end)
    for job in source:
        clone = Job(
            title=job.title,
            description=job.description,
            location_id=job.location_id,
            assigned_worker_id=job.assigned_worker_id,
            estimated_duration_minutes=job.estimated_duration_minutes,
            scheduled_at=job.scheduled_at + WEEK,
            status=JobStatus.PLANNED.value,
            worker_assignments=[JobAssignment(worker_id=a.worker_id) for a in job.worker_assignments],
            checklist_items=[ChecklistItem(title=c.title, order=c.order) for c in job.checklist_items],
        )
        session.add(clone)
        result.jobs.append(clone)

    session.commit()
    logger.info(
        "Cloned %d job(s) from %s..%s into %s..%s",
        len(result.jobs), source_start, source_end, week_start, week_end,
    )
    return result


@dataclass(frozen=True)
class WeekConflict:
    """A job sharing a calendar day with another active job of the same worker."""

    job_id: int
    worker_id: int
    day: date
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"jobId": self.job_id, "workerId": self.worker_id, "date": self.day.isoformat(), "reason": self.reason}


def find_week_conflicts(
    session: Session,
    week_start: date,
    week_end: date | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> List[WeekConflict]:
    """
    Flag every active job whose worker has more than one active job that day.

    Both the primary assignee and additional workers are considered, so a job
    can appear once per worker it conflicts for. Results are ordered by
    worker, day, then scheduled start.
    """
    week_start, week_end = _week_range(week_start, week_end)
    jobs = JobRepository.get_scheduled_between(
        session, *_day_span(week_start, week_end), statuses=config.active_statuses
    )

    by_worker_day: Dict[Tuple[int, date], List[int]] = defaultdict(list)
    for job in jobs:
        worker_ids = [job.assigned_worker_id] if job.assigned_worker_id is not None else []
        worker_ids += [a.worker_id for a in job.worker_assignments if a.worker_id not in worker_ids]
        for worker_id in worker_ids:
            by_worker_day[(worker_id, job.scheduled_at.date())].append(job.job_id)

    conflicts = []
    for (worker_id, day), job_ids in sorted(by_worker_day.items()):
        if len(job_ids) < 2:
            continue
        reason = f"Multiple jobs assigned on {day.isoformat()}"
        conflicts.extend(WeekConflict(job_id, worker_id, day, reason) for job_id in job_ids)

    logger.info("Week %s..%s: %d conflicting job slot(s)", week_start, week_end, len(conflicts))
    return conflicts


@dataclass
class WorkerWeekLoad:
    worker_id: int
    name: str
    job_count: int
    hours: float
    on_leave: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workerId": self.worker_id,
            "name": self.name,
            "jobCount": self.job_count,
            "hours": self.hours,
            "onLeave": self.on_leave,
        }


@dataclass
class WeekSummary:
    week_start: date
    week_end: date
    workers: List[WorkerWeekLoad] = field(default_factory=list)
    jobs: List[Job] = field(default_factory=list)

    def stats(self) -> Dict[str, float]:
        """Average, max and min job counts and hours across workers (zeros when none)."""
        if not self.workers:
            return {key: 0 for key in ("average", "max", "min", "averageHours", "maxHours", "minHours")}
        df = pd.DataFrame([{"jobs": w.job_count, "hours": w.hours} for w in self.workers])
        return {
            "average": float(df["jobs"].mean()),
            "max": int(df["jobs"].max()),
            "min": int(df["jobs"].min()),
            "averageHours": round(float(df["hours"].mean()), 2),
            "maxHours": float(df["hours"].max()),
            "minHours": float(df["hours"].min()),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekStart": self.week_start.isoformat(),
            "weekEnd": self.week_end.isoformat(),
            "jobs": [job.to_dict() for job in self.jobs],
            "workers": [w.to_dict() for w in self.workers],
            "workloadStats": self.stats(),
        }


def summarize_week(
    session: Session,
    week_start: date,
    week_end: date | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> WeekSummary:
    """
    Build the rota view for a week: its jobs and each worker's load.

    A worker's load counts their active jobs in the week (primary or
    additional), with hours using the default-duration rule rounded to two
    decimals. ``on_leave`` is set when approved leave touches any day of the
    week.
    """
    week_start, week_end = _week_range(week_start, week_end)
    start, end = _day_span(week_start, week_end)

    summary = WeekSummary(
        week_start=week_start,
        week_end=week_end,
        jobs=JobRepository.get_scheduled_between(session, start, end),
    )
    for worker in WorkerRepository.get_all(session):
        jobs = JobRepository.get_for_worker_between(session, worker.worker_id, start, end, config.active_statuses)
        hours = sum(config.hours_or_default(job.estimated_duration_minutes) for job in jobs)
        leave = LeaveRepository.get_approved_overlapping(session, worker.worker_id, week_start, week_end)
        summary.workers.append(
            WorkerWeekLoad(
                worker_id=worker.worker_id,
                name=worker.full_name,
                job_count=len(jobs),
                hours=round(hours, 2),
                on_leave=bool(leave),
            )
        )
    return summary
