"""Assigning workers to jobs and day-level conflict lookups."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.models import Job, JobStatus
from rota.domain.repositories import JobRepository, WorkerRepository
from rota.exceptions import InvalidInputError, NotFoundError

from .validator import AssignmentValidator
from .warnings import ConflictWarning
from .workload import week_bounds

logger = logging.getLogger(__name__)

# Statuses reported by the day-level conflict lookup
DAY_CONFLICT_STATUSES = (JobStatus.ASSIGNED.value, JobStatus.IN_PROGRESS.value, JobStatus.SUBMITTED.value)

Notifier = Callable[[int, int], None]


@dataclass
class AssignmentOutcome:
    job: Job
    warnings: List[ConflictWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"job": self.job.to_dict(), "warnings": [w.to_dict() for w in self.warnings]}


def assign_job(
    session_factory: sessionmaker,
    job_id: int,
    worker_id: int,
    config: SchedulingConfig = DEFAULT_CONFIG,
    notify: Optional[Notifier] = None,
) -> AssignmentOutcome:
    """
    Validate and then assign a worker to a job as its primary assignee.

    Warnings are returned alongside the updated job and never stop the
    assignment. ``notify(job_id, worker_id)`` is called after the commit when
    given; the core itself sends nothing.

    Raises:
        NotFoundError: If the job or worker does not exist
        InvalidInputError: If the job has no location to validate against
    """
    with session_factory() as session:
        job = JobRepository.get_by_id(session, job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        if WorkerRepository.get_by_id(session, worker_id) is None:
            raise NotFoundError("Worker", worker_id)
        if job.location_id is None:
            raise InvalidInputError(f"Job {job_id} has no location")
        scheduled_at = job.scheduled_at or datetime.now()
        location_id = job.location_id
        duration = job.estimated_duration_minutes

    week_start, week_end = week_bounds(scheduled_at.date())
    validation = AssignmentValidator(session_factory, config).validate(
        worker_id,
        job_id,
        scheduled_at,
        location_id,
        duration_minutes=duration,
        week_start=week_start,
        week_end=week_end,
    )

    with session_factory() as session:
        job = JobRepository.get_by_id(session, job_id)
        previous = job.assigned_worker_id
        job.assigned_worker_id = worker_id
        if job.status in (JobStatus.DRAFT.value, JobStatus.PLANNED.value):
            job.status = JobStatus.ASSIGNED.value
        session.commit()
        session.refresh(job)
        # to_dict reads these after the session closes
        session.refresh(job, attribute_names=["worker_assignments", "checklist_items"])

    logger.info(
        "Job %s assigned to worker %s (was %s) with %d warning(s)",
        job_id, worker_id, previous, len(validation.warnings),
    )
    if notify is not None:
        notify(job_id, worker_id)
    return AssignmentOutcome(job=job, warnings=validation.warnings)


def find_day_conflicts(session: Session, worker_id: int, day: date) -> List[Job]:
    """Jobs the worker is already committed to on a calendar day."""
    return JobRepository.get_for_worker_between(
        session,
        worker_id,
        datetime.combine(day, time.min),
        datetime.combine(day, time.max),
        DAY_CONFLICT_STATUSES,
    )
