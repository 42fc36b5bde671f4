"""Recurring job instance generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Tuple

import pandas as pd
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.models import ChecklistItem, Job, JobAssignment, JobStatus, RecurringPattern
from rota.domain.repositories import ChecklistRepository, JobRepository
from rota.exceptions import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

PATTERN_STEP_DAYS = {
    RecurringPattern.DAILY: 1,
    RecurringPattern.WEEKLY: 7,
    RecurringPattern.BIWEEKLY: 14,
}


@dataclass
class InstanceFailure:
    """A date whose instance could not be created."""

    occurrence_date: date
    error: str


@dataclass
class GenerationResult:
    """Instances for the horizon, both pre-existing and newly created."""

    instances: List[Job] = field(default_factory=list)
    created: int = 0
    failures: List[InstanceFailure] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of newly created instances."""
        return self.created

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "instances": [job.to_dict() for job in self.instances],
            "count": self.created,
        }
        if self.failures:
            payload["failures"] = [
                {"occurrenceDate": f.occurrence_date.isoformat(), "error": f.error} for f in self.failures
            ]
        return payload


def parse_pattern(value: str | None) -> RecurringPattern:
    try:
        return RecurringPattern(str(value).lower())
    except ValueError:
        raise InvalidInputError(f"Unknown recurring pattern: {value!r}") from None


def _nth_occurrence(pattern: RecurringPattern, start: date, n: int) -> date:
    if pattern == RecurringPattern.MONTHLY:
        # Offsets are taken from the start each time so a 31st clips to
        # month end without drifting on later months
        return (pd.Timestamp(start) + pd.DateOffset(months=n)).date()
    return start + timedelta(days=PATTERN_STEP_DAYS[pattern] * n)


def occurrence_dates(pattern: RecurringPattern, start: date, days_ahead: int) -> List[date]:
    """
    Dates after ``start`` reachable by the pattern within the horizon.

    The horizon boundary (``start + days_ahead``) is inclusive.
    """
    horizon = start + timedelta(days=days_ahead)
    dates: List[date] = []
    n = 1
    while True:
        candidate = _nth_occurrence(pattern, start, n)
        if candidate > horizon:
            break
        dates.append(candidate)
        n += 1
    return dates


def _copy_checklist(session: Session, instance: Job, checklist: List[Tuple[str, int]]) -> None:
    for title, order in checklist:
        session.add(ChecklistItem(job_id=instance.job_id, title=title, order=order))
    session.flush()


def _create_instance(
    session: Session,
    template: Job,
    occurrence: date,
    worker_ids: List[int],
    checklist: List[Tuple[str, int]],
) -> Job:
    """Insert one instance with its assignments and checklist inside a savepoint."""
    start_of_day = template.scheduled_at.time() if template.scheduled_at else time.min
    with session.begin_nested():
        instance = Job(
            title=template.title,
            description=template.description,
            location_id=template.location_id,
            assigned_worker_id=template.assigned_worker_id,
            estimated_duration_minutes=template.estimated_duration_minutes,
            scheduled_at=datetime.combine(occurrence, start_of_day),
            occurrence_date=occurrence,
            status=JobStatus.DRAFT.value,
            is_recurring=False,
            recurring_pattern=None,
            parent_template_id=template.job_id,
            worker_assignments=[JobAssignment(worker_id=worker_id) for worker_id in worker_ids],
        )
        session.add(instance)
        session.flush()
        _copy_checklist(session, instance, checklist)
    return instance


def generate_recurring_instances(
    session: Session,
    template_id: int,
    days_ahead: int | None = None,
    today: date | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> GenerationResult:
    """
    Make sure an instance exists for every occurrence of a template in the horizon.

    Args:
        session: Database session (committed after each created date and on return)
        template_id: Recurring template job ID
        days_ahead: Horizon in days; ``config.default_days_ahead`` when None
        today: Generation start date (defaults to the current date)
        config: SchedulingConfig

    Returns:
        GenerationResult listing existing and new instances in date order

    Raises:
        NotFoundError: If the template does not exist or is not recurring
        InvalidInputError: If the horizon or the template's pattern is invalid
    """
    if days_ahead is None:
        days_ahead = config.default_days_ahead
    if isinstance(days_ahead, bool) or not isinstance(days_ahead, int) or days_ahead < 0:
        raise InvalidInputError(f"days_ahead must be a non-negative integer, got {days_ahead!r}")

    template = JobRepository.get_by_id(session, template_id)
    if template is None or not template.is_recurring:
        raise NotFoundError("Recurring template", template_id)
    if template.parent_template_id is not None:
        raise InvalidInputError(f"Job {template_id} is a generated instance, not a template")

    pattern = parse_pattern(template.recurring_pattern)
    start = today or date.today()
    dates = occurrence_dates(pattern, start, days_ahead)

    # Snapshot what gets copied so every date receives the same values
    worker_ids = JobRepository.get_worker_ids(session, template.job_id)
    checklist = [(item.title, item.order) for item in ChecklistRepository.get_for_job(session, template.job_id)]

    result = GenerationResult()
    for occurrence in dates:
        existing = JobRepository.find_instance(session, template.job_id, occurrence)
        if existing is not None:
            result.instances.append(existing)
            continue

        try:
            instance = _create_instance(session, template, occurrence, worker_ids, checklist)
        except IntegrityError as e:
            # Another generator inserted this date first
            existing = JobRepository.find_instance(session, template.job_id, occurrence)
            if existing is None:
                logger.warning("Could not create instance of job %s for %s: %s", template_id, occurrence, e)
                result.failures.append(InstanceFailure(occurrence, str(e.orig)))
                continue
            logger.info("Instance of job %s for %s already exists, reusing it", template_id, occurrence)
            result.instances.append(existing)
            continue
        except SQLAlchemyError as e:
            logger.warning("Could not create instance of job %s for %s: %s", template_id, occurrence, e)
            result.failures.append(InstanceFailure(occurrence, str(e)))
            continue

        # Each created date is kept even if a later date raises
        session.commit()
        result.instances.append(instance)
        result.created += 1

    session.commit()
    logger.info(
        "Recurring job %s (%s, %d days): %d instance(s), %d created, %d failed",
        template_id, pattern.value, days_ahead, len(result.instances), result.created, len(result.failures),
    )
    return result
