"""Assignment validator - runs every conflict check and merges the warnings."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Callable, List

from sqlalchemy.orm import Session, sessionmaker

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.repositories import JobRepository, LocationRepository, WorkerRepository
from rota.exceptions import NotFoundError

from .availability import check_availability
from .overlap import check_overlap
from .skills import check_skill_compatibility
from .warnings import AssignmentValidationResult, ConflictWarning
from .workload import check_max_hours

logger = logging.getLogger(__name__)

Check = Callable[[Session], List[ConflictWarning]]


class AssignmentValidator:
    """
    Validator coordinates the skill, availability, overlap and hours checks.

    The checks are read-only and independent, so they run on a thread pool,
    each with its own session. Their warnings are concatenated in a fixed
    order; the result always allows the assignment.
    """

    def __init__(self, session_factory: sessionmaker, config: SchedulingConfig = DEFAULT_CONFIG):
        """
        Initialize validator.

        Args:
            session_factory: Creates one session per check
            config: Defaults for durations, overlap padding and active statuses
        """
        self.session_factory = session_factory
        self.config = config

    def _ensure_exists(self, worker_id: int, location_id: int, job_id: int | None) -> None:
        with self.session_factory() as session:
            if WorkerRepository.get_by_id(session, worker_id) is None:
                raise NotFoundError("Worker", worker_id)
            if LocationRepository.get_by_id(session, location_id) is None:
                raise NotFoundError("Location", location_id)
            if job_id is not None and JobRepository.get_by_id(session, job_id) is None:
                raise NotFoundError("Job", job_id)

    def _run(self, check: Check) -> List[ConflictWarning]:
        with self.session_factory() as session:
            return check(session)

    def validate(
        self,
        worker_id: int,
        job_id: int | None,
        scheduled_at: datetime,
        location_id: int,
        duration_minutes: int | None = None,
        week_start: date | datetime | None = None,
        week_end: date | datetime | None = None,
    ) -> AssignmentValidationResult:
        """
        Validate a proposed assignment of a worker to a job.

        Args:
            worker_id: Worker being assigned
            job_id: Job being assigned (excluded from overlap/hours totals)
            scheduled_at: Proposed start
            location_id: Location of the job
            duration_minutes: Estimated duration; default applies when None
            week_start: Optional explicit week window start for the hours cap
            week_end: Optional explicit week window end for the hours cap

        Returns:
            AssignmentValidationResult with all warnings (never blocking)

        Raises:
            NotFoundError: If the worker, location or job does not exist
        """
        self._ensure_exists(worker_id, location_id, job_id)
        cfg = self.config

        checks: List[Check] = [
            lambda s: check_skill_compatibility(s, worker_id, location_id, cfg),
            lambda s: check_availability(s, worker_id, scheduled_at, cfg),
            lambda s: check_overlap(s, worker_id, job_id, scheduled_at, duration_minutes, cfg),
            lambda s: check_max_hours(
                s, worker_id, job_id, scheduled_at, duration_minutes, cfg, week_start, week_end
            ),
        ]

        with ThreadPoolExecutor(max_workers=min(cfg.max_workers, len(checks))) as pool:
            futures = [pool.submit(self._run, check) for check in checks]
            # Joining in submission order keeps the warning order stable
            results = [future.result() for future in futures]

        warnings = [warning for group in results for warning in group]
        logger.info(
            "Validated worker=%s job=%s at %s: %d warning(s)",
            worker_id, job_id, scheduled_at.isoformat(), len(warnings),
        )
        return AssignmentValidationResult(warnings=warnings)


def validate_assignment(
    session_factory: sessionmaker,
    worker_id: int,
    job_id: int | None,
    scheduled_at: datetime,
    location_id: int,
    duration_minutes: int | None = None,
    week_start: date | datetime | None = None,
    week_end: date | datetime | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> AssignmentValidationResult:
    """Convenience function to validate one assignment with a fresh validator."""
    validator = AssignmentValidator(session_factory, config)
    return validator.validate(
        worker_id,
        job_id,
        scheduled_at,
        location_id,
        duration_minutes=duration_minutes,
        week_start=week_start,
        week_end=week_end,
    )
