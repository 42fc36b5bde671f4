"""Detect a proposed job overlapping the worker's other active jobs."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Tuple

from sqlalchemy.orm import Session

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.repositories import JobRepository

from .warnings import ConflictWarning, OverlapDetails, WarningType

logger = logging.getLogger(__name__)


def job_interval(start: datetime, duration_minutes: int | None, config: SchedulingConfig) -> Tuple[datetime, datetime]:
    """Half-open [start, end) interval using the default-duration rule."""
    return start, start + timedelta(minutes=config.duration_or_default(duration_minutes))


def intervals_overlap(a: Tuple[datetime, datetime], b: Tuple[datetime, datetime]) -> bool:
    return a[0] < b[1] and a[1] > b[0]


def check_overlap(
    session: Session,
    worker_id: int,
    job_id: int | None,
    scheduled_at: datetime,
    duration_minutes: int | None = None,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> List[ConflictWarning]:
    """
    Report every active job of the worker that intersects the proposed interval.

    Candidates are pre-filtered to jobs starting within
    ``config.overlap_window_hours`` of the proposed interval, reaching further
    back when one of the worker's jobs runs longer than that window. The exact
    half-open intersection test is then applied to each.
    """
    proposed = job_interval(scheduled_at, duration_minutes, config)
    pad = timedelta(hours=config.overlap_window_hours)
    longest = JobRepository.get_longest_duration(
        session, worker_id, config.active_statuses, config.default_duration_minutes
    )
    lookback = max(pad, timedelta(minutes=longest))

    candidates = JobRepository.get_for_worker_between(
        session,
        worker_id,
        proposed[0] - lookback,
        proposed[1] + pad,
        config.active_statuses,
        exclude_job_id=job_id,
    )

    warnings: List[ConflictWarning] = []
    for other in candidates:
        other_interval = job_interval(other.scheduled_at, other.estimated_duration_minutes, config)
        if not intervals_overlap(proposed, other_interval):
            continue

        address = other.location.address if other.location is not None else None
        warnings.append(
            ConflictWarning(
                type=WarningType.OVERLAP,
                message=f'Overlaps with job "{other.title}" at {address or "unknown location"}',
                details=OverlapDetails(
                    overlapping_job_id=other.job_id,
                    overlapping_job_title=other.title,
                    location_address=address,
                    other_job_time=other.scheduled_at,
                    current_job_time=scheduled_at,
                ),
            )
        )

    logger.debug(
        "Overlap check worker=%s job=%s: %d candidate(s), %d overlap(s)",
        worker_id, job_id, len(candidates), len(warnings),
    )
    return warnings
