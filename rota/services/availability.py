"""Weekly availability and approved leave checks."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.repositories import AvailabilityRepository, LeaveRepository

from .warnings import (
    ConflictWarning,
    DayUnavailableDetails,
    LeaveRange,
    OnLeaveDetails,
    OutsideHoursDetails,
    WarningType,
    day_name,
)

logger = logging.getLogger(__name__)


def sunday_based_weekday(moment: datetime) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def check_availability(
    session: Session,
    worker_id: int,
    scheduled_at: datetime,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> List[ConflictWarning]:
    """
    Check a proposed start against the worker's weekly windows and leave.

    No window on the day gives a single "unavailable" warning and skips the
    time-of-day test. Approved leave covering the date is reported
    independently, so both kinds may come back together.
    """
    warnings: List[ConflictWarning] = []
    dow = sunday_based_weekday(scheduled_at)
    windows = AvailabilityRepository.get_for_day(session, worker_id, dow)

    if not windows:
        warnings.append(
            ConflictWarning(
                type=WarningType.AVAILABILITY,
                message=f"Worker is not available on {day_name(dow)}",
                details=DayUnavailableDetails(day_of_week=dow, scheduled_at=scheduled_at),
            )
        )
    else:
        # Windows are compared at minute precision, both ends inclusive
        at = scheduled_at.time().replace(second=0, microsecond=0)
        if not any(w.start_time <= at <= w.end_time for w in windows):
            attempted = at.strftime("%H:%M")
            warnings.append(
                ConflictWarning(
                    type=WarningType.AVAILABILITY,
                    message=(
                        f"Scheduled time {attempted} falls outside worker's available hours "
                        f"on {day_name(dow)}"
                    ),
                    details=OutsideHoursDetails(
                        scheduled_time=attempted,
                        available_windows=[w.label for w in windows],
                    ),
                )
            )

    leave = LeaveRepository.get_approved_covering(session, worker_id, scheduled_at.date())
    if leave:
        warnings.append(
            ConflictWarning(
                type=WarningType.ON_LEAVE,
                message="Worker has approved leave for this date",
                details=OnLeaveDetails(
                    leave_requests=[
                        LeaveRange(start_date=lr.start_date, end_date=lr.end_date, reason=lr.reason)
                        for lr in leave
                    ]
                ),
            )
        )

    return warnings
