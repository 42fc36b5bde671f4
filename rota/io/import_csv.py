"""CSV import utilities to load rota data into the database."""

from __future__ import annotations

import logging
from datetime import time
from pathlib import Path
from typing import List

import pandas as pd
from sqlalchemy.orm import Session

from rota.domain.models import (
    AvailabilityWindow,
    ChecklistItem,
    Job,
    JobStatus,
    LeaveRequest,
    LeaveStatus,
    Location,
    LocationSkillRequirement,
    Worker,
)
from rota.domain.repositories import SkillRepository
from rota.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def _read(csv_path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    return df


def _split(value: str) -> List[str]:
    """Split a semicolon-separated cell, dropping blanks."""
    return [part.strip() for part in str(value).split(";") if part.strip()]


def _opt(row: pd.Series, column: str) -> str | None:
    value = str(row.get(column, "")).strip()
    return value or None


def _parse_time(value: str) -> time:
    try:
        return pd.Timestamp(f"2000-01-01 {value.strip()}").time()
    except ValueError as e:
        raise InvalidInputError(f"Invalid time of day: {value!r}") from e


def import_workers_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import workers from CSV into database.

    Expected columns: worker_id, first_name, last_name, max_weekly_hours,
    skills (semicolon-separated skill names). Unknown skills are created.

    Returns:
        Number of workers imported
    """
    df = _read(csv_path)

    workers = []
    for _, row in df.iterrows():
        max_hours = _opt(row, "max_weekly_hours")
        worker = Worker(
            worker_id=int(row["worker_id"]),
            first_name=str(row["first_name"]),
            last_name=str(row.get("last_name", "")),
            max_weekly_hours=float(max_hours) if max_hours else None,
        )
        worker.skills = [SkillRepository.get_or_create(session, name) for name in _split(row.get("skills", ""))]
        workers.append(worker)

    session.add_all(workers)
    session.commit()

    logger.info("Imported %d workers from %s", len(workers), csv_path)
    return len(workers)


def import_availability_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import weekly availability windows.

    Expected columns: worker_id, day_of_week (0 = Sunday), start_time,
    end_time (HH:MM), optional is_available (true/false).
    """
    df = _read(csv_path)

    windows = []
    for _, row in df.iterrows():
        day = int(row["day_of_week"])
        if not 0 <= day <= 6:
            raise InvalidInputError(f"day_of_week must be 0-6, got {day}")
        flag = _opt(row, "is_available")
        windows.append(
            AvailabilityWindow(
                worker_id=int(row["worker_id"]),
                day_of_week=day,
                start_time=_parse_time(row["start_time"]),
                end_time=_parse_time(row["end_time"]),
                is_available=flag is None or flag.lower() in ("1", "true", "yes"),
            )
        )

    session.add_all(windows)
    session.commit()

    logger.info("Imported %d availability windows from %s", len(windows), csv_path)
    return len(windows)


def import_leave_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import leave requests.

    Expected columns: worker_id, start_date, end_date, status, optional reason.
    """
    df = _read(csv_path)
    df["start_date"] = pd.to_datetime(df["start_date"]).dt.date
    df["end_date"] = pd.to_datetime(df["end_date"]).dt.date

    requests = []
    for _, row in df.iterrows():
        status = (_opt(row, "status") or LeaveStatus.PENDING.value).lower()
        if status not in {s.value for s in LeaveStatus}:
            raise InvalidInputError(f"Unknown leave status: {status!r}")
        requests.append(
            LeaveRequest(
                worker_id=int(row["worker_id"]),
                start_date=row["start_date"],
                end_date=row["end_date"],
                status=status,
                reason=_opt(row, "reason"),
            )
        )

    session.add_all(requests)
    session.commit()

    logger.info("Imported %d leave requests from %s", len(requests), csv_path)
    return len(requests)


def import_locations_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import locations with their skill declarations.

    Expected columns: location_id, address, required_skills and
    preferred_skills (semicolon-separated skill names).
    """
    df = _read(csv_path)

    locations = []
    for _, row in df.iterrows():
        location = Location(location_id=int(row["location_id"]), address=str(row["address"]))
        for column, is_required in (("required_skills", True), ("preferred_skills", False)):
            for name in _split(row.get(column, "")):
                location.skill_requirements.append(
                    LocationSkillRequirement(
                        skill=SkillRepository.get_or_create(session, name),
                        is_required=is_required,
                    )
                )
        locations.append(location)

    session.add_all(locations)
    session.commit()

    logger.info("Imported %d locations from %s", len(locations), csv_path)
    return len(locations)


def import_jobs_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import jobs (including recurring templates).

    Expected columns: job_id, title, location_id; optional description,
    assigned_worker_id, scheduled_at, estimated_duration_minutes, status,
    recurring_pattern (marks the job as a template) and checklist
    (semicolon-separated item titles, kept in order).
    """
    df = _read(csv_path)

    jobs = []
    for _, row in df.iterrows():
        status = (_opt(row, "status") or JobStatus.DRAFT.value).upper()
        if status not in {s.value for s in JobStatus}:
            raise InvalidInputError(f"Unknown job status: {status!r}")
        worker = _opt(row, "assigned_worker_id")
        scheduled = _opt(row, "scheduled_at")
        duration = _opt(row, "estimated_duration_minutes")
        pattern = _opt(row, "recurring_pattern")

        job = Job(
            job_id=int(row["job_id"]),
            title=str(row["title"]),
            description=_opt(row, "description"),
            location_id=int(row["location_id"]),
            assigned_worker_id=int(worker) if worker else None,
            scheduled_at=pd.Timestamp(scheduled).to_pydatetime() if scheduled else None,
            estimated_duration_minutes=int(duration) if duration else None,
            status=status,
            is_recurring=pattern is not None,
            recurring_pattern=pattern.lower() if pattern else None,
        )
        job.checklist_items = [
            ChecklistItem(title=title, order=i) for i, title in enumerate(_split(row.get("checklist", "")))
        ]
        jobs.append(job)

    session.add_all(jobs)
    session.commit()

    logger.info("Imported %d jobs from %s", len(jobs), csv_path)
    return len(jobs)
