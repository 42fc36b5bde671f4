"""Repository classes for data access."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from .models import (
    AvailabilityWindow,
    ChecklistItem,
    Job,
    JobAssignment,
    LeaveRequest,
    LeaveStatus,
    Location,
    LocationSkillRequirement,
    Skill,
    Worker,
    worker_skills,
)


class SkillRepository:
    """Repository for skill data access."""

    @staticmethod
    def get_by_name(session: Session, name: str) -> Optional[Skill]:
        return session.query(Skill).filter(Skill.name == name).first()

    @staticmethod
    def get_or_create(session: Session, name: str) -> Skill:
        """Get a skill by name, adding it to the session if missing (no commit)."""
        skill = SkillRepository.get_by_name(session, name)
        if skill is None:
            skill = Skill(name=name)
            session.add(skill)
            session.flush()
        return skill


class WorkerRepository:
    """Repository for worker data access."""

    @staticmethod
    def get_all(session: Session) -> List[Worker]:
        return session.query(Worker).order_by(Worker.worker_id).all()

    @staticmethod
    def get_by_id(session: Session, worker_id: int) -> Optional[Worker]:
        """Get worker by ID."""
        return session.query(Worker).filter(Worker.worker_id == worker_id).first()

    @staticmethod
    def get_skill_ids(session: Session, worker_id: int) -> set[int]:
        """Get the IDs of every skill the worker holds."""
        rows = session.execute(
            select(worker_skills.c.skill_id).where(worker_skills.c.worker_id == worker_id)
        )
        return {row[0] for row in rows}


class AvailabilityRepository:
    """Repository for weekly availability windows."""

    @staticmethod
    def get_for_day(session: Session, worker_id: int, day_of_week: int) -> List[AvailabilityWindow]:
        """Get the worker's available windows for a day (0 = Sunday), earliest first."""
        return (
            session.query(AvailabilityWindow)
            .filter(
                AvailabilityWindow.worker_id == worker_id,
                AvailabilityWindow.day_of_week == day_of_week,
                AvailabilityWindow.is_available.is_(True),
            )
            .order_by(AvailabilityWindow.start_time, AvailabilityWindow.id)
            .all()
        )


class LeaveRepository:
    """Repository for leave requests."""

    @staticmethod
    def get_approved_covering(session: Session, worker_id: int, day: date) -> List[LeaveRequest]:
        """Get approved leave whose inclusive date range contains ``day``."""
        return (
            session.query(LeaveRequest)
            .filter(
                LeaveRequest.worker_id == worker_id,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date <= day,
                LeaveRequest.end_date >= day,
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .all()
        )

    @staticmethod
    def get_approved_overlapping(session: Session, worker_id: int, start: date, end: date) -> List[LeaveRequest]:
        """Get approved leave sharing at least one day with [start, end]."""
        return (
            session.query(LeaveRequest)
            .filter(
                LeaveRequest.worker_id == worker_id,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date <= end,
                LeaveRequest.end_date >= start,
            )
            .order_by(LeaveRequest.start_date, LeaveRequest.id)
            .all()
        )


class LocationRepository:
    """Repository for location data access."""

    @staticmethod
    def get_by_id(session: Session, location_id: int) -> Optional[Location]:
        return session.query(Location).filter(Location.location_id == location_id).first()

    @staticmethod
    def get_skill_requirements(session: Session, location_id: int) -> List[LocationSkillRequirement]:
        """Get the location's skill declarations in declaration order, skills loaded."""
        return (
            session.query(LocationSkillRequirement)
            .options(selectinload(LocationSkillRequirement.skill))
            .filter(LocationSkillRequirement.location_id == location_id)
            .order_by(LocationSkillRequirement.id)
            .all()
        )


class JobRepository:
    """Repository for job data access."""

    @staticmethod
    def _assigned_to(worker_id: int):
        # Primary assignee or any additional assignment row
        extra = select(JobAssignment.job_id).where(JobAssignment.worker_id == worker_id)
        return or_(Job.assigned_worker_id == worker_id, Job.job_id.in_(extra))

    @staticmethod
    def get_by_id(session: Session, job_id: int) -> Optional[Job]:
        """Get job by ID."""
        return session.query(Job).filter(Job.job_id == job_id).first()

    @staticmethod
    def get_for_worker_between(
        session: Session,
        worker_id: int,
        start: datetime,
        end: datetime,
        statuses: Iterable[str],
        exclude_job_id: int | None = None,
    ) -> List[Job]:
        """
        Get the worker's jobs whose scheduled start lies in [start, end].

        Args:
            session: Database session
            worker_id: Worker whose jobs to fetch
            start: Inclusive lower bound on scheduled_at
            end: Inclusive upper bound on scheduled_at
            statuses: Only jobs in these statuses are returned
            exclude_job_id: Job to leave out (the one being validated)

        Returns:
            Jobs ordered by scheduled start
        """
        query = (
            session.query(Job)
            .options(selectinload(Job.location))
            .filter(
                JobRepository._assigned_to(worker_id),
                Job.scheduled_at.is_not(None),
                Job.scheduled_at >= start,
                Job.scheduled_at <= end,
                Job.status.in_(list(statuses)),
            )
        )
        if exclude_job_id is not None:
            query = query.filter(Job.job_id != exclude_job_id)
        return query.order_by(Job.scheduled_at, Job.job_id).all()

    @staticmethod
    def get_longest_duration(
        session: Session, worker_id: int, statuses: Iterable[str], default_minutes: int
    ) -> int:
        """Longest duration in minutes among the worker's scheduled jobs (0 when none)."""
        # Missing or zero estimates count as the default duration
        duration = func.coalesce(func.nullif(Job.estimated_duration_minutes, 0), default_minutes)
        longest = (
            session.query(func.max(duration))
            .filter(
                JobRepository._assigned_to(worker_id),
                Job.scheduled_at.is_not(None),
                Job.status.in_(list(statuses)),
            )
            .scalar()
        )
        return int(longest or 0)

    @staticmethod
    def get_scheduled_between(
        session: Session, start: datetime, end: datetime, statuses: Iterable[str] | None = None
    ) -> List[Job]:
        """Get every job whose scheduled start lies in [start, end], templates excluded."""
        query = (
            session.query(Job)
            .options(
                selectinload(Job.location),
                selectinload(Job.worker_assignments),
                selectinload(Job.checklist_items),
            )
            .filter(
                Job.scheduled_at.is_not(None),
                Job.scheduled_at >= start,
                Job.scheduled_at <= end,
                Job.is_recurring.is_(False),
            )
        )
        if statuses is not None:
            query = query.filter(Job.status.in_(list(statuses)))
        return query.order_by(Job.scheduled_at, Job.job_id).all()

    @staticmethod
    def find_instance(session: Session, template_id: int, occurrence_date: date) -> Optional[Job]:
        """Get the instance generated from a template for a date, if any."""
        return (
            session.query(Job)
            .filter(Job.parent_template_id == template_id, Job.occurrence_date == occurrence_date)
            .first()
        )

    @staticmethod
    def get_instances(session: Session, template_id: int) -> List[Job]:
        """Get all instances generated from a template, in date order."""
        return (
            session.query(Job)
            .filter(Job.parent_template_id == template_id)
            .order_by(Job.occurrence_date)
            .all()
        )

    @staticmethod
    def get_worker_ids(session: Session, job_id: int) -> List[int]:
        """Get the additional (non-primary) worker IDs attached to a job."""
        rows = (
            session.query(JobAssignment.worker_id)
            .filter(JobAssignment.job_id == job_id)
            .order_by(JobAssignment.id)
            .all()
        )
        return [row[0] for row in rows]


class ChecklistRepository:
    """Repository for checklist items."""

    @staticmethod
    def get_for_job(session: Session, job_id: int) -> List[ChecklistItem]:
        return (
            session.query(ChecklistItem)
            .filter(ChecklistItem.job_id == job_id)
            .order_by(ChecklistItem.order, ChecklistItem.id)
            .all()
        )
