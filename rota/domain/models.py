"""SQLAlchemy models for the rota scheduling system."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class JobStatus(str, Enum):
    """Job workflow states, in workflow order."""

    DRAFT = "DRAFT"
    PLANNED = "PLANNED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"


class RecurringPattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


worker_skills = Table(
    "worker_skills",
    Base.metadata,
    Column("worker_id", Integer, ForeignKey("workers.worker_id"), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.skill_id"), primary_key=True),
)


class Skill(Base):
    """A named skill a worker can hold and a location can ask for."""

    __tablename__ = "skills"

    skill_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Skill(id={self.skill_id}, name='{self.name}')>"


class Worker(Base):
    """Worker with skills, weekly availability and an optional hours cap."""

    __tablename__ = "workers"

    worker_id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    max_weekly_hours = Column(Float, nullable=True)  # None = no cap

    # Relationships
    skills = relationship("Skill", secondary=worker_skills, order_by="Skill.skill_id")
    availability = relationship(
        "AvailabilityWindow",
        back_populates="worker",
        order_by=lambda: [AvailabilityWindow.day_of_week, AvailabilityWindow.start_time],
        cascade="all, delete-orphan",
    )
    leave_requests = relationship("LeaveRequest", back_populates="worker", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Worker(id={self.worker_id}, name='{self.full_name}', max_hours={self.max_weekly_hours})>"


class AvailabilityWindow(Base):
    """Weekly time-of-day window; day_of_week 0 = Sunday ... 6 = Saturday."""

    __tablename__ = "availability_windows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    worker_id = Column(Integer, ForeignKey("workers.worker_id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    worker = relationship("Worker", back_populates="availability")

    @property
    def label(self) -> str:
        return f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"

    def __repr__(self) -> str:
        return f"<AvailabilityWindow(worker={self.worker_id}, day={self.day_of_week}, {self.label})>"


class LeaveRequest(Base):
    """Leave request over an inclusive date range."""

    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    worker_id = Column(Integer, ForeignKey("workers.worker_id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=LeaveStatus.PENDING.value)
    reason = Column(Text, nullable=True)

    worker = relationship("Worker", back_populates="leave_requests")

    def __repr__(self) -> str:
        return f"<LeaveRequest(worker={self.worker_id}, {self.start_date}..{self.end_date}, status={self.status})>"


class Location(Base):
    """Physical site where jobs take place."""

    __tablename__ = "locations"

    location_id = Column(Integer, primary_key=True)
    address = Column(String(255), nullable=False)

    skill_requirements = relationship(
        "LocationSkillRequirement",
        back_populates="location",
        order_by="LocationSkillRequirement.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Location(id={self.location_id}, address='{self.address}')>"


class LocationSkillRequirement(Base):
    """Skill declared by a location, either required or preferred."""

    __tablename__ = "location_skill_requirements"
    __table_args__ = (UniqueConstraint("location_id", "skill_id", name="uq_location_skill"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(Integer, ForeignKey("locations.location_id"), nullable=False)
    skill_id = Column(Integer, ForeignKey("skills.skill_id"), nullable=False)
    is_required = Column(Boolean, nullable=False, default=True)

    location = relationship("Location", back_populates="skill_requirements")
    skill = relationship("Skill")

    def __repr__(self) -> str:
        kind = "required" if self.is_required else "preferred"
        return f"<LocationSkillRequirement(location={self.location_id}, skill={self.skill_id}, {kind})>"


class Job(Base):
    """
    A unit of work at a location.

    Templates carry is_recurring=True and no parent; generated instances carry
    parent_template_id and occurrence_date, unique per template.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        UniqueConstraint("parent_template_id", "occurrence_date", name="uq_job_template_occurrence"),
    )

    job_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location_id = Column(Integer, ForeignKey("locations.location_id"), nullable=True)
    assigned_worker_id = Column(Integer, ForeignKey("workers.worker_id"), nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    estimated_duration_minutes = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=JobStatus.DRAFT.value)

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_pattern = Column(String(20), nullable=True)
    parent_template_id = Column(Integer, ForeignKey("jobs.job_id"), nullable=True)
    occurrence_date = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    location = relationship("Location")
    assigned_worker = relationship("Worker")
    worker_assignments = relationship(
        "JobAssignment",
        back_populates="job",
        order_by="JobAssignment.id",
        cascade="all, delete-orphan",
    )
    checklist_items = relationship(
        "ChecklistItem",
        back_populates="job",
        order_by=lambda: [ChecklistItem.order, ChecklistItem.id],
        cascade="all, delete-orphan",
    )

    @property
    def is_template(self) -> bool:
        return bool(self.is_recurring) and self.parent_template_id is None

    def to_dict(self) -> dict:
        """Plain payload for API and CLI output."""
        return {
            "id": self.job_id,
            "title": self.title,
            "description": self.description,
            "locationId": self.location_id,
            "assignedWorkerId": self.assigned_worker_id,
            "workerIds": [a.worker_id for a in self.worker_assignments],
            "scheduledAt": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "occurrenceDate": self.occurrence_date.isoformat() if self.occurrence_date else None,
            "estimatedDurationMinutes": self.estimated_duration_minutes,
            "status": self.status,
            "isRecurring": bool(self.is_recurring),
            "recurringPattern": self.recurring_pattern,
            "parentTemplateId": self.parent_template_id,
            "checklist": [{"title": c.title, "order": c.order} for c in self.checklist_items],
        }

    def __repr__(self) -> str:
        return f"<Job(id={self.job_id}, title='{self.title}', at={self.scheduled_at}, status={self.status})>"


class JobAssignment(Base):
    """Additional worker attached to a job besides the primary assignee."""

    __tablename__ = "job_assignments"
    __table_args__ = (UniqueConstraint("job_id", "worker_id", name="uq_job_worker"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.job_id"), nullable=False)
    worker_id = Column(Integer, ForeignKey("workers.worker_id"), nullable=False)

    job = relationship("Job", back_populates="worker_assignments")

    def __repr__(self) -> str:
        return f"<JobAssignment(job={self.job_id}, worker={self.worker_id})>"


class ChecklistItem(Base):
    """Ordered checklist entry on a job."""

    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.job_id"), nullable=False)
    title = Column(String(255), nullable=False)
    order = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)

    job = relationship("Job", back_populates="checklist_items")

    def __repr__(self) -> str:
        return f"<ChecklistItem(job={self.job_id}, order={self.order}, title='{self.title}')>"
