"""Domain models and data access layer."""

from .models import (
    AvailabilityWindow,
    Base,
    ChecklistItem,
    Job,
    JobAssignment,
    JobStatus,
    LeaveRequest,
    LeaveStatus,
    Location,
    LocationSkillRequirement,
    RecurringPattern,
    Skill,
    Worker,
)
from .repositories import (
    AvailabilityRepository,
    ChecklistRepository,
    JobRepository,
    LeaveRepository,
    LocationRepository,
    SkillRepository,
    WorkerRepository,
)

__all__ = [
    "AvailabilityWindow",
    "Base",
    "ChecklistItem",
    "Job",
    "JobAssignment",
    "JobStatus",
    "LeaveRequest",
    "LeaveStatus",
    "Location",
    "LocationSkillRequirement",
    "RecurringPattern",
    "Skill",
    "Worker",
    "AvailabilityRepository",
    "ChecklistRepository",
    "JobRepository",
    "LeaveRepository",
    "LocationRepository",
    "SkillRepository",
    "WorkerRepository",
]
