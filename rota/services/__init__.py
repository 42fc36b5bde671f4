"""Services for conflict checking and recurring job generation."""

from .assignment import assign_job, find_day_conflicts
from .availability import check_availability
from .overlap import check_overlap
from .recurring import generate_recurring_instances
from .skills import check_skill_compatibility
from .validator import AssignmentValidator, validate_assignment
from .week import clone_week, find_week_conflicts, summarize_week
from .warnings import AssignmentValidationResult, ConflictWarning, Severity, WarningType
from .workload import check_max_hours, get_worker_workload

__all__ = [
    "assign_job",
    "find_day_conflicts",
    "check_availability",
    "check_overlap",
    "generate_recurring_instances",
    "check_skill_compatibility",
    "AssignmentValidator",
    "validate_assignment",
    "clone_week",
    "find_week_conflicts",
    "summarize_week",
    "AssignmentValidationResult",
    "ConflictWarning",
    "Severity",
    "WarningType",
    "check_max_hours",
    "get_worker_workload",
]
