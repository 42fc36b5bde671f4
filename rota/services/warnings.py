"""Conflict warnings returned by the assignment checks.

Each warning kind has its own details dataclass, so consumers can match on
``warning.details`` exhaustively instead of poking at an open dict.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Union


class WarningType(str, Enum):
    SKILL_MISMATCH = "skill_mismatch"
    AVAILABILITY = "availability"
    OVERLAP = "overlap"
    MAX_HOURS = "max_hours"
    ON_LEAVE = "on_leave"


class Severity(str, Enum):
    WARNING = "warning"


DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def day_name(day_of_week: int) -> str:
    """Name for a 0 = Sunday day number."""
    if 0 <= day_of_week < len(DAY_NAMES):
        return DAY_NAMES[day_of_week]
    return "Unknown"


@dataclass(frozen=True)
class SkillMismatchDetails:
    missing_skills: List[str]
    skill_level: str  # "required" or "preferred"


@dataclass(frozen=True)
class DayUnavailableDetails:
    day_of_week: int
    scheduled_at: datetime


@dataclass(frozen=True)
class OutsideHoursDetails:
    scheduled_time: str  # HH:MM
    available_windows: List[str]  # "HH:MM-HH:MM"


@dataclass(frozen=True)
class LeaveRange:
    start_date: date
    end_date: date
    reason: str | None = None


@dataclass(frozen=True)
class OnLeaveDetails:
    leave_requests: List[LeaveRange]


@dataclass(frozen=True)
class OverlapDetails:
    overlapping_job_id: int
    overlapping_job_title: str
    location_address: str | None
    other_job_time: datetime
    current_job_time: datetime


@dataclass(frozen=True)
class MaxHoursDetails:
    current_hours: float
    new_job_hours: float
    total_hours: float
    max_hours: float


WarningDetails = Union[
    SkillMismatchDetails,
    DayUnavailableDetails,
    OutsideHoursDetails,
    OnLeaveDetails,
    OverlapDetails,
    MaxHoursDetails,
]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {_camel(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class ConflictWarning:
    """Non-blocking finding about a proposed assignment."""

    type: WarningType
    message: str
    details: WarningDetails
    severity: Severity = Severity.WARNING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "details": _jsonable(asdict(self.details)),
        }


@dataclass
class AssignmentValidationResult:
    """Outcome of validating an assignment; never blocks."""

    warnings: List[ConflictWarning] = field(default_factory=list)
    valid: bool = True
    can_assign: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "canAssign": self.can_assign,
            "warnings": [w.to_dict() for w in self.warnings],
        }
