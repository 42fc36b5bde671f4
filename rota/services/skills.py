"""Skill compatibility between a worker and a location."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from rota.config import DEFAULT_CONFIG, SchedulingConfig
from rota.domain.repositories import LocationRepository, WorkerRepository

from .warnings import ConflictWarning, SkillMismatchDetails, WarningType

logger = logging.getLogger(__name__)


def check_skill_compatibility(
    session: Session,
    worker_id: int,
    location_id: int,
    config: SchedulingConfig = DEFAULT_CONFIG,
) -> List[ConflictWarning]:
    """
    Compare a worker's skills with the skills a location declares.

    Locations without declared requirements never produce warnings. At most
    two warnings come back: one for missing required skills, one for missing
    preferred skills.
    """
    requirements = LocationRepository.get_skill_requirements(session, location_id)
    if not requirements:
        return []

    held = WorkerRepository.get_skill_ids(session, worker_id)
    missing_required = [r.skill.name for r in requirements if r.is_required and r.skill_id not in held]
    missing_preferred = [r.skill.name for r in requirements if not r.is_required and r.skill_id not in held]

    warnings: List[ConflictWarning] = []
    for level, missing in (("required", missing_required), ("preferred", missing_preferred)):
        if not missing:
            continue
        warnings.append(
            ConflictWarning(
                type=WarningType.SKILL_MISMATCH,
                message=f"Worker missing {level} skills: {', '.join(missing)}",
                details=SkillMismatchDetails(missing_skills=missing, skill_level=level),
            )
        )

    logger.debug("Skill check worker=%s location=%s: %d warning(s)", worker_id, location_id, len(warnings))
    return warnings
