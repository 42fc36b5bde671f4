"""Pytest configuration and shared fixtures."""

from datetime import time

import pytest

from rota.domain.db import create_db_engine, get_session_factory
from rota.domain.models import (
    AvailabilityWindow,
    Base,
    ChecklistItem,
    Job,
    JobAssignment,
    Location,
    LocationSkillRequirement,
    Worker,
)
from rota.domain.repositories import SkillRepository


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so concurrent checks get their own connections."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'rota.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_worker(db_session):
    """Create a worker; windows are (day_of_week, "HH:MM", "HH:MM") tuples."""

    def _make(worker_id, skills=(), max_weekly_hours=None, windows=()):
        worker = Worker(
            worker_id=worker_id,
            first_name=f"Worker{worker_id}",
            last_name="Test",
            max_weekly_hours=max_weekly_hours,
        )
        worker.skills = [SkillRepository.get_or_create(db_session, name) for name in skills]
        for day, start, end in windows:
            worker.availability.append(
                AvailabilityWindow(
                    day_of_week=day,
                    start_time=time.fromisoformat(start),
                    end_time=time.fromisoformat(end),
                )
            )
        db_session.add(worker)
        db_session.commit()
        return worker

    return _make


@pytest.fixture
def make_location(db_session):
    def _make(location_id, address="1 High Street", required=(), preferred=()):
        location = Location(location_id=location_id, address=address)
        for names, is_required in ((required, True), (preferred, False)):
            for name in names:
                location.skill_requirements.append(
                    LocationSkillRequirement(
                        skill=SkillRepository.get_or_create(db_session, name),
                        is_required=is_required,
                    )
                )
        db_session.add(location)
        db_session.commit()
        return location

    return _make


@pytest.fixture
def make_job(db_session):
    def _make(
        title,
        worker_id=None,
        scheduled_at=None,
        duration=None,
        status="ASSIGNED",
        location_id=None,
        extra_workers=(),
        checklist=(),
        **kwargs,
    ):
        job = Job(
            title=title,
            assigned_worker_id=worker_id,
            scheduled_at=scheduled_at,
            estimated_duration_minutes=duration,
            status=status,
            location_id=location_id,
            **kwargs,
        )
        job.worker_assignments = [JobAssignment(worker_id=w) for w in extra_workers]
        job.checklist_items = [ChecklistItem(title=t, order=i) for i, t in enumerate(checklist)]
        db_session.add(job)
        db_session.commit()
        return job

    return _make
