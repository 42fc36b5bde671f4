"""Tests for recurring job instance generation."""

from datetime import date, datetime

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

import rota.services.recurring as recurring
from rota.domain.models import ChecklistItem, Job, RecurringPattern
from rota.domain.repositories import JobRepository
from rota.exceptions import InvalidInputError, NotFoundError
from rota.services.recurring import generate_recurring_instances, occurrence_dates

MONDAY = date(2025, 6, 2)


@pytest.fixture
def template(make_worker, make_location, make_job):
    make_worker(1)
    make_worker(2)
    make_location(10)
    return make_job(
        "Weekly office clean",
        worker_id=1,
        scheduled_at=datetime(2025, 6, 2, 8, 30),
        duration=90,
        status="PLANNED",
        location_id=10,
        extra_workers=[2],
        checklist=["Vacuum", "Bins", "Windows"],
        description="Ground floor only",
        is_recurring=True,
        recurring_pattern="weekly",
    )


def _instances(session, template_id):
    return JobRepository.get_instances(session, template_id)


def test_occurrence_dates_per_pattern():
    assert occurrence_dates(RecurringPattern.WEEKLY, MONDAY, 7) == [date(2025, 6, 9)]
    assert occurrence_dates(RecurringPattern.DAILY, MONDAY, 3) == [
        date(2025, 6, 3), date(2025, 6, 4), date(2025, 6, 5)
    ]
    assert occurrence_dates(RecurringPattern.BIWEEKLY, MONDAY, 13) == []
    assert occurrence_dates(RecurringPattern.BIWEEKLY, MONDAY, 28) == [date(2025, 6, 16), date(2025, 6, 30)]
    assert occurrence_dates(RecurringPattern.WEEKLY, MONDAY, 0) == []


def test_monthly_occurrences_clip_to_month_end():
    assert occurrence_dates(RecurringPattern.MONTHLY, date(2025, 1, 31), 90) == [
        date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)
    ]


def test_weekly_template_from_monday_creates_next_monday(db_session, template):
    result = generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)

    assert result.count == 1
    assert [job.occurrence_date for job in result.instances] == [date(2025, 6, 9)]


def test_instance_copies_template(db_session, template):
    result = generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)
    instance = result.instances[0]

    assert instance.parent_template_id == template.job_id
    assert instance.is_recurring is False
    assert instance.recurring_pattern is None
    assert instance.status == "DRAFT"
    assert instance.title == "Weekly office clean"
    assert instance.description == "Ground floor only"
    assert instance.location_id == 10
    assert instance.assigned_worker_id == 1
    assert instance.estimated_duration_minutes == 90
    assert instance.scheduled_at == datetime(2025, 6, 9, 8, 30)
    assert [a.worker_id for a in instance.worker_assignments] == [2]
    assert [(c.title, c.order) for c in instance.checklist_items] == [
        ("Vacuum", 0), ("Bins", 1), ("Windows", 2)
    ]


def test_generation_is_idempotent(db_session, template):
    first = generate_recurring_instances(db_session, template.job_id, days_ahead=21, today=MONDAY)
    second = generate_recurring_instances(db_session, template.job_id, days_ahead=21, today=MONDAY)

    assert first.count == 3
    assert second.count == 0
    assert len(first.instances) == len(second.instances) == 3
    assert [j.job_id for j in first.instances] == [j.job_id for j in second.instances]
    assert len(_instances(db_session, template.job_id)) == 3


def test_larger_horizon_only_adds_new_dates(db_session, template):
    generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)
    result = generate_recurring_instances(db_session, template.job_id, days_ahead=14, today=MONDAY)

    assert result.count == 1
    assert [j.occurrence_date for j in result.instances] == [date(2025, 6, 9), date(2025, 6, 16)]
    assert len(_instances(db_session, template.job_id)) == 2


def test_daily_template(db_session, template):
    template.recurring_pattern = "daily"
    db_session.commit()

    result = generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)

    assert result.count == 7
    assert result.instances[-1].occurrence_date == date(2025, 6, 9)


def test_default_horizon_from_config(db_session, template):
    result = generate_recurring_instances(db_session, template.job_id, today=MONDAY)

    assert result.count == 1


def test_later_template_edits_do_not_touch_instances(db_session, template):
    generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)

    template.title = "Renamed"
    template.checklist_items.append(ChecklistItem(title="Mop", order=3))
    db_session.commit()

    instance = _instances(db_session, template.job_id)[0]
    db_session.refresh(instance)
    assert instance.title == "Weekly office clean"
    assert len(instance.checklist_items) == 3


def test_missing_template_not_found(db_session):
    with pytest.raises(NotFoundError):
        generate_recurring_instances(db_session, 999, days_ahead=7, today=MONDAY)


def test_non_recurring_job_not_found(db_session, make_job):
    job = make_job("One-off", status="PLANNED")

    with pytest.raises(NotFoundError):
        generate_recurring_instances(db_session, job.job_id, days_ahead=7, today=MONDAY)


def test_instance_cannot_act_as_template(db_session, template):
    instance = generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY).instances[0]

    with pytest.raises(NotFoundError):
        generate_recurring_instances(db_session, instance.job_id, days_ahead=7, today=MONDAY)


@pytest.mark.parametrize("days_ahead", [-1, 1.5, "7", True])
def test_invalid_horizon_rejected(db_session, template, days_ahead):
    with pytest.raises(InvalidInputError):
        generate_recurring_instances(db_session, template.job_id, days_ahead=days_ahead, today=MONDAY)


def test_unknown_pattern_rejected(db_session, template):
    template.recurring_pattern = "fortnightly-ish"
    db_session.commit()

    with pytest.raises(InvalidInputError):
        generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)


def test_concurrent_insert_treated_as_existing(db_session, template, monkeypatch):
    """A lost check-then-insert race falls back to the row that won."""
    generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)

    real_find = JobRepository.find_instance
    calls = []

    def stale_find(session, template_id, occurrence_date):
        calls.append(occurrence_date)
        if len(calls) == 1:
            return None
        return real_find(session, template_id, occurrence_date)

    monkeypatch.setattr(JobRepository, "find_instance", staticmethod(stale_find))

    result = generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)

    assert result.count == 0
    assert result.failures == []
    assert [j.occurrence_date for j in result.instances] == [date(2025, 6, 9)]
    assert len(_instances(db_session, template.job_id)) == 1


def test_checklist_failure_rolls_back_only_that_date(db_session, template, monkeypatch):
    template.recurring_pattern = "daily"
    db_session.commit()

    real_copy = recurring._copy_checklist

    def flaky_copy(session, instance, checklist):
        if instance.occurrence_date == date(2025, 6, 4):
            raise OperationalError("INSERT INTO checklist_items", {}, Exception("disk I/O error"))
        real_copy(session, instance, checklist)

    monkeypatch.setattr(recurring, "_copy_checklist", flaky_copy)

    result = generate_recurring_instances(db_session, template.job_id, days_ahead=3, today=MONDAY)

    assert result.count == 2
    assert [j.occurrence_date for j in result.instances] == [date(2025, 6, 3), date(2025, 6, 5)]
    assert [f.occurrence_date for f in result.failures] == [date(2025, 6, 4)]
    assert "failures" in result.to_dict()

    stored = _instances(db_session, template.job_id)
    assert [j.occurrence_date for j in stored] == [date(2025, 6, 3), date(2025, 6, 5)]
    orphans = (
        db_session.query(ChecklistItem)
        .filter(ChecklistItem.job_id.not_in(select(Job.job_id)))
        .count()
    )
    assert orphans == 0

    # A later run fills the gap
    monkeypatch.setattr(recurring, "_copy_checklist", real_copy)
    retry = generate_recurring_instances(db_session, template.job_id, days_ahead=3, today=MONDAY)
    assert retry.count == 1
    assert len(retry.instances) == 3


def test_to_dict_counts_only_new(db_session, template):
    generate_recurring_instances(db_session, template.job_id, days_ahead=7, today=MONDAY)
    payload = generate_recurring_instances(db_session, template.job_id, days_ahead=14, today=MONDAY).to_dict()

    assert payload["count"] == 1
    assert [i["occurrenceDate"] for i in payload["instances"]] == ["2025-06-09", "2025-06-16"]
    assert payload["instances"][0]["parentTemplateId"] is not None
    assert "failures" not in payload


def test_unexpected_error_keeps_dates_already_created(db_session, session_factory, template, monkeypatch):
    template.recurring_pattern = "daily"
    db_session.commit()

    real_copy = recurring._copy_checklist

    def broken_copy(session, instance, checklist):
        if instance.occurrence_date == date(2025, 6, 4):
            raise RuntimeError("checklist source unavailable")
        real_copy(session, instance, checklist)

    monkeypatch.setattr(recurring, "_copy_checklist", broken_copy)

    with pytest.raises(RuntimeError):
        generate_recurring_instances(db_session, template.job_id, days_ahead=3, today=MONDAY)
    db_session.rollback()

    with session_factory() as other:
        stored = JobRepository.get_instances(other, template.job_id)
        assert [j.occurrence_date for j in stored] == [date(2025, 6, 3)]
        assert [c.title for c in stored[0].checklist_items] == ["Vacuum", "Bins", "Windows"]

    monkeypatch.setattr(recurring, "_copy_checklist", real_copy)
    retry = generate_recurring_instances(db_session, template.job_id, days_ahead=3, today=MONDAY)
    assert retry.count == 2
    assert len(retry.instances) == 3
