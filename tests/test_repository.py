"""Tests for the SQLModel job record repository."""

from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from conftest import MONDAY, job
from domain import JobStatus
from repository import JobRecordRepository, build_engine
from services import WorkHoursCalculator


class TestBuildEngine:
    def test_sqlite(self) -> None:
        engine = build_engine("sqlite://")
        assert engine.dialect.name == "sqlite"
        engine.dispose()


class TestAddAndList:
    def test_add_parses_strings(self, repo: JobRecordRepository) -> None:
        job_id = repo.add(job(day="2024-03-04", depart="07:00:00", end="16:00", user_id="tech-1", distance_out="12"))
        stored = repo.get(job_id)
        assert stored is not None
        assert stored.job_date == MONDAY
        assert stored.depart_time == time(7, 0)
        assert stored.end_time == time(16, 0)
        assert stored.arrival_time is None
        assert stored.distance_out == 12.0
        assert stored.status is JobStatus.SAVED
        assert stored.locked is False

    def test_add_requires_user(self, repo: JobRecordRepository) -> None:
        with pytest.raises(ValueError):
            repo.add(job())

    def test_add_rejects_bad_date(self, repo: JobRecordRepository) -> None:
        with pytest.raises(ValueError, match="unparseable"):
            repo.add(job(day="nope", user_id="tech-1"))

    def test_add_normalizes_distances(self, repo: JobRecordRepository) -> None:
        job_id = repo.add(job(user_id="tech-1", distance_out=-5, distance_return="n/a"))
        stored = repo.get(job_id)
        assert stored.distance_out == 0.0
        assert stored.distance_return == 0.0

    def test_get_missing(self, repo: JobRecordRepository) -> None:
        assert repo.get(999) is None

    def test_list_for_user_newest_first(self, repo: JobRecordRepository) -> None:
        repo.add(job(day=MONDAY, user_id="tech-1"))
        repo.add(job(day=MONDAY + timedelta(days=2), user_id="tech-1"))
        repo.add(job(day=MONDAY + timedelta(days=1), user_id="tech-2"))
        records = repo.list_for_user("tech-1")
        assert [r.job_date for r in records] == [MONDAY + timedelta(days=2), MONDAY]
        assert all(r.user_id == "tech-1" for r in records)

    def test_records_feed_the_calculator(self, repo: JobRecordRepository, calc: WorkHoursCalculator) -> None:
        repo.add(job(day=MONDAY, depart="07:00", end="17:00", user_id="tech-1"))
        repo.add(job(day=MONDAY + timedelta(days=1), depart="07:00", end="16:00", user_id="tech-1"))
        weeks = calc.weekly_summary_from_records(repo.list_for_user("tech-1"))
        assert len(weeks) == 1
        assert (weeks[0].overtime15_hours, weeks[0].overtime20_hours) == (1.0, 2.0)


class TestStatusWorkflow:
    def test_submit_then_approve(self, repo: JobRecordRepository) -> None:
        a = repo.add(job(user_id="tech-1"))
        b = repo.add(job(user_id="tech-1"))
        assert repo.submit([a, b]) == 2
        assert repo.get(a).status is JobStatus.SUBMITTED
        assert repo.get(a).locked is True
        assert repo.approve([a]) == 1
        assert repo.get(a).status is JobStatus.APPROVED
        assert [r.id for r in repo.list_by_status(JobStatus.SUBMITTED)] == [b]

    def test_approve_requires_submitted(self, repo: JobRecordRepository) -> None:
        a = repo.add(job(user_id="tech-1"))
        assert repo.approve([a]) == 0
        assert repo.get(a).status is JobStatus.SAVED

    def test_locked_saved_record_is_not_submitted(self, repo: JobRecordRepository) -> None:
        a = repo.add(job(user_id="tech-1", locked=True))
        assert repo.submit([a]) == 0

    def test_unknown_ids_are_skipped(self, repo: JobRecordRepository) -> None:
        a = repo.add(job(user_id="tech-1"))
        assert repo.submit([a, 12345]) == 1
        assert repo.submit([a]) == 0

    def test_list_by_status_accepts_plain_strings(self, repo: JobRecordRepository) -> None:
        repo.add(job(day=date(2024, 3, 5), user_id="tech-1"))
        assert len(repo.list_by_status("saved")) == 1
