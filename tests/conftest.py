"""Shared pytest fixtures for fieldhours tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from domain import JobRecord, OvertimePolicy
from repository import JobRecordRepository
from services import WorkHoursCalculator

# 2024-03-04 is a Monday (ISO week 10).
MONDAY = date(2024, 3, 4)


def job(day: object = MONDAY, depart: object = "07:00", end: object = "16:00", **kw: object) -> JobRecord:
    """Build a JobRecord with sensible defaults."""
    return JobRecord(job_date=day, depart_time=depart, end_time=end, **kw)


@pytest.fixture
def calc() -> WorkHoursCalculator:
    return WorkHoursCalculator()


@pytest.fixture
def quarter_calc() -> WorkHoursCalculator:
    return WorkHoursCalculator(OvertimePolicy(rounding_minutes=15))


@pytest.fixture
def repo(tmp_path: Path) -> JobRecordRepository:
    r = JobRecordRepository(f"sqlite:///{(tmp_path / 'jobs.db').as_posix()}")
    try:
        yield r
    finally:
        r.engine.dispose()
