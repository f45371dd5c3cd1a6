# repository.py
from __future__ import annotations

from typing import Iterable, List
from datetime import date, datetime, time, timezone

import structlog
from sqlalchemy.pool import NullPool
from sqlalchemy import text
from sqlmodel import SQLModel, Field, Session, create_engine, select

from domain import JobRecord, JobStatus, normalize_distance
from timeparse import parse_job_date, parse_time_of_day

log = structlog.get_logger("fieldhours.repository")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JobRecordDB(SQLModel, table=True):
    __tablename__ = "jobs"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    job_date: date = Field(index=True)
    work_order: str | None = None
    depart_time: time | None = None
    arrival_time: time | None = None
    end_time: time | None = None
    distance_out: float = 0.0
    distance_return: float = 0.0
    status: str = Field(default=JobStatus.SAVED.value, index=True)
    locked: bool = False
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_record(self) -> JobRecord:
        return JobRecord(
            id=self.id,
            user_id=self.user_id,
            job_date=self.job_date,
            work_order=self.work_order,
            depart_time=self.depart_time,
            arrival_time=self.arrival_time,
            end_time=self.end_time,
            distance_out=self.distance_out,
            distance_return=self.distance_return,
            status=JobStatus(self.status),
            locked=self.locked,
        )


def build_engine(db_url: str, echo: bool = False):
    is_sqlite = db_url.startswith("sqlite")
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "connect_args": {},
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # Hosted Postgres: no local pool, bounded connect time
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"connect_timeout": 10}
        if "sslmode=" not in db_url:
            db_url += ("&" if "?" in db_url else "?") + "sslmode=require"
    return create_engine(db_url, **kwargs)


class JobRecordRepository:
    """Job records per technician, with the saved -> submitted -> approved workflow."""
    def __init__(self, url: str = "sqlite:///fieldhours.db", echo: bool = False):
        self.primary_url = url
        self.engine = build_engine(url, echo=echo)

        if not url.startswith("sqlite"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("select 1"))
            except Exception as e:
                raise RuntimeError(f"Could not connect to the database: {e}") from e

        SQLModel.metadata.create_all(self.engine)

    def add(self, r: JobRecord) -> int:
        if r.user_id is None:
            raise ValueError("job record needs a user_id")
        job_date = parse_job_date(r.job_date)
        if job_date is None:
            raise ValueError(f"unparseable job date: {r.job_date!r}")
        with Session(self.engine) as session:
            row = JobRecordDB(
                user_id=r.user_id,
                job_date=job_date,
                work_order=r.work_order,
                depart_time=parse_time_of_day(r.depart_time),
                arrival_time=parse_time_of_day(r.arrival_time),
                end_time=parse_time_of_day(r.end_time),
                distance_out=normalize_distance(r.distance_out),
                distance_return=normalize_distance(r.distance_return),
                status=JobStatus(r.status).value,
                locked=r.locked,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.id

    def get(self, job_id: int) -> JobRecord | None:
        with Session(self.engine) as session:
            row = session.get(JobRecordDB, job_id)
            return row.to_record() if row else None

    def list_for_user(self, user_id: str) -> List[JobRecord]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(JobRecordDB)
                .where(JobRecordDB.user_id == user_id)
                .order_by(JobRecordDB.job_date.desc(), JobRecordDB.updated_at.desc(), JobRecordDB.id.desc())
            ).all()
            return [r.to_record() for r in rows]

    def list_by_status(self, status: JobStatus) -> List[JobRecord]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(JobRecordDB)
                .where(JobRecordDB.status == JobStatus(status).value)
                .order_by(JobRecordDB.job_date.desc(), JobRecordDB.id.desc())
            ).all()
            return [r.to_record() for r in rows]

    def _transition(self, ids: Iterable[int], allowed_from: JobStatus, to: JobStatus) -> int:
        changed = 0
        with Session(self.engine) as session:
            for job_id in ids:
                row = session.get(JobRecordDB, job_id)
                if row is None or row.status != allowed_from.value:
                    log.info("status_transition_skipped", job_id=job_id, to=to.value)
                    continue
                if allowed_from is JobStatus.SAVED and row.locked:
                    log.info("status_transition_skipped", job_id=job_id, to=to.value, locked=True)
                    continue
                row.status = to.value
                row.locked = True
                row.updated_at = _utcnow()
                session.add(row)
                changed += 1
            if changed:
                session.commit()
        return changed

    def submit(self, ids: Iterable[int]) -> int:
        """Saved, unlocked records become submitted and locked. Returns the count changed."""
        return self._transition(ids, JobStatus.SAVED, JobStatus.SUBMITTED)

    def approve(self, ids: Iterable[int]) -> int:
        """Submitted records become approved. Returns the count changed."""
        return self._transition(ids, JobStatus.SUBMITTED, JobStatus.APPROVED)


__all__ = ["JobRecordDB", "JobRecordRepository", "build_engine"]
