"""Structured log events emitted while catalog jobs run."""
from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..models import JobLogRecord
from ..schemas import JobLogCreate, JobLogModel


class JobLogStore:
    """Append-only log of job events, read back in emission order."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def append(self, job_id: str, payload: JobLogCreate) -> JobLogModel:
        record = JobLogRecord(job_id=job_id, **payload.model_dump())
        with Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return JobLogModel.model_validate(record, from_attributes=True)

    def log(
        self,
        job_id: str,
        message: str,
        *,
        level: str = "info",
        context: dict[str, Any] | None = None,
    ) -> JobLogModel:
        """Shorthand for :meth:`append` used by the worker tasks."""

        return self.append(job_id, JobLogCreate(level=level, message=message, context=context))

    def list_for_job(
        self,
        job_id: str,
        *,
        limit: int = 100,
        level: str | None = None,
    ) -> list[JobLogModel]:
        """Return the first ``limit`` events of a job, optionally of one level."""

        statement = select(JobLogRecord).where(JobLogRecord.job_id == job_id)
        if level:
            statement = statement.where(JobLogRecord.level == level.lower())
        statement = statement.order_by(JobLogRecord.created_at, JobLogRecord.id).limit(limit)
        with Session(self._engine) as session:
            return [
                JobLogModel.model_validate(record, from_attributes=True)
                for record in session.exec(statement)
            ]
