"""Database-backed lifecycle tracking for ingest and category jobs."""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from threading import Lock
from typing import Any
from uuid import uuid4

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from ..models import JobRecord
from ..schemas import JobMetricsModel, JobModel

TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled"})


class JobNotFoundError(LookupError):
    """Raised when a transition targets an unknown job."""


class JobStore:
    """Thread-safe persistence of catalog job state transitions."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def enqueue(self, job_type: str, payload: dict[str, Any] | None = None) -> JobModel:
        """Create a queued job entry and return its model representation."""

        record = JobRecord(id=uuid4().hex, type=job_type, status="queued", payload=payload)
        with self._lock, Session(self._engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_model(record)

    def list(
        self,
        *,
        limit: int = 50,
        statuses: list[str] | None = None,
        job_type: str | None = None,
    ) -> list[JobModel]:
        """Return the most recent jobs, newest first."""

        statement = select(JobRecord)
        wanted = {status.lower() for status in statuses or [] if status}
        if wanted:
            statement = statement.where(JobRecord.status.in_(sorted(wanted)))
        if job_type:
            statement = statement.where(JobRecord.type == job_type)
        statement = statement.order_by(JobRecord.created_at.desc()).limit(limit)

        with Session(self._engine) as session:
            return [_to_model(record) for record in session.exec(statement)]

    def get(self, job_id: str) -> JobModel | None:
        with Session(self._engine) as session:
            record = session.get(JobRecord, job_id)
            return _to_model(record) if record else None

    def mark_running(self, job_id: str, *, worker_id: str | None = None) -> JobModel:
        return self._transition(
            job_id, status="running", progress=0.0, worker_id=worker_id, started=True
        )

    def update_progress(self, job_id: str, progress: float) -> JobModel:
        """Record partial progress of a running job, clamped to ``[0, 1]``."""

        return self._transition(job_id, progress=min(max(progress, 0.0), 1.0))

    def mark_completed(self, job_id: str, *, result: dict[str, Any] | None = None) -> JobModel:
        return self._transition(
            job_id, status="completed", progress=1.0, result=result, finished=True
        )

    def mark_failed(self, job_id: str, *, error_message: str) -> JobModel:
        return self._transition(
            job_id, status="failed", error_message=error_message, finished=True
        )

    def mark_cancelled(self, job_id: str, *, reason: str | None = None) -> JobModel:
        return self._transition(
            job_id, status="cancelled", error_message=reason, finished=True
        )

    def _transition(
        self,
        job_id: str,
        *,
        status: str | None = None,
        progress: float | None = None,
        worker_id: str | None = None,
        error_message: str | None = None,
        result: dict[str, Any] | None = None,
        started: bool = False,
        finished: bool = False,
    ) -> JobModel:
        now = datetime.utcnow()
        with self._lock, Session(self._engine) as session:
            record = session.get(JobRecord, job_id)
            if record is None:
                raise JobNotFoundError(f"Job {job_id} not found")
            if record.status in TERMINAL_STATUSES:
                # Finished jobs are final; late updates from a worker are dropped.
                return _to_model(record)

            if status is not None:
                record.status = status
            if progress is not None:
                record.progress = progress
            if worker_id is not None:
                record.worker_id = worker_id
            if error_message is not None:
                record.error_message = error_message
            if result is not None:
                record.result = result
            if started and record.started_at is None:
                record.started_at = now
            if finished:
                record.finished_at = now
            record.updated_at = now

            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_model(record)

    def metrics(self) -> JobMetricsModel:
        """Aggregate job counts and durations across every stored job."""

        with Session(self._engine) as session:
            records = list(session.exec(select(JobRecord)))

        durations = [
            (record.finished_at - record.started_at).total_seconds()
            for record in records
            if record.started_at and record.finished_at
        ]
        finished = [record.finished_at for record in records if record.finished_at]
        return JobMetricsModel(
            total=len(records),
            status_counts=dict(sorted(Counter(record.status for record in records).items())),
            type_counts=dict(sorted(Counter(record.type for record in records).items())),
            average_duration_seconds=sum(durations) / len(durations) if durations else None,
            last_finished_at=max(finished) if finished else None,
        )


def _to_model(record: JobRecord) -> JobModel:
    duration_seconds: float | None = None
    if record.started_at and record.finished_at:
        duration_seconds = (record.finished_at - record.started_at).total_seconds()

    return JobModel(
        id=record.id,
        type=record.type,
        status=record.status,
        progress=record.progress,
        worker_id=record.worker_id,
        payload=record.payload,
        created_at=record.created_at,
        updated_at=record.updated_at,
        started_at=record.started_at,
        finished_at=record.finished_at,
        error_message=record.error_message,
        result=record.result,
        duration_seconds=duration_seconds,
    )
