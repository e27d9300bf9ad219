"""Redis-backed job queue for ingest and category generation runs."""
from __future__ import annotations

import logging
from typing import Any

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from rq.exceptions import InvalidJobOperation

from ..schemas import JobModel
from ..settings import CatalogSettings
from ..stores.job_log_store import JobLogStore
from ..stores.job_store import JobStore
from .tasks import JOB_TYPES, execute_catalog_job

logger = logging.getLogger(__name__)


class JobQueueError(RuntimeError):
    """Raised when the queue cannot accept a job."""


class UnknownJobTypeError(ValueError):
    """Raised when a job type has no registered task."""


def create_redis_connection(url: str) -> Redis:
    """Connect to Redis; ``fakeredis://`` URLs give an in-process server."""

    if url.startswith("fakeredis://"):
        import fakeredis

        return fakeredis.FakeRedis()
    return Redis.from_url(url)


class JobQueueService:
    """Persists catalog jobs and hands them to RQ workers."""

    def __init__(self, settings: CatalogSettings) -> None:
        self._settings = settings
        self._connection = create_redis_connection(settings.redis_url)
        self._queue = Queue(settings.redis_queue_name, connection=self._connection)

    @property
    def queue(self) -> Queue:
        return self._queue

    @property
    def connection(self) -> Redis:
        return self._connection

    def ping(self) -> bool:
        try:
            return bool(self._connection.ping())
        except RedisError:
            return False

    def depth(self) -> int:
        """Number of jobs waiting in the queue, or 0 when Redis is unreachable."""

        try:
            return self._queue.count
        except RedisError:
            return 0

    def enqueue(
        self,
        job_store: JobStore,
        log_store: JobLogStore,
        job_type: str,
        payload: dict[str, Any] | None = None,
    ) -> JobModel:
        """Persist a job and enqueue it for asynchronous execution."""

        if job_type not in JOB_TYPES:
            raise UnknownJobTypeError(f"Unsupported job type: {job_type}")

        job = job_store.enqueue(job_type, payload)
        log_store.log(job.id, f"Job {job_type} enqueued", context={"payload": payload} if payload else None)

        try:
            self._queue.enqueue(
                execute_catalog_job,
                job_id=job.id,
                kwargs={
                    "job_id": job.id,
                    "job_type": job_type,
                    "payload": payload,
                    "settings": self._settings.model_dump(),
                    "worker_name": self._settings.queue_worker_name,
                },
            )
        except RedisError as exc:
            logger.error("Unable to enqueue job %s: %s", job.id, exc)
            log_store.log(job.id, "Failed to enqueue job", level="error", context={"error": str(exc)})
            job_store.mark_failed(job.id, error_message="queue_unavailable")
            raise JobQueueError("Unable to enqueue job") from exc

        return job

    def cancel(self, job_store: JobStore, log_store: JobLogStore, job_id: str, reason: str | None = None) -> JobModel | None:
        """Cancel a job that has not finished yet; finished jobs are returned as-is."""

        job = job_store.get(job_id)
        if job is None or job.status in ("completed", "failed", "cancelled"):
            return job

        rq_job = self._queue.fetch_job(job_id)
        if rq_job is not None:
            try:
                rq_job.cancel()
            except (RedisError, InvalidJobOperation) as exc:  # pragma: no cover - runtime path
                logger.warning("Unable to cancel queued job %s: %s", job_id, exc)
        cancelled = job_store.mark_cancelled(job_id, reason=reason)
        log_store.log(job_id, "Job cancelled", level="warning", context={"reason": reason} if reason else None)
        return cancelled
