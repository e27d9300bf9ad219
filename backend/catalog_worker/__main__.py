"""Entry point for running the catalog RQ worker."""
from __future__ import annotations

import logging
import os

from rq import SimpleWorker, Worker

from backend.catalog_api.db import create_engine_from_settings, init_database
from backend.catalog_api.services.queue import JobQueueService
from backend.catalog_api.settings import CatalogSettings

logger = logging.getLogger(__name__)


def main() -> None:
    """Start an RQ worker draining the ingest and categories queue."""

    settings = CatalogSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Fail fast when the database is unreachable instead of failing every job.
    engine = create_engine_from_settings(settings)
    init_database(engine)
    engine.dispose()

    queue_service = JobQueueService(settings)
    worker_class = SimpleWorker if os.name == "nt" else Worker
    worker = worker_class(
        [queue_service.queue],
        connection=queue_service.connection,
        name=settings.queue_worker_name,
    )
    logger.info("Listening on queue %s", settings.redis_queue_name)
    worker.work(with_scheduler=False)


if __name__ == "__main__":  # pragma: no cover - manual entrypoint
    main()
