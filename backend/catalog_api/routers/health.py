"""Health endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_job_queue
from ..schemas import HealthStatus, QueueHealthStatus
from ..services.queue import JobQueueService

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
def get_health(queue: JobQueueService = Depends(get_job_queue)) -> HealthStatus:
    """Report API liveness together with queue reachability."""

    if queue.ping():
        return HealthStatus()
    return HealthStatus(queue=QueueHealthStatus(status="error", detail="queue_unreachable"))
