"""RQ worker process for catalog background jobs."""
