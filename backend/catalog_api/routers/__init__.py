"""Router exports for the catalog API."""
from . import categories, content, health, jobs

__all__ = ["categories", "content", "health", "jobs"]
