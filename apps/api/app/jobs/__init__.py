"""Background job processing module."""

from app.jobs.queue import get_queue
from app.jobs.tasks import process_import_job

__all__ = [
    "get_queue",
    "process_import_job",
]
