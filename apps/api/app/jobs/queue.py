"""Redis Queue setup and connection."""

from __future__ import annotations

import redis
from rq import Queue

from app.core.config import settings

IMPORTS_QUEUE = "imports"


def get_redis_connection() -> redis.Redis:
    """Get Redis connection for RQ."""
    return redis.from_url(settings.redis_url)


def get_queue(name: str = IMPORTS_QUEUE) -> Queue:
    """
    Get RQ queue instance.

    Args:
        name: Queue name (default: imports)

    Returns:
        RQ Queue instance
    """
    return Queue(name, connection=get_redis_connection())


# Pre-configured queue; redis.from_url connects lazily
imports_queue = Queue(IMPORTS_QUEUE, connection=get_redis_connection())
