"""Command-line entry point for the import worker.

Usage: ``python -m app.jobs.cli [--burst] [queue ...]``
"""

import logging
import sys

from rq import Worker

from app.jobs.queue import IMPORTS_QUEUE, get_redis_connection

logger = logging.getLogger(__name__)


def run_worker(queues: list[str] | None = None, burst: bool = False) -> bool:
    """
    Run an RQ worker for member import jobs.

    Args:
        queues: Queue names to listen on (default: ['imports'])
        burst: Exit once the queues are empty instead of waiting

    Returns:
        Whether the worker processed any job
    """
    if not queues:
        queues = [IMPORTS_QUEUE]

    worker = Worker(queues, connection=get_redis_connection())
    logger.info(f"Starting import worker on queues: {', '.join(queues)} (burst={burst})")
    return worker.work(burst=burst)


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    burst = "--burst" in args
    queues = [arg for arg in args if not arg.startswith("--")]
    run_worker(queues, burst=burst)


if __name__ == "__main__":
    main()
