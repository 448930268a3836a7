"""Tests for queue wiring and the worker entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from app.jobs import cli
from app.jobs.queue import IMPORTS_QUEUE, get_queue


def test_get_queue_defaults_to_imports():
    """The default queue is the imports queue."""
    with patch("app.jobs.queue.get_redis_connection") as mock_conn:
        queue = get_queue()

    assert queue.name == IMPORTS_QUEUE
    mock_conn.assert_called_once()


class TestWorkerCLI:
    """Test the worker command line."""

    def test_run_worker_defaults(self):
        worker = MagicMock()
        with patch("app.jobs.cli.get_redis_connection"), patch(
            "app.jobs.cli.Worker", return_value=worker
        ) as mock_worker:
            cli.run_worker()

        assert mock_worker.call_args.args[0] == [IMPORTS_QUEUE]
        worker.work.assert_called_once_with(burst=False)

    def test_main_parses_burst_and_queues(self):
        with patch("app.jobs.cli.run_worker") as mock_run:
            cli.main(["--burst", "imports-high"])

        mock_run.assert_called_once_with(["imports-high"], burst=True)

    def test_main_without_arguments(self):
        with patch("app.jobs.cli.run_worker") as mock_run:
            cli.main([])

        mock_run.assert_called_once_with([], burst=False)
