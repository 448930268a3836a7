"""Import job execution: row loop, progress flushing and job lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.business_metrics import BusinessMetric, MetricCategory
from app.core.config import settings
from app.core.metrics import emit_business_metric
from app.imports.coercers import MemberRow
from app.imports.models import ImportJob
from app.imports.processors import (
    ImportContext,
    RowProcessingError,
    load_groups,
    process_member_row,
)
from app.imports.validators import ImportErrorEntry, validate_row

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Import cancelled by user"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "failed"},
    "processing": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


class InvalidStatusTransition(Exception):
    """Raised when an import job is moved to a status it cannot reach."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move import job from '{current}' to '{target}'")
        self.current = current
        self.target = target


def transition(job: ImportJob, new_status: str) -> None:
    """Move ``job`` to ``new_status`` if the state machine allows it."""
    if new_status not in ALLOWED_TRANSITIONS.get(job.status, set()):
        raise InvalidStatusTransition(job.status, new_status)
    job.status = new_status


def _row_entry(row: MemberRow, message: str) -> ImportErrorEntry:
    data = row.to_dict()
    data.pop("row_number", None)
    return ImportErrorEntry(row_number=row.row_number, message=message, data=data)


class ImportOrchestrator:
    """
    Runs one import job over a list of parsed rows.

    Each row is applied in its own transaction: a failing row is rolled back
    and recorded in the error log, and the run moves on. Counters and logs
    are written back to the job every ``flush_interval`` rows, which is also
    where a cancellation request is noticed.
    """

    def __init__(self, db: Session, flush_interval: Optional[int] = None):
        self.db = db
        self.flush_interval = max(
            1, flush_interval or settings.import_progress_flush_interval
        )
        self.processed = 0
        self.successful = 0
        self.failed = 0
        self.created = 0
        self.updated = 0
        self.errors: list[dict[str, Any]] = []
        self.warnings: list[dict[str, Any]] = []
        self.context = ImportContext()

    def run(self, job_id: UUID, rows: list[MemberRow]) -> ImportJob:
        """
        Process ``rows`` for the given job and leave it in a terminal status.

        Args:
            job_id: Import job ID (must be ``pending``)
            rows: Normalized rows in file order

        Returns:
            The job after its final flush

        Raises:
            ValueError: If the job does not exist
            InvalidStatusTransition: If the job is not pending
            Exception: Any systemic failure, after the job is marked failed
        """
        job = self.db.get(ImportJob, job_id)
        if not job:
            raise ValueError(f"Import job {job_id} not found")

        if job.cancel_requested and job.status == "pending":
            logger.info(f"Import job {job_id} cancelled before start")
            return self._cancel(job)

        transition(job, "processing")
        job.started_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"Import job {job_id} started with {len(rows)} rows")

        try:
            self.context.groups = load_groups(self.db)

            for row in rows:
                self._process_row(row)

                if self.processed % self.flush_interval == 0:
                    job = self._flush(job_id)
                    if job.cancel_requested:
                        logger.info(
                            f"Import job {job_id} cancelled after "
                            f"{self.processed} rows"
                        )
                        return self._cancel(job)

            return self._finalize(job_id)
        except Exception as e:
            logger.error(f"Import job {job_id} failed: {str(e)}", exc_info=True)
            self.db.rollback()
            self._fail(job_id)
            raise

    def _process_row(self, row: MemberRow) -> None:
        """Apply one row inside its own failure boundary."""
        self.processed += 1

        entry = validate_row(row)
        if entry is not None:
            self._record_failure(entry)
            return

        try:
            result = process_member_row(self.db, row, self.context)
            self.db.commit()
        except RowProcessingError as e:
            self.db.rollback()
            self.context.discard_row()
            self._record_failure(_row_entry(row, str(e)))
            return
        except Exception as e:
            self.db.rollback()
            self.context.discard_row()
            logger.warning(
                f"Unexpected error on import row {row.row_number}: {str(e)}"
            )
            self._record_failure(_row_entry(row, f"Processing error: {e}"))
            return

        self.context.commit_row()
        self.successful += 1
        if result.created:
            self.created += 1
        else:
            self.updated += 1
        self.warnings.extend(w.to_dict() for w in result.warnings)

    def _record_failure(self, entry: ImportErrorEntry) -> None:
        self.failed += 1
        self.errors.append(entry.to_dict())

    def _write_progress(self, job: ImportJob) -> None:
        job.processed_records = self.processed
        job.successful_records = self.successful
        job.failed_records = self.failed
        # Fresh lists so the JSON columns are marked dirty
        job.error_log = list(self.errors)
        job.warning_log = list(self.warnings)

    def _flush(self, job_id: UUID) -> ImportJob:
        """Persist counters and logs, then reload the job."""
        job = self.db.get(ImportJob, job_id)
        self._write_progress(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def _finalize(self, job_id: UUID) -> ImportJob:
        job = self.db.get(ImportJob, job_id)
        self._write_progress(job)
        transition(job, "completed")
        job.completed_at = datetime.now(timezone.utc)
        self.db.commit()

        logger.info(
            f"Import job {job_id} completed: {self.successful} succeeded, "
            f"{self.failed} failed, {len(self.warnings)} warnings"
        )
        emit_business_metric(
            BusinessMetric.IMPORT_COMPLETED, 1, category=MetricCategory.IMPORT.value
        )
        emit_business_metric(
            BusinessMetric.IMPORT_ROWS_PROCESSED,
            self.processed,
            category=MetricCategory.IMPORT.value,
        )
        if self.failed:
            emit_business_metric(
                BusinessMetric.IMPORT_ROWS_FAILED,
                self.failed,
                category=MetricCategory.IMPORT.value,
            )
        if self.created:
            emit_business_metric(
                BusinessMetric.MEMBER_CREATED,
                self.created,
                category=MetricCategory.REGISTRY.value,
            )
        if self.updated:
            emit_business_metric(
                BusinessMetric.MEMBER_UPDATED,
                self.updated,
                category=MetricCategory.REGISTRY.value,
            )
        if self.warnings:
            emit_business_metric(
                BusinessMetric.UNKNOWN_GROUP_REFERENCED,
                len(self.warnings),
                category=MetricCategory.DATA_QUALITY.value,
            )
        return job

    def _cancel(self, job: ImportJob) -> ImportJob:
        self.errors.append(
            ImportErrorEntry(row_number=0, message=CANCELLED_MESSAGE).to_dict()
        )
        self._write_progress(job)
        transition(job, "failed")
        job.completed_at = datetime.now(timezone.utc)
        self.db.commit()
        emit_business_metric(
            BusinessMetric.IMPORT_CANCELLED, 1, category=MetricCategory.IMPORT.value
        )
        return job

    def _fail(self, job_id: UUID) -> None:
        """Record the accumulated state on a job that hit a systemic error."""
        job = self.db.get(ImportJob, job_id)
        if job is None or job.status not in ("pending", "processing"):
            return
        self._write_progress(job)
        transition(job, "failed")
        job.completed_at = datetime.now(timezone.utc)
        self.db.commit()
        emit_business_metric(
            BusinessMetric.IMPORT_FAILED, 1, category=MetricCategory.IMPORT.value
        )
