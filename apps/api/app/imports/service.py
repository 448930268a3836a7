"""Import service layer for member spreadsheet imports."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.core.business_metrics import BusinessMetric, MetricCategory
from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError
from app.core.metrics import emit_business_metric
from app.imports.coercers import MemberRow, parse_member_rows
from app.imports.mappers import HeaderMappingError, map_headers, unmapped_headers
from app.imports.models import ImportJob
from app.imports.orchestrator import transition
from app.imports.parsers import (
    ImportFileError,
    ImportFormat,
    detect_file_format,
    read_sheet,
)
from app.imports.validators import ImportErrorEntry

logger = logging.getLogger(__name__)


class ImportService:
    """Service for managing import jobs."""

    @staticmethod
    def start_import(
        db: Session,
        file_content: bytes,
        filename: str,
        created_by: Optional[UUID] = None,
    ) -> tuple[ImportJob, list[MemberRow]]:
        """
        Parse an uploaded file and create a pending import job.

        Args:
            db: Database session
            file_content: File content as bytes
            filename: Original filename
            created_by: ID of the member starting the import

        Returns:
            Tuple of (created ImportJob, parsed rows to process)

        Raises:
            ValueError: Unsupported format, no rows, or too many rows
            ImportFileError: File unreadable or missing required columns;
                a failed job recording the problem is persisted first
        """
        file_format = detect_file_format(file_content, filename)
        if file_format == ImportFormat.UNKNOWN:
            raise ValueError(
                "Invalid file type. Only Excel and CSV files are allowed."
            )

        try:
            headers, raw_rows = read_sheet(file_content, file_format)
            mapping = map_headers(headers)
        except (ImportFileError, HeaderMappingError) as e:
            ImportService._record_structural_failure(
                db, filename, file_format, len(file_content), created_by, str(e)
            )
            raise ImportFileError(str(e)) from e

        ignored = unmapped_headers(headers, mapping)
        if ignored:
            logger.warning(f"Ignoring unknown import columns in {filename}: {ignored}")

        rows = parse_member_rows(
            raw_rows,
            mapping,
            include_incomplete=settings.import_report_incomplete_rows,
        )

        if not rows:
            raise ValueError("No valid data found in file")
        if len(rows) > settings.max_import_rows:
            raise ValueError(
                f"Maximum {settings.max_import_rows} records allowed per import"
            )

        job = ImportJob(
            filename=filename,
            file_format=file_format.value,
            file_size=len(file_content),
            status="pending",
            total_records=len(rows),
            created_by=created_by,
            error_log=[],
            warning_log=[],
        )
        db.add(job)
        db.commit()
        db.refresh(job)

        logger.info(f"Created import job {job.id} for {filename} ({len(rows)} rows)")
        emit_business_metric(
            BusinessMetric.IMPORT_STARTED,
            1,
            category=MetricCategory.IMPORT.value,
            file_format=file_format.value,
        )
        return job, rows

    @staticmethod
    def _record_structural_failure(
        db: Session,
        filename: str,
        file_format: ImportFormat,
        file_size: int,
        created_by: Optional[UUID],
        message: str,
    ) -> ImportJob:
        now = datetime.now(timezone.utc)
        job = ImportJob(
            filename=filename,
            file_format=file_format.value,
            file_size=file_size,
            status="failed",
            created_by=created_by,
            error_log=[ImportErrorEntry(row_number=0, message=message).to_dict()],
            warning_log=[],
            started_at=now,
            completed_at=now,
        )
        db.add(job)
        db.commit()
        logger.warning(f"Import of {filename} rejected: {message}")
        emit_business_metric(
            BusinessMetric.IMPORT_VALIDATION_ERROR,
            1,
            category=MetricCategory.IMPORT.value,
        )
        return job

    @staticmethod
    def mark_not_queued(db: Session, job: ImportJob, reason: str) -> ImportJob:
        """
        Fail a pending job whose background run could not be queued.

        The job keeps its total and gets a row-0 error naming the cause, so
        it does not sit in `pending` forever.
        """
        transition(job, "failed")
        job.error_log = [
            ImportErrorEntry(
                row_number=0, message=f"Failed to queue import job: {reason}"
            ).to_dict()
        ]
        job.completed_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(job)
        logger.error(f"Import job {job.id} could not be queued: {reason}")
        emit_business_metric(
            BusinessMetric.IMPORT_FAILED, 1, category=MetricCategory.IMPORT.value
        )
        return job

    @staticmethod
    def get_job(db: Session, job_id: UUID) -> ImportJob:
        """
        Get an import job.

        Raises:
            NotFoundError: If the job does not exist
        """
        job = db.get(ImportJob, job_id)
        if not job:
            raise NotFoundError("Import job", str(job_id))
        return job

    @staticmethod
    def get_job_status(db: Session, job_id: UUID) -> ImportJob:
        """Get import job status (whatever was last flushed)."""
        job = ImportService.get_job(db, job_id)
        db.refresh(job)
        return job

    @staticmethod
    def get_job_errors(db: Session, job_id: UUID) -> dict[str, Any]:
        """Get a job's error log."""
        job = ImportService.get_job(db, job_id)
        return {
            "job_id": job.id,
            "filename": job.filename,
            "failed_records": job.failed_records,
            "errors": job.error_log or [],
            "warnings": job.warning_log or [],
        }

    @staticmethod
    def list_history(
        db: Session,
        created_by: Optional[UUID] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[ImportJob], int]:
        """
        List import jobs, newest first.

        Args:
            db: Database session
            created_by: Only jobs started by this member
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (jobs on the page, total matching jobs)
        """
        query = select(ImportJob).options(selectinload(ImportJob.creator))
        count_query = select(func.count()).select_from(ImportJob)
        if created_by:
            query = query.where(ImportJob.created_by == created_by)
            count_query = count_query.where(ImportJob.created_by == created_by)

        total = db.execute(count_query).scalar_one()
        jobs = (
            db.execute(
                query.order_by(ImportJob.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return list(jobs), total

    @staticmethod
    def delete_job(db: Session, job_id: UUID) -> None:
        """
        Delete an import job record.

        Raises:
            NotFoundError: If the job does not exist
            ConflictError: If the job is still processing
        """
        job = ImportService.get_job(db, job_id)
        if job.status == "processing":
            raise ConflictError(
                "Cannot delete job that is currently processing",
                details={"job_id": str(job_id), "status": job.status},
            )
        db.delete(job)
        db.commit()
        logger.info(f"Deleted import job {job_id}")

    @staticmethod
    def request_cancel(db: Session, job_id: UUID) -> ImportJob:
        """
        Ask a pending or running job to stop.

        The worker notices the request at its next progress flush.

        Raises:
            NotFoundError: If the job does not exist
            ConflictError: If the job already finished
        """
        job = ImportService.get_job(db, job_id)
        if job.status not in ("pending", "processing"):
            raise ConflictError(
                f"Cannot cancel job with status '{job.status}'",
                details={"job_id": str(job_id), "status": job.status},
            )
        job.cancel_requested = True
        db.commit()
        db.refresh(job)
        logger.info(f"Cancellation requested for import job {job_id}")
        return job
