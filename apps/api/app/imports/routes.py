"""Import API routes."""

from __future__ import annotations

import logging
import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from app.auth.dependencies import require_admin
from app.common.db import get_db
from app.common.models import Member
from app.core.config import settings
from app.core.errors import (
    BadRequestError,
    PayloadTooLargeError,
    ServiceUnavailableError,
)
from app.imports import schemas
from app.imports.service import ImportService
from app.imports.template import TEMPLATE_FILENAME, generate_template
from app.jobs.queue import imports_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/template")
async def download_template(admin: Member = Depends(require_admin)):
    """Download the member import template."""
    content = generate_template()
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post(
    "/excel",
    response_model=schemas.ImportStartResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_members_file(
    file: UploadFile = File(...),
    admin: Member = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Upload a member spreadsheet and queue it for processing."""
    file_content = await file.read()
    if len(file_content) > settings.max_upload_bytes:
        raise PayloadTooLargeError(settings.max_upload_bytes)

    try:
        job, rows = ImportService.start_import(
            db=db,
            file_content=file_content,
            filename=file.filename or "uploaded_file",
            created_by=admin.id,
        )
    except ValueError as e:
        # Also covers ImportFileError (structural failures)
        raise BadRequestError(str(e))

    try:
        imports_queue.enqueue(
            "app.jobs.tasks.process_import_job",
            str(job.id),
            [row.to_dict() for row in rows],
            job_timeout=settings.import_job_timeout,
        )
    except RedisError as e:
        ImportService.mark_not_queued(db, job, str(e))
        raise ServiceUnavailableError(
            "Import queue is unavailable, please retry the upload",
            details={"job_id": str(job.id)},
        )
    logger.info(f"Queued import job {job.id} ({job.total_records} rows)")

    return schemas.ImportStartResponse(job_id=job.id, total_rows=job.total_records)


@router.get("/status/{job_id}", response_model=schemas.ImportJobStatusResponse)
async def get_import_status(
    job_id: UUID,
    admin: Member = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get import job progress and logs."""
    job = ImportService.get_job_status(db, job_id)
    return schemas.ImportJobStatusResponse.from_job(job)


@router.get("/history", response_model=schemas.ImportHistoryResponse)
async def list_import_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    created_by: Optional[UUID] = Query(None),
    admin: Member = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """List import jobs, newest first."""
    jobs, total = ImportService.list_history(
        db, created_by=created_by, page=page, limit=limit
    )
    return schemas.ImportHistoryResponse(
        jobs=[schemas.ImportJobResponse.from_job(job) for job in jobs],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )


@router.get("/{job_id}/errors", response_model=schemas.ImportErrorsResponse)
async def get_import_errors(
    job_id: UUID,
    admin: Member = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get the error log of an import job."""
    return ImportService.get_job_errors(db, job_id)


@router.post("/{job_id}/cancel", response_model=schemas.ImportJobResponse)
async def cancel_import(
    job_id: UUID,
    admin: Member = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Request cancellation of a pending or running import."""
    job = ImportService.request_cancel(db, job_id)
    return schemas.ImportJobResponse.from_job(job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_import(
    job_id: UUID,
    admin: Member = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Delete an import job record."""
    ImportService.delete_job(db, job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
