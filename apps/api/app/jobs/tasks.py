"""Background job tasks for member imports."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from app.common.db import SessionLocal
from app.imports.coercers import MemberRow
from app.imports.orchestrator import ImportOrchestrator

logger = logging.getLogger(__name__)


def process_import_job(job_id: str, rows: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Run an import job queued by the upload endpoint.

    Args:
        job_id: Import job ID
        rows: Serialized ``MemberRow`` dictionaries in file order

    Returns:
        Final counters of the job
    """
    db = SessionLocal()
    try:
        logger.info(f"Processing import job {job_id} ({len(rows)} rows)")
        member_rows = [MemberRow.from_dict(row) for row in rows]
        job = ImportOrchestrator(db).run(UUID(job_id), member_rows)
        return {
            "job_id": str(job.id),
            "status": job.status,
            "processed_records": job.processed_records,
            "successful_records": job.successful_records,
            "failed_records": job.failed_records,
        }
    except Exception as e:
        logger.error(f"Import job {job_id} raised: {str(e)}", exc_info=True)
        raise
    finally:
        db.close()
