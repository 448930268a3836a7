"""Pydantic schemas for Import module."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ImportErrorEntryResponse(BaseModel):
    """One error (or warning) log entry."""

    row_number: int = Field(
        ..., description="Spreadsheet row (header is 1, job-level errors are 0)"
    )
    message: str
    data: Optional[dict[str, Any]] = None


class ImportStartResponse(BaseModel):
    """Response after an upload is accepted."""

    job_id: UUID
    total_rows: int
    message: str = "Import started successfully"


class ImportCreatorResponse(BaseModel):
    """Member who started a job."""

    id: UUID
    first_name: str
    last_name: str

    model_config = {"from_attributes": True}


class ImportJobResponse(BaseModel):
    """Response with import job details."""

    id: UUID
    filename: str
    file_format: str
    file_size: int
    status: str
    total_records: int
    processed_records: int
    successful_records: int
    failed_records: int
    cancel_requested: bool
    created_by: Optional[UUID]
    creator: Optional[ImportCreatorResponse] = None
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    progress_percent: Optional[float] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_job(cls, job: Any) -> "ImportJobResponse":
        response = cls.model_validate(job)
        if job.total_records:
            response.progress_percent = round(
                job.processed_records / job.total_records * 100, 2
            )
        return response


class ImportJobStatusResponse(ImportJobResponse):
    """Job details plus its logs."""

    error_log: list[ImportErrorEntryResponse] = Field(default_factory=list)
    warning_log: list[ImportErrorEntryResponse] = Field(default_factory=list)

    @field_validator("error_log", "warning_log", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class ImportErrorsResponse(BaseModel):
    """Error log of one job."""

    job_id: UUID
    filename: str
    failed_records: int
    errors: list[ImportErrorEntryResponse]
    warnings: list[ImportErrorEntryResponse] = Field(default_factory=list)


class ImportHistoryResponse(BaseModel):
    """Paginated list of import jobs."""

    jobs: list[ImportJobResponse]
    total: int
    page: int
    limit: int
    total_pages: int
