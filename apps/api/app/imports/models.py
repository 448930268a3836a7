"""Import domain models (import jobs)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
from uuid import uuid4, UUID

from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    JSON,
    TIMESTAMP,
    Uuid,
    BigInteger,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.common.models.base import Base, ImportStatus

if TYPE_CHECKING:
    from app.common.models.registry import Member


class ImportJob(Base):
    """Import job tracking table."""

    __tablename__ = "import_jobs"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    file_format: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # "xlsx", "xls", "csv"
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        ImportStatus, nullable=False, default="pending"
    )
    total_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_log: Mapped[Optional[list]] = mapped_column(
        JSON, nullable=True
    )  # Array of {row_number, message, data}
    warning_log: Mapped[Optional[list]] = mapped_column(
        JSON, nullable=True
    )  # Non-fatal notices, e.g. unknown group names
    cancel_requested: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
    )
    creator: Mapped[Optional["Member"]] = relationship("Member", back_populates=None)
    started_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_import_jobs_status", "status"),
        Index("ix_import_jobs_created_by", "created_by"),
        Index("ix_import_jobs_created_at", "created_at"),
    )
