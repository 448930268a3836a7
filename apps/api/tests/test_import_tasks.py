"""Tests for import background tasks."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import select

from app.common.models import Member
from app.imports.mappers import TEMPLATE_HEADERS, map_headers
from app.imports.coercers import parse_member_rows
from app.imports.models import ImportJob
from app.jobs.tasks import process_import_job
from tests.factories import member_record


@pytest.fixture
def task_session(db, monkeypatch):
    """Point the task at the test session."""
    monkeypatch.setattr("app.jobs.tasks.SessionLocal", lambda: db)
    return db


@pytest.fixture
def pending_job(db) -> ImportJob:
    job = ImportJob(
        id=uuid4(),
        filename="members.csv",
        file_format="csv",
        status="pending",
        total_records=2,
        error_log=[],
        warning_log=[],
    )
    db.add(job)
    db.commit()
    return job


def serialized_rows() -> list[dict]:
    records = [
        member_record(),
        member_record(**{"Email*": "broken", "Phone*": "+1234567899"}),
    ]
    rows = parse_member_rows(records, map_headers(TEMPLATE_HEADERS))
    return [row.to_dict() for row in rows]


def test_process_import_job(task_session, pending_job):
    """The task rebuilds rows and runs the job to completion."""
    job_id = pending_job.id

    result = process_import_job(str(job_id), serialized_rows())

    assert result == {
        "job_id": str(job_id),
        "status": "completed",
        "processed_records": 2,
        "successful_records": 1,
        "failed_records": 1,
    }
    job = task_session.get(ImportJob, job_id)
    assert job.error_log[0]["row_number"] == 3
    emails = task_session.execute(select(Member.email)).scalars().all()
    assert emails == ["john.doe@email.com"]


def test_process_import_job_missing(task_session):
    """Unknown job ids raise so RQ marks the job failed."""
    with pytest.raises(ValueError, match="not found"):
        process_import_job(str(uuid4()), serialized_rows())
