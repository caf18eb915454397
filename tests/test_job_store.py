"""Tests for import job bookkeeping on the real database."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from main import app
from paymap.core.db import DBHelper, get_db

client = TestClient(app)

HTTP_200_OK = 200
SNAPSHOT = {"imported_count": 3, "skipped_count": 1, "unresolved_count": 2}


@pytest.fixture
def db() -> Iterator[DBHelper]:
    """A DBHelper on the test database."""
    helper = get_db()
    yield helper
    helper.close()


def _status(job_id: str) -> dict:
    response = client.get("/import-status", params={"jobId": job_id})
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    return response.json()


def test_progress_snapshot_is_visible_while_processing(db: DBHelper) -> None:
    """A snapshot shows up in the polled status with the job still processing."""
    db.create_job("job-1", "user-1", "statement.csv")
    db.update_progress("job-1", SNAPSHOT)
    job = _status("job-1")
    expected = {
        "jobId": "job-1",
        "ownerId": "user-1",
        "status": "processing",
        "importedCount": 3,
        "skippedCount": 1,
        "unresolvedCount": 2,
        "finishedAt": None,
    }
    for field, value in expected.items():
        if job.get(field) != value:
            msg = f"Expected {field}={value!r}, got {job.get(field)!r} in {job}"
            raise AssertionError(msg)
    if not job["updatedAt"]:
        msg = "A snapshot must set updatedAt"
        raise AssertionError(msg)


def test_failed_job_is_never_reopened(db: DBHelper) -> None:
    """Once in error, later progress or completion writes change nothing."""
    db.create_job("job-1", "user-1", "statement.csv")
    db.fail_job("job-1", "header not found", SNAPSHOT)
    before = db.get_job_status("job-1")

    db.finish_job("job-1", {"imported_count": 9, "skipped_count": 9, "unresolved_count": 9})
    db.update_progress("job-1", {"imported_count": 7, "skipped_count": 7, "unresolved_count": 7})
    db.session.expire_all()
    after = db.get_job_status("job-1")
    if after != before:
        msg = f"Terminal job changed from {before} to {after}"
        raise AssertionError(msg)
    if (after["status"], after["error"], after["imported_count"]) != ("error", "header not found", 3):
        msg = f"Unexpected failed job {after}"
        raise AssertionError(msg)


def test_finished_job_is_never_reopened(db: DBHelper) -> None:
    """Once done, a late failure or snapshot leaves the final state alone."""
    db.create_job("job-1", "user-1", None)
    db.finish_job("job-1", SNAPSHOT)
    before = db.get_job_status("job-1")

    db.fail_job("job-1", "late failure")
    db.update_progress("job-1", {"imported_count": 0, "skipped_count": 0, "unresolved_count": 0})
    db.session.expire_all()
    after = db.get_job_status("job-1")
    if after != before or after["status"] != "done" or after["error"] is not None:
        msg = f"Finished job changed from {before} to {after}"
        raise AssertionError(msg)
