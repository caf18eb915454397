"""DB connection and helpers for the payment pin importer."""

from pathlib import Path
from typing import Any

from sqlalchemy import JSON, Column, Integer, String, Text, create_engine, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from paymap.core.utils import ensure_dir, utcnow_iso

Base = declarative_base()

STATUS_PROCESSING = "processing"
STATUS_DONE = "done"
STATUS_ERROR = "error"


class KVEntry(Base):
    """One entry of the ordered key-value namespace (pins, unresolved items, geocode cache)."""

    __tablename__ = "kv_entries"
    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)


class ImportJob(Base):
    """A tracked CSV import run."""

    __tablename__ = "import_jobs"
    id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)
    filename = Column(String, nullable=True)
    imported_count = Column(Integer, nullable=False, default=0)
    skipped_count = Column(Integer, nullable=False, default=0)
    unresolved_count = Column(Integer, nullable=False, default=0)
    started_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=True)
    finished_at = Column(String, nullable=True)
    error = Column(Text, nullable=True)


def get_engine() -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    from paymap.core.settings import get_settings

    url = make_url(get_settings().database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            ensure_dir(Path(url.database).parent)
    return create_engine(url, connect_args=connect_args)


engine = get_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create every table the importer uses."""
    Base.metadata.create_all(engine)


def get_db() -> "DBHelper":
    """Get a DBHelper instance using a SQLAlchemy session."""
    session = SessionLocal()
    return DBHelper(session)


class DBHelper:
    """Helper class for import job bookkeeping using SQLAlchemy."""

    def __init__(self, session: Session) -> None:
        """Initialize the DBHelper with a SQLAlchemy session."""
        self.session = session

    def create_job(self, job_id: str, owner_id: str, filename: str | None) -> None:
        """Insert a new job in the processing state."""
        now = utcnow_iso()
        self.session.add(
            ImportJob(
                id=job_id,
                owner_id=owner_id,
                status=STATUS_PROCESSING,
                filename=filename,
                imported_count=0,
                skipped_count=0,
                unresolved_count=0,
                started_at=now,
                updated_at=now,
            )
        )
        self.session.commit()

    def update_progress(self, job_id: str, counts: dict[str, int]) -> None:
        """Snapshot running counts so pollers observe progress."""
        self._update_open_job(job_id, status=STATUS_PROCESSING, updated_at=utcnow_iso(), **counts)

    def finish_job(self, job_id: str, counts: dict[str, int]) -> None:
        """Mark a job as done with its final counts."""
        now = utcnow_iso()
        self._update_open_job(job_id, status=STATUS_DONE, updated_at=now, finished_at=now, **counts)

    def fail_job(self, job_id: str, reason: str, counts: dict[str, int] | None = None) -> None:
        """Mark a job as failed with a human-readable reason."""
        now = utcnow_iso()
        self._update_open_job(
            job_id, status=STATUS_ERROR, updated_at=now, finished_at=now, error=reason, **(counts or {})
        )

    def _update_open_job(self, job_id: str, **values: Any) -> None:
        # Terminal states are never reopened.
        stmt = (
            update(ImportJob)
            .where(ImportJob.id == job_id, ImportJob.status == STATUS_PROCESSING)
            .values(**values)
        )
        self.session.execute(stmt)
        self.session.commit()

    def get_job_status(self, job_id: str) -> dict[str, Any] | None:
        """Retrieve the status and counters for a job by its ID."""
        job = self.session.get(ImportJob, job_id)
        if job is None:
            return None
        return {
            "job_id": job.id,
            "owner_id": job.owner_id,
            "status": job.status,
            "filename": job.filename,
            "imported_count": job.imported_count,
            "skipped_count": job.skipped_count,
            "unresolved_count": job.unresolved_count,
            "started_at": job.started_at,
            "updated_at": job.updated_at,
            "finished_at": job.finished_at,
            "error": job.error,
        }

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()
