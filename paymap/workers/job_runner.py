"""Background import of statement CSVs into pins and unresolved items."""

import uuid
from collections.abc import Callable

import httpx

from paymap.core.db import DBHelper, get_db
from paymap.core.kv import KVStore
from paymap.core.models import ImportRequest, PinRecord, UnresolvedItem
from paymap.core.settings import Settings
from paymap.core.utils import get_logger
from paymap.geocoding import BackendRegistry, GeocodeResolver
from paymap.services.csv_reader import StatementRow, iter_rows, locate_columns, read_statement
from paymap.services.normalize import normalize_amount, parse_date, time_bucket
from paymap.services.rate_limiter import FixedIntervalRateLimiter
from paymap.services.record_store import RecordStore

logger = get_logger("paymap.worker")

HttpClientFactory = Callable[[Settings], httpx.AsyncClient]


def default_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the HTTP client shared by the geocoding providers of one job."""
    return httpx.AsyncClient(timeout=settings.geocode_timeout_seconds)


class JobRunner:
    """Runs one import: parse, filter payments, normalize, resolve, dedupe, persist."""

    def __init__(
        self,
        settings: Settings,
        store: RecordStore,
        resolver: GeocodeResolver,
        rate_limiter: FixedIntervalRateLimiter,
        db: DBHelper,
    ) -> None:
        """Initialize the runner with its collaborators."""
        self.settings = settings
        self.store = store
        self.resolver = resolver
        self.rate_limiter = rate_limiter
        self.db = db
        self.counts = {"imported_count": 0, "skipped_count": 0, "unresolved_count": 0}

    async def run(self, request: ImportRequest) -> None:
        """Drive the job to done or error; never raises."""
        job_id = request.job_id
        logger.info(f"Starting import job: {job_id}, owner: {request.owner_id}, file: {request.filename}")
        try:
            frame = read_statement(request.content, self.settings)
            columns = locate_columns(frame, self.settings)
            total = len(frame)
            logger.info(f"Loaded {total} rows from {request.filename}")
            processed = 0
            for row in iter_rows(frame, columns):
                if await self._process_row(request.owner_id, row, total):
                    processed += 1
                    if processed % self.settings.progress_snapshot_interval == 0:
                        self.db.update_progress(job_id, self.counts)
                    await self.rate_limiter.pause()
            self.db.finish_job(job_id, self.counts)
            logger.info(f"Finished import job {job_id}: {self.counts}")
        except Exception as exc:
            logger.exception(f"Error processing job {job_id}")
            self.db.fail_job(job_id, str(exc), self.counts)

    async def _process_row(self, owner_id: str, row: StatementRow, total: int) -> bool:
        """Handle one row; return False when the row is filtered out before resolution."""
        row_info = f"[ROW {row.index}/{total}]"
        if row.description != self.settings.payment_marker:
            return False
        timestamp = parse_date(row.date)
        amount = normalize_amount(row.amount)
        place = (row.place or "").strip()
        if timestamp is None or amount is None or not place:
            logger.info(f"{row_info} Skipping row with missing date, amount or place")
            return False

        bucket = time_bucket(timestamp)
        location = await self.resolver.resolve(place)
        if location is None:
            item = UnresolvedItem(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                place=place,
                amount=amount,
                timestamp=timestamp.isoformat(),
                timestamp_parts=bucket,
            )
            self.store.put_unresolved(item)
            self.counts["unresolved_count"] += 1
            logger.info(f"{row_info} Unresolved '{place}' stored as {item.id}")
            return True

        if self.store.exists(owner_id, bucket):
            self.counts["skipped_count"] += 1
            logger.info(f"{row_info} Already imported at {bucket.as_key()}, skipping")
            return True

        self.store.put_pin(
            PinRecord(
                owner_id=owner_id,
                bucket=bucket,
                amount=amount,
                latitude=location.latitude,
                longitude=location.longitude,
            )
        )
        self.counts["imported_count"] += 1
        logger.info(f"{row_info} Imported '{place}' at {location.latitude},{location.longitude}")
        return True


async def run_job(
    request: ImportRequest,
    settings: Settings,
    client_factory: HttpClientFactory = default_http_client,
) -> None:
    """Top-level coroutine to run an import (for background tasks)."""
    db = get_db()
    store = RecordStore(KVStore())
    try:
        async with client_factory(settings) as client:
            backends = BackendRegistry.build_chain(settings.geocode_backends, client, settings)
            resolver = GeocodeResolver(store, backends, settings.geocode_country)
            runner = JobRunner(
                settings,
                store,
                resolver,
                FixedIntervalRateLimiter(settings.import_row_delay_seconds),
                db,
            )
            await runner.run(request)
    except Exception as exc:
        logger.exception(f"Could not start import job {request.job_id}")
        db.fail_job(request.job_id, str(exc))
    finally:
        db.close()
