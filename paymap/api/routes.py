"""FastAPI endpoints for the payment pin importer.

This module defines the routes for uploading statement CSVs, polling import jobs, listing and manually resolving unresolved payments, listing pins, and health checks. It wires together the record store, the geocode resolver, and the background job runner.
"""

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException

from paymap.api.dependencies import (
    get_current_user,
    get_db_conn,
    get_http_client_factory,
    get_manual_resolver,
    get_record_store,
    get_settings,
)
from paymap.core.db import DBHelper
from paymap.core.errors import NotFoundError
from paymap.core.models import ImportRequest, JobStatus, PinRecord, ResolveRequest, UnresolvedItem, UploadAccepted
from paymap.core.settings import Settings
from paymap.core.utils import get_logger
from paymap.geocoding import GeocodeResolver
from paymap.services.reconciliation import list_unresolved, resolve_unresolved
from paymap.services.record_store import RecordStore
from paymap.workers.job_runner import HttpClientFactory, run_job

router = APIRouter()
logger = get_logger("paymap.api")

MULTIPART_FORM = "multipart/form-data"


@router.post(
    "/upload-csv",
    status_code=202,
    summary="Upload a statement CSV and start an import job",
    description=(
        "Upload a bank/payment statement export. "
        "The server starts a background job that geocodes each payment row and stores it as a pin. "
        "Returns a jobId that can be polled on /import-status.\n\n"
        "**Request:**\n"
        "- Content-Type: multipart/form-data\n"
        "- Form field: `file` (CSV file)\n"
        "- Header: `X-User-Id`\n\n"
        "**Response:**\n"
        "- 202 Accepted: `{ 'ok': true, 'jobId': '<uuid>' }`.\n"
        "- 400 Bad Request: Not a multipart form, or no `file` field.\n"
        "- 401 Unauthorized: No user id.\n"
        "- 500 Internal Server Error: The job could not be created."
    ),
    response_description="Job accepted. Returns jobId.",
    responses={
        202: {
            "description": "Job accepted. Returns jobId.",
            "content": {
                "application/json": {"example": {"ok": True, "jobId": "123e4567-e89b-12d3-a456-426614174000"}}
            },
        },
        400: {
            "description": "Invalid upload.",
            "content": {"application/json": {"example": {"detail": "Missing file field"}}},
        },
        401: {"description": "Not authenticated."},
        500: {"description": "Internal server error."},
    },
)
async def upload_csv(
    request: Request,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user),
    db: DBHelper = Depends(get_db_conn),
    settings: Settings = Depends(get_settings),
    client_factory: HttpClientFactory = Depends(get_http_client_factory),
) -> JSONResponse:
    """Validate the upload, record the job, and schedule the import."""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith(MULTIPART_FORM):
        logger.warning(f"Rejected upload with content type '{content_type}'")
        raise HTTPException(400, "Expected multipart/form-data")
    try:
        form = await request.form()
    except MultiPartException as exc:
        raise HTTPException(400, "Malformed multipart body") from exc
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        logger.warning("Rejected upload without a file field")
        raise HTTPException(400, "Missing file field")

    logger.info(f"Received upload request: user={user_id}, filename={upload.filename}")
    try:
        content = await upload.read()
        job_id = str(uuid.uuid4())
        db.create_job(job_id, user_id, upload.filename)
    except Exception:
        logger.exception("Error in upload_csv")
        raise
    import_request = ImportRequest(job_id=job_id, owner_id=user_id, filename=upload.filename, content=content)
    background_tasks.add_task(run_job, import_request, settings, client_factory)
    logger.info(f"Background job scheduled: job_id={job_id}")
    return JSONResponse(UploadAccepted(job_id=job_id).model_dump(by_alias=True), status_code=202)


@router.get(
    "/import-status",
    response_model=JobStatus,
    summary="Get import job status",
    description=(
        "Poll an import job by jobId.\n\n"
        "**Query parameter:**\n"
        "- `jobId`: The job identifier returned by /upload-csv.\n\n"
        "**Response:**\n"
        "- 200 OK: Status, counters and timestamps.\n"
        "- 400 Bad Request: jobId missing.\n"
        "- 404 Not Found: Unknown jobId."
    ),
    responses={
        200: {
            "description": "Job found.",
            "content": {
                "application/json": {
                    "example": {
                        "jobId": "123e4567-e89b-12d3-a456-426614174000",
                        "status": "done",
                        "filename": "statement.csv",
                        "importedCount": 12,
                        "skippedCount": 1,
                        "unresolvedCount": 2,
                        "startedAt": "2025-05-18T10:30:49+00:00",
                        "updatedAt": "2025-05-18T10:31:10+00:00",
                        "finishedAt": "2025-05-18T10:31:10+00:00",
                        "error": None,
                    }
                }
            },
        },
        400: {"description": "jobId missing."},
        404: {"description": "Job not found."},
    },
)
async def get_import_status(
    job_id: str | None = Query(default=None, alias="jobId"),
    db: DBHelper = Depends(get_db_conn),
) -> dict:
    """Get the status of an import job."""
    if not job_id:
        raise HTTPException(400, "jobId is required")
    row = db.get_job_status(job_id)
    if not row:
        raise HTTPException(404, "Job not found")
    return row


@router.get(
    "/unresolved",
    response_model=list[UnresolvedItem],
    summary="List unresolved payments",
    description="List the caller's payment rows whose place could not be geocoded.",
)
async def get_unresolved(
    user_id: str = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
) -> list[UnresolvedItem]:
    """List the caller's unresolved items."""
    return list_unresolved(store, user_id)


@router.post(
    "/unresolved/resolve",
    summary="Resolve an unresolved payment with manual coordinates",
    description=(
        "Body: `{ 'id': '<item id>', 'latitude': 35.66, 'longitude': 139.70 }`.\n\n"
        "Creates the pin (unless one already exists at the same timestamp), remembers the "
        "coordinates for the place so later imports resolve it automatically, and removes the item.\n\n"
        "- 200 OK: `{ 'ok': true }`.\n"
        "- 400 Bad Request: Invalid body.\n"
        "- 404 Not Found: Unknown id."
    ),
    responses={400: {"description": "Invalid body."}, 404: {"description": "Unknown id."}},
)
async def resolve_item(
    request: Request,
    user_id: str = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
    resolver: GeocodeResolver = Depends(get_manual_resolver),
) -> dict:
    """Apply manual coordinates to one unresolved item."""
    try:
        payload = ResolveRequest.model_validate_json(await request.body())
    except ValidationError as exc:
        raise HTTPException(400, "Expected JSON body {id, latitude, longitude} with numeric coordinates") from exc
    try:
        resolve_unresolved(store, resolver, user_id, payload.id, payload.latitude, payload.longitude)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc
    return {"ok": True}


@router.get(
    "/pins",
    response_model=list[PinRecord],
    summary="List pins",
    description="List the caller's pins in time order, optionally for one month (`month=YYYY-MM`).",
)
async def get_pins(
    month: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
    user_id: str = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
) -> list[PinRecord]:
    """List the caller's pins."""
    return store.list_pins(user_id, month)


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
