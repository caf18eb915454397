"""Main entrypoint and application factory for the payment pin importer API.

This module initializes the FastAPI application, configures logging, creates the database tables, and exposes the Scalar API reference endpoint for interactive OpenAPI documentation. It also includes the main entrypoint for running the app with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from paymap.api.routes import router
from paymap.core.db import init_db
from paymap.core.settings import get_settings
from paymap.core.utils import ensure_dir, get_logger


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure logging to file and console, and ensure the log directory exists."""
    log_dir = Path(get_settings().log_dir)
    ensure_dir(log_dir)
    logger = get_logger()
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(log_dir / "paymap.log", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler to create the key-value and import job tables."""
    _ = app  # Silence unused argument warning
    try:
        init_db()
    except SQLAlchemyError:
        get_logger().exception("Failed to create database tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Payment Pin Importer API",
    description="""
    Imports bank/payment statement CSVs, geocodes each payment's counterparty, and stores the result as map pins.

    **Endpoints:**
    - `POST /upload-csv`: Upload a statement CSV and start an import job. Returns a `jobId`.
    - `GET /import-status?jobId=...`: Poll an import job.
    - `GET /unresolved`: List payments whose place could not be geocoded.
    - `POST /unresolved/resolve`: Supply coordinates for an unresolved payment.
    - `GET /pins`: List stored pins, optionally for one month.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> HTMLResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
