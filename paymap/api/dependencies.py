"""FastAPI dependencies for DI (settings, DB, store, resolver, caller identity).

This module provides dependency injection helpers so endpoints stay thin and tests can swap collaborators such as the HTTP client used for geocoding.
"""

from collections.abc import Iterator

from fastapi import Depends, Header, HTTPException

from paymap.core.db import DBHelper, get_db
from paymap.core.kv import KVStore
from paymap.core.settings import Settings, get_settings
from paymap.geocoding import GeocodeResolver
from paymap.services.record_store import RecordStore
from paymap.workers.job_runner import HttpClientFactory, default_http_client

USER_HEADER = "X-User-Id"


def get_current_user(x_user_id: str | None = Header(default=None, alias=USER_HEADER)) -> str:
    """Return the opaque user id set by the session layer in front of the API."""
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(401, "Not authenticated")
    return x_user_id.strip()


def get_db_conn() -> Iterator[DBHelper]:
    """Provide a database helper for dependency injection, closed after the request."""
    db = get_db()
    try:
        yield db
    finally:
        db.close()


def get_record_store() -> RecordStore:
    """Provide the record store over the shared key-value namespace."""
    return RecordStore(KVStore())


def get_manual_resolver(
    settings: Settings = Depends(get_settings),
    store: RecordStore = Depends(get_record_store),
) -> GeocodeResolver:
    """Provide a resolver used only to record manual corrections (no providers)."""
    return GeocodeResolver(store, [], settings.geocode_country)


def get_http_client_factory() -> HttpClientFactory:
    """Provide the factory for the HTTP client used by background imports."""
    return default_http_client


__all__ = [
    "USER_HEADER",
    "get_current_user",
    "get_db_conn",
    "get_http_client_factory",
    "get_manual_resolver",
    "get_record_store",
    "get_settings",
]
