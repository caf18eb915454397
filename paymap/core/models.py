"""Pydantic models for the payment pin importer.

This module defines the records written to the key-value store (pins, unresolved items, geocode cache entries), the import descriptor handed to the background worker, and the request/response bodies of the API. JSON field names are camelCase.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MANUAL_SOURCE = "manual"


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeBucket(CamelModel):
    """Second-resolution timestamp parts; with the owner they form the dedup key."""

    year_month: str
    day: str
    time: str

    def as_key(self) -> tuple[str, str, str]:
        """Return the parts in key order."""
        return (self.year_month, self.day, self.time)


class PinRecord(CamelModel):
    """A stored payment with amount and coordinates."""

    owner_id: str
    bucket: TimeBucket
    amount: float
    latitude: float
    longitude: float

    def stored_value(self) -> dict:
        """Return the value written under the pin key."""
        return {"data": self.amount, "latitude": self.latitude, "longitude": self.longitude}


class UnresolvedItem(CamelModel):
    """A payment row whose place could not be geocoded, waiting for a manual fix."""

    id: str
    owner_id: str
    place: str
    amount: float
    timestamp: str
    timestamp_parts: TimeBucket


class GeocodeResult(CamelModel):
    """Coordinates for a place, as returned by a provider or read from the cache."""

    latitude: float
    longitude: float
    display_name: str = ""
    source: str = ""


class JobStatus(CamelModel):
    """Pollable state of an import job."""

    job_id: str
    owner_id: str
    status: str
    filename: str | None = None
    imported_count: int = 0
    skipped_count: int = 0
    unresolved_count: int = 0
    started_at: str
    updated_at: str | None = None
    finished_at: str | None = None
    error: str | None = None


class UploadAccepted(CamelModel):
    """Response body of an accepted upload."""

    ok: bool = True
    job_id: str


class ResolveRequest(BaseModel):
    """Manual coordinates for one unresolved item."""

    model_config = ConfigDict(strict=True)

    id: str = Field(min_length=1)
    latitude: float = Field(allow_inf_nan=False)
    longitude: float = Field(allow_inf_nan=False)


@dataclass(frozen=True)
class ImportRequest:
    """Everything the background worker needs to run one import."""

    job_id: str
    owner_id: str
    filename: str | None
    content: bytes
