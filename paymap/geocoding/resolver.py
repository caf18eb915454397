"""GeocodeResolver: cache-first resolution of place names over a chain of providers.

A place is looked up in the shared geocode cache first. On a miss each available backend is tried in priority order; the first candidate is written back to the cache. Provider failures never escape: they are logged and count as "no candidate", so callers only ever see coordinates or None.
"""

import httpx

from paymap.core.models import MANUAL_SOURCE, GeocodeResult
from paymap.core.utils import get_logger
from paymap.geocoding.base import GeocodeBackend
from paymap.services.record_store import RecordStore

logger = get_logger("paymap.geocode")


def normalize_place(place: str) -> str:
    """Cache key form of a place name: whitespace collapsed, trimmed, case-folded."""
    return " ".join(place.split()).casefold()


class GeocodeResolver:
    """Resolve free-text place names to coordinates."""

    def __init__(self, store: RecordStore, backends: list[GeocodeBackend], scope: str) -> None:
        """Initialize the resolver with the record store, provider chain and country scope."""
        self.store = store
        self.backends = backends
        self.scope = scope

    async def resolve(self, place: str) -> GeocodeResult | None:
        """Return coordinates for place, or None if no provider has a candidate."""
        query = (place or "").strip()
        if not query:
            return None
        key = normalize_place(query)
        cached = self.store.get_cache(self.scope, key)
        if cached is not None:
            logger.info(f"Geocode cache hit for '{query}'")
            return cached
        for backend in self.backends:
            if not backend.is_available:
                logger.debug(f"Skipping unavailable geocode backend '{backend.name}'")
                continue
            result = await self._query(backend, query)
            if result is not None:
                self.store.put_cache(self.scope, key, result)
                return result
        logger.info(f"No geocode candidate for '{query}'")
        return None

    async def _query(self, backend: GeocodeBackend, query: str) -> GeocodeResult | None:
        try:
            return await backend.lookup(query)
        except httpx.HTTPStatusError as exc:
            logger.warning(f"{backend.name} returned HTTP {exc.response.status_code} for '{query}'")
        except httpx.HTTPError as exc:
            logger.warning(f"{backend.name} request failed for '{query}': {exc}")
        except (ValueError, KeyError, TypeError, IndexError) as exc:
            logger.warning(f"{backend.name} returned an unusable payload for '{query}': {exc}")
        return None

    def remember_manual(self, place: str, latitude: float, longitude: float) -> GeocodeResult:
        """Upsert a manually supplied location for place."""
        entry = GeocodeResult(
            latitude=latitude,
            longitude=longitude,
            display_name=MANUAL_SOURCE,
            source=MANUAL_SOURCE,
        )
        self.store.put_cache(self.scope, normalize_place(place), entry)
        return entry
