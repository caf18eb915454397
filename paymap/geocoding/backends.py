"""Concrete geocoding providers: Google Geocoding (primary) and Nominatim (fallback)."""

from paymap.core.models import GeocodeResult
from paymap.core.utils import get_logger
from paymap.geocoding.base import GeocodeBackend
from paymap.geocoding.registry import BackendRegistry

logger = get_logger("paymap.geocode")


class GoogleGeocodeBackend(GeocodeBackend):
    """Google Geocoding API restricted to one country."""

    name = "google"

    @property
    def is_available(self) -> bool:
        """Only usable with an API key."""
        return bool(self.settings.google_geocode_api_key)

    async def lookup(self, place: str) -> GeocodeResult | None:
        """Query the Geocoding API and return its first result."""
        params = {
            "address": place,
            "components": f"country:{self.settings.geocode_country.upper()}",
            "key": self.settings.google_geocode_api_key,
        }
        response = await self.client.get(self.settings.google_geocode_url, params=params)
        response.raise_for_status()
        data = response.json()
        status = data.get("status")
        if status != "OK":
            if status != "ZERO_RESULTS":
                logger.warning(f"Google status {status} for '{place}': {data.get('error_message', '')}")
            return None
        results = data.get("results") or []
        if not results:
            return None
        first = results[0]
        location = first["geometry"]["location"]
        return GeocodeResult(
            latitude=float(location["lat"]),
            longitude=float(location["lng"]),
            display_name=first.get("formatted_address") or place,
            source=self.name,
        )


class NominatimBackend(GeocodeBackend):
    """OpenStreetMap Nominatim search restricted to one country."""

    name = "nominatim"

    async def lookup(self, place: str) -> GeocodeResult | None:
        """Query Nominatim and return its first hit."""
        params = {
            "q": place,
            "format": "jsonv2",
            "countrycodes": self.settings.geocode_country.lower(),
            "limit": 1,
        }
        headers = {"User-Agent": self.settings.nominatim_user_agent}
        url = f"{self.settings.nominatim_url.rstrip('/')}/search"
        response = await self.client.get(url, params=params, headers=headers)
        response.raise_for_status()
        hits = response.json()
        if not hits:
            return None
        first = hits[0]
        return GeocodeResult(
            latitude=float(first["lat"]),
            longitude=float(first["lon"]),
            display_name=first.get("display_name") or place,
            source=self.name,
        )


BackendRegistry.register(GoogleGeocodeBackend.name, GoogleGeocodeBackend)
BackendRegistry.register(NominatimBackend.name, NominatimBackend)
