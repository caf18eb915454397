"""Test fixtures: an isolated SQLite database and a scripted geocoding provider."""

import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="paymap-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'paymap.db'}"
os.environ["LOG_DIR"] = str(_TMP_DIR / "logs")
os.environ["IMPORT_ROW_DELAY_SECONDS"] = "0"
os.environ["GOOGLE_GEOCODE_API_KEY"] = "test-key"

import httpx  # noqa: E402
import pytest  # noqa: E402

from paymap.api.dependencies import get_http_client_factory  # noqa: E402
from paymap.core.db import Base, engine  # noqa: E402
from paymap.core.settings import Settings  # noqa: E402

GOOGLE_HOST = "maps.googleapis.com"
NOMINATIM_HOST = "nominatim.openstreetmap.org"


class FakeGeocoder:
    """Scripted stand-in for the Google and Nominatim HTTP APIs."""

    def __init__(self) -> None:
        """Start with no known places and no failures."""
        self.google: dict[str, tuple[float, float]] = {}
        self.nominatim: dict[str, tuple[float, float]] = {}
        self.google_error: int | None = None
        self.nominatim_error: int | None = None
        self.network_down = False
        self.calls: list[tuple[str, str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        """Answer one provider request."""
        if self.network_down:
            msg = "network unreachable"
            raise httpx.ConnectError(msg, request=request)
        if request.url.host == GOOGLE_HOST:
            place = request.url.params["address"]
            self.calls.append(("google", place))
            if self.google_error:
                return httpx.Response(self.google_error, json={"status": "UNKNOWN_ERROR"})
            if place not in self.google:
                return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
            lat, lng = self.google[place]
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}, "formatted_address": place}],
                },
            )
        if request.url.host == NOMINATIM_HOST:
            place = request.url.params["q"]
            self.calls.append(("nominatim", place))
            if self.nominatim_error:
                return httpx.Response(self.nominatim_error, text="busy")
            if place not in self.nominatim:
                return httpx.Response(200, json=[])
            lat, lon = self.nominatim[place]
            return httpx.Response(200, json=[{"lat": str(lat), "lon": str(lon), "display_name": place}])
        return httpx.Response(404)

    def client(self, _settings: Settings | None = None) -> httpx.AsyncClient:
        """Build an AsyncClient routed to this fake."""
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def fresh_db() -> Iterator[None]:
    """Give every test empty tables."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def settings() -> Settings:
    """Settings as the app sees them under test."""
    return Settings()


@pytest.fixture
def geocoder() -> Iterator[FakeGeocoder]:
    """Route the app's geocoding traffic to a FakeGeocoder."""
    from main import app

    fake = FakeGeocoder()
    app.dependency_overrides[get_http_client_factory] = lambda: fake.client
    yield fake
    app.dependency_overrides.pop(get_http_client_factory, None)
