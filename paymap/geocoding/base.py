"""Base geocoding backend abstraction.

This module defines the abstract base class for geocoding providers. Each provider turns free-text place names into coordinates, scoped to one country; the resolver tries providers in priority order.
"""

from abc import ABC, abstractmethod
from typing import ClassVar

import httpx

from paymap.core.models import GeocodeResult
from paymap.core.settings import Settings


class GeocodeBackend(ABC):
    """Abstract base class for all geocoding providers."""

    name: ClassVar[str] = ""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        """Initialize the backend with a shared HTTP client and settings."""
        self.client = client
        self.settings = settings

    @property
    def is_available(self) -> bool:
        """Whether the backend is configured well enough to be queried."""
        return True

    @abstractmethod
    async def lookup(self, place: str) -> GeocodeResult | None:
        """Return the first candidate for place, or None when there is none.

        Transport errors propagate; the resolver treats them as a miss.
        """
