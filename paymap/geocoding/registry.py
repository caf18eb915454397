"""Backend registry for geocoding providers.

This module provides a registry of backend classes so the provider chain can be configured by name.
"""

from typing import ClassVar

import httpx

from paymap.core.settings import Settings
from paymap.geocoding.base import GeocodeBackend


class BackendRegistry:
    """Registry for geocoding backend classes."""

    _registry: ClassVar[dict[str, type[GeocodeBackend]]] = {}

    @classmethod
    def register(cls, name: str, backend_cls: type[GeocodeBackend]) -> None:
        """Register a backend class with a given name."""
        cls._registry[name] = backend_cls

    @classmethod
    def get(cls, name: str) -> type[GeocodeBackend]:
        """Retrieve a backend class by name."""
        return cls._registry[name]

    @classmethod
    def available(cls) -> list[str]:
        """List all registered backend names."""
        return list(cls._registry.keys())

    @classmethod
    def build_chain(cls, names: list[str], client: httpx.AsyncClient, settings: Settings) -> list[GeocodeBackend]:
        """Instantiate backends in priority order."""
        unknown = [name for name in names if name not in cls._registry]
        if unknown:
            msg = f"Unknown geocode backends {unknown}; available: {cls.available()}"
            raise ValueError(msg)
        return [cls.get(name)(client, settings) for name in names]
