"""Geocoding package: provider base class, registry, concrete providers and the caching resolver."""

from . import backends  # noqa: F401  (registers the built-in providers)
from .base import GeocodeBackend  # noqa: F401
from .registry import BackendRegistry  # noqa: F401
from .resolver import GeocodeResolver, normalize_place  # noqa: F401
