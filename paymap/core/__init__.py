"""Core package: provides models, database helpers, the key-value store, settings, and shared utilities."""

from .db import get_db  # noqa: F401
from .kv import KVStore  # noqa: F401
from .models import GeocodeResult, JobStatus, PinRecord, TimeBucket, UnresolvedItem  # noqa: F401
from .settings import Settings  # noqa: F401
from .utils import get_logger  # noqa: F401
