"""Composite keys and record access on top of the key-value store.

Key layout (order-sensitive for range scans):

- pins:        ("pins", owner, year-month, day, time)
- unresolved:  ("unresolved", owner, item id)
- geocode:     ("geocode", country scope, normalized place)
"""

from typing import Any

from paymap.core.kv import KVStore
from paymap.core.models import GeocodeResult, PinRecord, TimeBucket, UnresolvedItem
from paymap.core.utils import get_logger

PIN_NAMESPACE = "pins"
UNRESOLVED_NAMESPACE = "unresolved"
GEOCODE_NAMESPACE = "geocode"

logger = get_logger("paymap.store")


def pin_key(owner_id: str, bucket: TimeBucket) -> tuple[str, ...]:
    """Compose the dedup key of a pin."""
    return (PIN_NAMESPACE, owner_id, *bucket.as_key())


def unresolved_key(owner_id: str, item_id: str) -> tuple[str, ...]:
    """Compose the key of an unresolved item."""
    return (UNRESOLVED_NAMESPACE, owner_id, item_id)


def cache_key(scope: str, place_key: str) -> tuple[str, ...]:
    """Compose the key of a geocode cache entry."""
    return (GEOCODE_NAMESPACE, scope, place_key)


class RecordStore:
    """Pins, unresolved items and geocode cache entries in one ordered namespace.

    Each method is a single store call. Sequences such as exists-then-put are
    not atomic against a concurrent writer.
    """

    def __init__(self, kv: KVStore) -> None:
        """Initialize the record store over a key-value store."""
        self.kv = kv

    def exists(self, owner_id: str, bucket: TimeBucket) -> bool:
        """Check whether a pin is already stored at the dedup key."""
        return self.kv.exists(pin_key(owner_id, bucket))

    def put_pin(self, record: PinRecord) -> None:
        """Write a pin, overwriting whatever is at its key."""
        self.kv.set(pin_key(record.owner_id, record.bucket), record.stored_value())

    def list_pins(self, owner_id: str, year_month: str | None = None) -> list[PinRecord]:
        """List an owner's pins in key order, optionally for a single month."""
        prefix = (PIN_NAMESPACE, owner_id) if year_month is None else (PIN_NAMESPACE, owner_id, year_month)
        pins = []
        for key, value in self.kv.list(prefix):
            _, owner, ym, day, time = key
            pins.append(
                PinRecord(
                    owner_id=owner,
                    bucket=TimeBucket(year_month=ym, day=day, time=time),
                    amount=value["data"],
                    latitude=value["latitude"],
                    longitude=value["longitude"],
                )
            )
        return pins

    def put_unresolved(self, item: UnresolvedItem) -> None:
        """Store an unresolved item under its owner."""
        self.kv.set(unresolved_key(item.owner_id, item.id), item.model_dump(mode="json"))

    def get_unresolved(self, owner_id: str, item_id: str) -> UnresolvedItem | None:
        """Return one of the owner's unresolved items, or None."""
        value = self.kv.get(unresolved_key(owner_id, item_id))
        return None if value is None else UnresolvedItem.model_validate(value)

    def list_unresolved(self, owner_id: str) -> list[UnresolvedItem]:
        """List the owner's unresolved items in store order."""
        return [UnresolvedItem.model_validate(value) for _, value in self.kv.list((UNRESOLVED_NAMESPACE, owner_id))]

    def delete_unresolved(self, owner_id: str, item_id: str) -> bool:
        """Delete one of the owner's unresolved items."""
        return self.kv.delete(unresolved_key(owner_id, item_id))

    def get_cache(self, scope: str, place_key: str) -> GeocodeResult | None:
        """Read a geocode cache entry."""
        value: Any = self.kv.get(cache_key(scope, place_key))
        return None if value is None else GeocodeResult.model_validate(value)

    def put_cache(self, scope: str, place_key: str, entry: GeocodeResult) -> None:
        """Write a geocode cache entry; the last writer wins."""
        logger.info(f"Caching geocode for '{place_key}' ({scope}): {entry.latitude},{entry.longitude} [{entry.source}]")
        self.kv.set(cache_key(scope, place_key), entry.model_dump(mode="json"))
