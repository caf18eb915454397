"""Tests for manual reconciliation of unresolved items."""

import pytest

from paymap.core.errors import NotFoundError
from paymap.core.kv import KVStore
from paymap.core.models import GeocodeResult, PinRecord, TimeBucket, UnresolvedItem
from paymap.geocoding import GeocodeResolver, normalize_place
from paymap.services.reconciliation import list_unresolved, resolve_unresolved
from paymap.services.record_store import RecordStore

BUCKET = TimeBucket(year_month="2024-05", day="01", time="00:00:00")


@pytest.fixture
def store() -> RecordStore:
    """A record store holding one unresolved item for user-1."""
    store = RecordStore(KVStore())
    store.put_unresolved(
        UnresolvedItem(
            id="item-1",
            owner_id="user-1",
            place=" 渋谷区 ",
            amount=1200,
            timestamp="2024-05-01T00:00:00",
            timestamp_parts=BUCKET,
        )
    )
    return store


@pytest.fixture
def resolver(store: RecordStore) -> GeocodeResolver:
    """A provider-less resolver for manual entries."""
    return GeocodeResolver(store, [], "jp")


def test_resolve_creates_pin_and_cache_entry(store: RecordStore, resolver: GeocodeResolver) -> None:
    """The pin is written, the cache learns the place, and the item is removed."""
    created = resolve_unresolved(store, resolver, "user-1", "item-1", 35.66, 139.70)
    if not created:
        msg = "Expected a pin to be created"
        raise AssertionError(msg)
    pins = store.list_pins("user-1")
    if len(pins) != 1 or (pins[0].latitude, pins[0].longitude, pins[0].amount) != (35.66, 139.70, 1200.0):
        msg = f"Unexpected pins {pins}"
        raise AssertionError(msg)
    cached = store.get_cache("jp", normalize_place("渋谷区"))
    if cached != GeocodeResult(latitude=35.66, longitude=139.70, display_name="manual", source="manual"):
        msg = f"Unexpected cache entry {cached}"
        raise AssertionError(msg)
    if list_unresolved(store, "user-1"):
        msg = "Item should be deleted"
        raise AssertionError(msg)


def test_resolve_keeps_existing_pin(store: RecordStore, resolver: GeocodeResolver) -> None:
    """An existing pin at the same key is left alone, but the item is still consumed."""
    existing = PinRecord(owner_id="user-1", bucket=BUCKET, amount=1200, latitude=1.0, longitude=2.0)
    store.put_pin(existing)
    created = resolve_unresolved(store, resolver, "user-1", "item-1", 35.66, 139.70)
    if created:
        msg = "No pin should be created over an existing one"
        raise AssertionError(msg)
    if store.list_pins("user-1") != [existing]:
        msg = "Existing pin must be unchanged"
        raise AssertionError(msg)
    if store.get_unresolved("user-1", "item-1") is not None:
        msg = "Item should be deleted"
        raise AssertionError(msg)
    if store.get_cache("jp", normalize_place("渋谷区")) is None:
        msg = "Cache should still learn the manual location"
        raise AssertionError(msg)


def test_resolve_twice_is_not_found(store: RecordStore, resolver: GeocodeResolver) -> None:
    """The second resolution of the same id finds nothing."""
    resolve_unresolved(store, resolver, "user-1", "item-1", 35.66, 139.70)
    with pytest.raises(NotFoundError):
        resolve_unresolved(store, resolver, "user-1", "item-1", 35.66, 139.70)


def test_resolve_other_users_item_is_not_found(store: RecordStore, resolver: GeocodeResolver) -> None:
    """Items are only visible to their owner."""
    with pytest.raises(NotFoundError):
        resolve_unresolved(store, resolver, "user-2", "item-1", 35.66, 139.70)
    if store.get_unresolved("user-1", "item-1") is None:
        msg = "A failed attempt must not consume the item"
        raise AssertionError(msg)
