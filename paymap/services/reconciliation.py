"""Manual reconciliation of payment rows the geocoders could not place."""

from paymap.core.errors import NotFoundError
from paymap.core.models import PinRecord, UnresolvedItem
from paymap.core.utils import get_logger
from paymap.geocoding.resolver import GeocodeResolver
from paymap.services.record_store import RecordStore

logger = get_logger("paymap.reconcile")


def list_unresolved(store: RecordStore, owner_id: str) -> list[UnresolvedItem]:
    """Return every pending unresolved item of the owner."""
    return store.list_unresolved(owner_id)


def resolve_unresolved(
    store: RecordStore,
    resolver: GeocodeResolver,
    owner_id: str,
    item_id: str,
    latitude: float,
    longitude: float,
) -> bool:
    """Apply manual coordinates to an unresolved item.

    Writes the pin unless one already exists at the item's dedup key, records
    the coordinates in the geocode cache so later imports of the same place
    resolve on their own, and deletes the item. Returns whether a pin was written.
    """
    item = store.get_unresolved(owner_id, item_id)
    if item is None:
        msg = f"Unresolved item not found: {item_id}"
        raise NotFoundError(msg)

    created = False
    if not store.exists(owner_id, item.timestamp_parts):
        store.put_pin(
            PinRecord(
                owner_id=owner_id,
                bucket=item.timestamp_parts,
                amount=item.amount,
                latitude=latitude,
                longitude=longitude,
            )
        )
        created = True
    else:
        logger.info(f"Pin already present for {owner_id} at {item.timestamp_parts.as_key()}; not overwriting")

    resolver.remember_manual(item.place, latitude, longitude)
    store.delete_unresolved(owner_id, item_id)
    logger.info(f"Resolved item {item_id} ('{item.place}') manually at {latitude},{longitude}")
    return created
