"""Ordered key-value namespace over composite tuple keys.

Keys are tuples of strings. They are stored joined by the ASCII unit separator,
so lexical order of the encoded key follows the tuple order and a tuple prefix
maps onto a string prefix. Every call runs in its own session and commits on
its own; nothing spans two calls.
"""

from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from paymap.core.db import KVEntry, SessionLocal

KEY_SEPARATOR = "\x1f"

Key = Sequence[str]


def encode_key(key: Key) -> str:
    """Join the key parts into the stored string form."""
    parts = [str(part) for part in key]
    for part in parts:
        if KEY_SEPARATOR in part:
            msg = f"Key part may not contain the unit separator: {part!r}"
            raise ValueError(msg)
    return KEY_SEPARATOR.join(parts)


def decode_key(raw: str) -> tuple[str, ...]:
    """Split a stored key back into its parts."""
    return tuple(raw.split(KEY_SEPARATOR))


class KVStore:
    """SQLAlchemy-backed key-value store with prefix range scans."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        """Initialize the store with a session factory."""
        self.session_factory = session_factory

    def get(self, key: Key) -> Any | None:
        """Return the value stored at key, or None."""
        with self.session_factory() as session:
            entry = session.get(KVEntry, encode_key(key))
            return None if entry is None else entry.value

    def exists(self, key: Key) -> bool:
        """Check whether any value is stored at key."""
        with self.session_factory() as session:
            stmt = select(KVEntry.key).where(KVEntry.key == encode_key(key))
            return session.execute(stmt).first() is not None

    def set(self, key: Key, value: Any) -> None:
        """Store value at key, overwriting what was there."""
        with self.session_factory() as session:
            session.merge(KVEntry(key=encode_key(key), value=value))
            session.commit()

    def delete(self, key: Key) -> bool:
        """Delete the value at key; return whether something was deleted."""
        with self.session_factory() as session:
            entry = session.get(KVEntry, encode_key(key))
            if entry is None:
                return False
            session.delete(entry)
            session.commit()
            return True

    def list(self, prefix: Key) -> list[tuple[tuple[str, ...], Any]]:
        """Return (key, value) pairs under a tuple prefix, in key order."""
        # Range bounds rather than LIKE: SQLite LIKE ignores ASCII case.
        encoded = encode_key(prefix)
        lower = encoded + KEY_SEPARATOR
        upper = encoded + chr(ord(KEY_SEPARATOR) + 1)
        with self.session_factory() as session:
            stmt = (
                select(KVEntry)
                .where(KVEntry.key >= lower, KVEntry.key < upper)
                .order_by(KVEntry.key)
            )
            return [(decode_key(entry.key), entry.value) for entry in session.scalars(stmt)]
