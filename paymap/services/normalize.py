"""Amount and date normalization for raw statement cells.

Both normalizers are total: malformed input yields None, which callers treat
as a rejected row rather than an error.
"""

import math
import re

import pandas as pd

from paymap.core.models import TimeBucket

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_DATE_SEPARATORS = re.compile(r"[./]")


def normalize_amount(raw: object) -> float | None:
    """Strip currency symbols and grouping, returning the numeric amount or None."""
    if raw is None:
        return None
    cleaned = _NON_NUMERIC.sub("", str(raw))
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_date(raw: object) -> pd.Timestamp | None:
    """Parse a statement date such as ``2024/05/01`` or ``2024.05.01 12:30``."""
    if raw is None:
        return None
    text = _DATE_SEPARATORS.sub("-", str(raw)).strip()
    if not text:
        return None
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed


def time_bucket(timestamp: pd.Timestamp) -> TimeBucket:
    """Split a timestamp into the year-month, day and time parts of the dedup key."""
    return TimeBucket(
        year_month=timestamp.strftime("%Y-%m"),
        day=timestamp.strftime("%d"),
        time=timestamp.strftime("%H:%M:%S"),
    )
