"""Reading uploaded statement CSVs and locating the columns the importer needs."""

import io
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import pandas as pd

from paymap.core.errors import HeaderNotFoundError
from paymap.core.settings import Settings
from paymap.core.utils import get_logger

logger = get_logger("paymap.csv")

# Unquoted "¥1,200" splits into "¥1" and "200": a leading group of at most
# three digits followed by exact three-digit groups.
_LEADING_GROUP = re.compile(r"(?:^|\D)\d{1,3}$")
_THOUSANDS_GROUP = re.compile(r"\d{3}(?:\.\d+)?")


@dataclass(frozen=True)
class StatementRow:
    """The four raw cells of one statement row, plus its 1-based position."""

    index: int
    description: str
    date: str
    amount: str
    place: str


def rejoin_amount(width: int, amount_at: int | None) -> Callable[[list[str]], list[str] | None]:
    """Build the handler for rows with more fields than the header.

    The overflow is folded back into the amount cell when it reads as thousands
    groups split off an unquoted amount. Any other overlong row is dropped.
    """

    def handle(fields: list[str]) -> list[str] | None:
        extra = len(fields) - width
        if amount_at is not None and amount_at + extra < len(fields):
            head, groups = fields[amount_at], fields[amount_at + 1 : amount_at + 1 + extra]
            if _LEADING_GROUP.search(head) and all(_THOUSANDS_GROUP.fullmatch(group) for group in groups):
                amount = ",".join([head, *groups])
                return [*fields[:amount_at], amount, *fields[amount_at + 1 + extra :]]
        logger.warning(f"Dropping row with {len(fields)} fields for a {width}-column header: {fields}")
        return None

    return handle


def read_statement(content: bytes, settings: Settings) -> pd.DataFrame:
    """Parse the upload as delimited text; every cell is kept as a string.

    The header is read as an ordinary row so overlong data rows reach the
    bad-line handler instead of being truncated or turned into an index.
    """
    header = pd.read_csv(io.BytesIO(content), nrows=0, encoding=settings.csv_encoding)
    names = [str(column).strip() for column in header.columns]
    amount_at = names.index(settings.column_amount) if settings.column_amount in names else None
    frame = pd.read_csv(
        io.BytesIO(content),
        header=None,
        dtype=str,
        keep_default_na=False,
        engine="python",
        on_bad_lines=rejoin_amount(len(names), amount_at),
        encoding=settings.csv_encoding,
    )
    frame.columns = [str(column).strip() for column in frame.iloc[0]]
    return frame.iloc[1:].reset_index(drop=True).fillna("")


def locate_columns(frame: pd.DataFrame, settings: Settings) -> dict[str, str]:
    """Map logical fields to header names, failing if any is absent."""
    columns = settings.required_columns
    missing = [name for name in columns.values() if name not in frame.columns]
    if missing:
        raise HeaderNotFoundError(missing)
    return columns


def iter_rows(frame: pd.DataFrame, columns: dict[str, str]) -> Iterator[StatementRow]:
    """Yield the required cells of every data row in file order."""
    for index, record in enumerate(frame.to_dict(orient="records"), start=1):
        yield StatementRow(
            index=index,
            description=record[columns["description"]],
            date=record[columns["date"]],
            amount=record[columns["amount"]],
            place=record[columns["place"]],
        )
