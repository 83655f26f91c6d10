"""Normalization functions for fixture upload rows.

All functions accept raw decoded cell values (str | None, occasionally an
int or date from a spreadsheet decoder) and return the appropriate type or
None.
"""

from __future__ import annotations

import re
from datetime import date, datetime

DATE_FORMAT = "%d/%m/%Y"
_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_ROUND_RE = re.compile(r"^\d+$")


# ---------------------------------------------------------------------------
# Rule 1: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


# ---------------------------------------------------------------------------
# Rule 2: parse_fixture_date
# ---------------------------------------------------------------------------

def parse_fixture_date(value: str | date | None) -> date | None:
    """Parse a 'DD/MM/YYYY' fixture date.

    A date instance (spreadsheet decoders may yield one) is returned as-is;
    a datetime is reduced to its date.  Anything else that does not match
    the two-digit day/month, four-digit year layout, or names an impossible
    calendar day such as 31/02/2025, returns None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    v = trim(value)
    if v is None or not _DATE_RE.match(v):
        return None
    try:
        return datetime.strptime(v, DATE_FORMAT).date()
    except ValueError:
        return None


def format_fixture_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


# ---------------------------------------------------------------------------
# Rule 3: parse_round_number
# ---------------------------------------------------------------------------

def parse_round_number(value: str | int | None) -> int | None:
    """Return a positive round number, or None.

    Accepts ints and digit-only strings.  Zero, negatives, decimals and
    booleans are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    v = trim(value)
    if v is None or not _ROUND_RE.match(v):
        return None
    n = int(v)
    return n if n >= 1 else None


# ---------------------------------------------------------------------------
# Header normalization
# ---------------------------------------------------------------------------

def normalize_headers(raw: dict[str | None, str | None]) -> dict[str, str | None]:
    """Return a new dict with header keys whitespace-stripped.

    csv.DictReader stores overflow cells under a None key; those are dropped.
    """
    return {k.strip(): v for k, v in raw.items() if k is not None}
