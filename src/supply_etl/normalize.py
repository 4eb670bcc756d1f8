"""Normalization functions for supply-request CSV ingestion.

Parsers accept str | None and return the appropriate type or None.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

# Google Forms "Carimbo de data/hora" export: month first, unpadded hour.
_SUBMISSION_TS_FORMAT = "%m/%d/%Y %H:%M:%S"


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
# Rule 2: normalize_lookup_name  (reference catalog keys)
# ---------------------------------------------------------------------------

def normalize_lookup_name(value: str | None) -> str:
    """Lowercase and trim a reference-table display name.

    Applied identically when the catalog is loaded and when a row value
    is looked up, so matching is an exact comparison on the result.
    Returns "" for None or blank input.
    """
    if value is None:
        return ""
    return value.strip().lower()


# ---------------------------------------------------------------------------
# Rule 3: parse_submission_ts
# ---------------------------------------------------------------------------

def parse_submission_ts(value: str | None) -> datetime | None:
    """Parse 'MM/DD/YYYY h:mm:ss' into an aware UTC datetime, or None."""
    v = trim(value)
    if v is None:
        return None
    try:
        return datetime.strptime(v, _SUBMISSION_TS_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def to_iso_instant(ts: datetime) -> str:
    """Render a UTC datetime as '2020-03-27T14:05:09.000Z'."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + (
        f"{ts.microsecond // 1000:03d}Z"
    )


# ---------------------------------------------------------------------------
# Rule 4: parse_numeric
# ---------------------------------------------------------------------------

def parse_numeric(value: str | None) -> Decimal | None:
    """Parse a decimal number from a string, returning None on failure.

    A decimal comma ("2,5") is accepted since the forms are filled in
    with Portuguese locale settings.
    """
    v = trim(value)
    if v is None:
        return None
    try:
        d = Decimal(v.replace(",", "."))
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return d


def parse_quantity(value: str | None) -> Decimal | None:
    """Return a strictly positive quantity, or None for anything else."""
    d = parse_numeric(value)
    if d is None or d <= 0:
        return None
    return d
