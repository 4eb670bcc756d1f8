"""supply_etl.validators

Stateless presence/format checks against a single CSV row.

Every check either returns the accepted value or raises
RowValidationError with a self-describing message of the form
``Field '<field>' <problem> (value: '<value>')``.

The postal-code and phone patterns are anchored at the start of the
value only: trailing characters after a valid prefix are accepted.
The historical export relies on this, so do not tighten to a full match.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class RowValidationError(ValueError):
    """Raised when a row field is missing, malformed or unresolvable.

    Caught at row granularity; never aborts a run.
    """


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# ASCII digits only.
_POSTAL_CODE_RE = re.compile(r"[0-9]{4}-[0-9]{3}")
_EMAIL_RE = re.compile(r"\S+@\S+")
_PHONE_RE = re.compile(r"\+?[0-9]{9,}")


def field_error(field: str, problem: str, value: str | None) -> RowValidationError:
    return RowValidationError(f"Field '{field}' {problem} (value: '{value or ''}')")


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def require_non_empty(row: Mapping[str, str | None], field: str) -> str:
    """Return the trimmed value of *field*; absent or blank is an error."""
    raw = row.get(field)
    if raw is None:
        raise field_error(field, "is missing", raw)
    value = raw.strip()
    if not value:
        raise field_error(field, "is required", raw)
    return value


def require_postal_code(row: Mapping[str, str | None], field: str) -> str:
    """Return the leading 'NNNN-NNN' portion of *field*."""
    value = require_non_empty(row, field)
    m = _POSTAL_CODE_RE.match(value)
    if not m:
        raise field_error(field, "is not a valid postal code", value)
    return m.group(0)


def require_email(row: Mapping[str, str | None], field: str) -> str:
    """Return *field* when it contains something shaped like a@b."""
    value = require_non_empty(row, field)
    if not _EMAIL_RE.search(value):
        raise field_error(field, "is not a valid email", value)
    return value


def require_phone_number(row: Mapping[str, str | None], field: str) -> str:
    """Return *field* when it starts with an optional '+' and 9+ digits."""
    value = require_non_empty(row, field)
    if not _PHONE_RE.match(value):
        raise field_error(field, "is not a valid phone number", value)
    return value
