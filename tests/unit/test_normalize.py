"""Unit tests for supply_etl.normalize."""

import pytest
from decimal import Decimal
from datetime import datetime, timezone

from supply_etl.normalize import (
    trim,
    normalize_lookup_name,
    parse_submission_ts,
    to_iso_instant,
    parse_numeric,
    parse_quantity,
)


# ---------------------------------------------------------------------------
# trim
# ---------------------------------------------------------------------------

class TestTrim:
    def test_strips_whitespace(self):
        assert trim("  hello  ") == "hello"

    def test_empty_string_returns_none(self):
        assert trim("") is None

    def test_whitespace_only_returns_none(self):
        assert trim("   ") is None

    def test_none_returns_none(self):
        assert trim(None) is None


# ---------------------------------------------------------------------------
# normalize_lookup_name
# ---------------------------------------------------------------------------

class TestNormalizeLookupName:
    def test_lowercases_and_trims(self):
        assert normalize_lookup_name("  LISBOA ") == "lisboa"

    def test_keeps_accents(self):
        assert normalize_lookup_name("Évora") == "évora"

    def test_none_is_empty(self):
        assert normalize_lookup_name(None) == ""

    def test_blank_is_empty(self):
        assert normalize_lookup_name("   ") == ""


# ---------------------------------------------------------------------------
# parse_submission_ts / to_iso_instant
# ---------------------------------------------------------------------------

class TestParseSubmissionTs:
    def test_month_first_unpadded(self):
        assert parse_submission_ts("3/27/2020 9:05:09") == datetime(
            2020, 3, 27, 9, 5, 9, tzinfo=timezone.utc
        )

    def test_padded(self):
        assert parse_submission_ts("03/07/2020 14:00:00") == datetime(
            2020, 3, 7, 14, 0, 0, tzinfo=timezone.utc
        )

    def test_day_first_rejected_when_impossible(self):
        assert parse_submission_ts("27/03/2020 14:05:09") is None

    def test_missing_time_rejected(self):
        assert parse_submission_ts("3/27/2020") is None

    def test_none(self):
        assert parse_submission_ts(None) is None

    def test_blank(self):
        assert parse_submission_ts("  ") is None


class TestToIsoInstant:
    def test_millisecond_z_format(self):
        ts = datetime(2020, 3, 27, 14, 5, 9, tzinfo=timezone.utc)
        assert to_iso_instant(ts) == "2020-03-27T14:05:09.000Z"

    def test_truncates_microseconds(self):
        ts = datetime(2020, 3, 27, 14, 5, 9, 123987, tzinfo=timezone.utc)
        assert to_iso_instant(ts) == "2020-03-27T14:05:09.123Z"


# ---------------------------------------------------------------------------
# parse_numeric / parse_quantity
# ---------------------------------------------------------------------------

class TestParseNumeric:
    def test_integer(self):
        assert parse_numeric("5") == Decimal("5")

    def test_decimal_comma(self):
        assert parse_numeric("2,5") == Decimal("2.5")

    def test_garbage(self):
        assert parse_numeric("cinco") is None

    def test_nan_rejected(self):
        assert parse_numeric("NaN") is None

    def test_none(self):
        assert parse_numeric(None) is None


class TestParseQuantity:
    @pytest.mark.parametrize("raw", ["0", "-3", "", "  ", None, "abc"])
    def test_non_positive_or_missing(self, raw):
        assert parse_quantity(raw) is None

    def test_positive(self):
        assert parse_quantity(" 12 ") == Decimal("12")
