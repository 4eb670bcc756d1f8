"""Unit tests for supply_etl.validators."""

from __future__ import annotations

import pytest

from supply_etl.validators import (
    RowValidationError,
    require_email,
    require_non_empty,
    require_phone_number,
    require_postal_code,
)


# ---------------------------------------------------------------------------
# require_non_empty
# ---------------------------------------------------------------------------

class TestRequireNonEmpty:
    def test_returns_trimmed(self):
        assert require_non_empty({"Morada": "  Rua A  "}, "Morada") == "Rua A"

    def test_blank_fails_naming_field(self):
        with pytest.raises(RowValidationError) as exc_info:
            require_non_empty({"Morada": "   "}, "Morada")
        assert str(exc_info.value) == "Field 'Morada' is required (value: '   ')"

    def test_absent_fails_naming_field(self):
        with pytest.raises(RowValidationError, match="Field 'Morada' is missing"):
            require_non_empty({}, "Morada")

    def test_none_value_fails(self):
        with pytest.raises(RowValidationError, match="'Morada'"):
            require_non_empty({"Morada": None}, "Morada")


# ---------------------------------------------------------------------------
# require_postal_code
# ---------------------------------------------------------------------------

class TestRequirePostalCode:
    def test_exact(self):
        assert require_postal_code({"CP": "1649-035"}, "CP") == "1649-035"

    def test_trailing_text_tolerated_and_dropped(self):
        assert require_postal_code({"CP": "1649-035 Lisboa"}, "CP") == "1649-035"

    def test_missing_hyphen(self):
        with pytest.raises(RowValidationError) as exc_info:
            require_postal_code({"CP": "1649035"}, "CP")
        assert str(exc_info.value) == "Field 'CP' is not a valid postal code (value: '1649035')"

    def test_leading_text_rejected(self):
        with pytest.raises(RowValidationError):
            require_postal_code({"CP": "CP 1649-035"}, "CP")

    def test_blank_reports_required(self):
        with pytest.raises(RowValidationError, match="is required"):
            require_postal_code({"CP": ""}, "CP")

    @pytest.mark.parametrize("value", ["١٦٤٩-٠٣٥", "１６４９-０３５"])
    def test_non_ascii_digits_rejected(self, value):
        with pytest.raises(RowValidationError, match="is not a valid postal code"):
            require_postal_code({"CP": value}, "CP")


# ---------------------------------------------------------------------------
# require_email
# ---------------------------------------------------------------------------

class TestRequireEmail:
    def test_valid(self):
        assert require_email({"Email": "ana@example.pt"}, "Email") == "ana@example.pt"

    def test_no_domain_check(self):
        assert require_email({"Email": "ana@localhost"}, "Email") == "ana@localhost"

    def test_case_preserved(self):
        assert require_email({"Email": "Ana@Example.PT"}, "Email") == "Ana@Example.PT"

    @pytest.mark.parametrize("value", ["ana.example.pt", "@example.pt", "ana@", "ana @ example"])
    def test_invalid(self, value):
        with pytest.raises(RowValidationError, match="Field 'Email' is not a valid email"):
            require_email({"Email": value}, "Email")


# ---------------------------------------------------------------------------
# require_phone_number
# ---------------------------------------------------------------------------

class TestRequirePhoneNumber:
    def test_nine_digits(self):
        assert require_phone_number({"Tel": "912345678"}, "Tel") == "912345678"

    def test_international_prefix(self):
        assert require_phone_number({"Tel": "+351912345678"}, "Tel") == "+351912345678"

    def test_trailing_text_tolerated_and_kept(self):
        assert require_phone_number({"Tel": "912345678 (ext. 12)"}, "Tel") == "912345678 (ext. 12)"

    @pytest.mark.parametrize("value", ["91234567", "912 345 678", "tel 912345678", "++351912345678"])
    def test_invalid(self, value):
        with pytest.raises(RowValidationError, match="Field 'Tel' is not a valid phone number"):
            require_phone_number({"Tel": value}, "Tel")

    @pytest.mark.parametrize("value", ["９１２３４５６７８", "+٩١٢٣٤٥٦٧٨"])
    def test_non_ascii_digits_rejected(self, value):
        with pytest.raises(RowValidationError, match="is not a valid phone number"):
            require_phone_number({"Tel": value}, "Tel")
