"""Tests for import validation rules."""

from __future__ import annotations

from dataclasses import replace

import pytest

from app.imports.coercers import MemberRow
from app.imports.validators import (
    ImportErrorEntry,
    validate_email_format,
    validate_phone_format,
    validate_row,
)


@pytest.fixture
def valid_row() -> MemberRow:
    return MemberRow(
        first_name="John",
        last_name="Doe",
        email="john.doe@email.com",
        phone="+1234567890",
        family_name="Doe Family",
        date_of_birth="1985-06-15",
        gender="Male",
        blood_group="A+",
        row_number=2,
    )


class TestValidateRow:
    """Tests for validate_row."""

    def test_valid_row(self, valid_row):
        """A complete row passes."""
        assert validate_row(valid_row, 2) is None

    def test_optional_fields_may_be_empty(self, valid_row):
        """Blank optional fields are not checked."""
        row = replace(valid_row, date_of_birth="", gender="", blood_group="")
        assert validate_row(row, 2) is None

    @pytest.mark.parametrize(
        "field_name,message",
        [
            ("first_name", "First name is required"),
            ("last_name", "Last name is required"),
            ("email", "Email is required"),
            ("phone", "Phone is required"),
            ("family_name", "Family name is required"),
        ],
    )
    def test_required_fields(self, valid_row, field_name, message):
        """Each required field has its own message."""
        entry = validate_row(replace(valid_row, **{field_name: ""}), 5)
        assert entry == ImportErrorEntry(
            row_number=5, message=message, data=entry.data
        )

    def test_first_failure_wins(self, valid_row):
        """Checks stop at the first failure in the fixed order."""
        row = replace(valid_row, email="bad", phone="123", gender="Robot")
        entry = validate_row(row, 2)
        assert entry.message == "Invalid email format"

    def test_invalid_blood_group(self, valid_row):
        """Z+ is not a blood group."""
        entry = validate_row(replace(valid_row, blood_group="Z+"), 2)
        assert entry.message == "Invalid blood group"

    def test_ab_positive_accepted(self, valid_row):
        """AB+ is a valid blood group."""
        assert validate_row(replace(valid_row, blood_group="AB+"), 2) is None

    def test_invalid_date_of_birth(self, valid_row):
        """Unparseable dates fail."""
        entry = validate_row(replace(valid_row, date_of_birth="31st of Neveruary"), 2)
        assert entry.message == "Invalid date of birth format"

    def test_gender_is_case_sensitive(self, valid_row):
        """Only Male, Female and Other are accepted."""
        entry = validate_row(replace(valid_row, gender="male"), 2)
        assert entry.message == "Invalid gender. Must be Male, Female, or Other"
        assert validate_row(replace(valid_row, gender="Other"), 2) is None

    def test_entry_echoes_row_data(self, valid_row):
        """The error carries the offending row's data."""
        entry = validate_row(replace(valid_row, email="nope"), 9)
        assert entry.row_number == 9
        assert entry.data["email"] == "nope"
        assert "row_number" not in entry.data

    def test_row_number_defaults_to_row(self, valid_row):
        """Without an explicit number the row's own number is used."""
        entry = validate_row(replace(valid_row, email="nope", row_number=12))
        assert entry.row_number == 12


class TestFieldValidators:
    """Tests for individual field checks."""

    @pytest.mark.parametrize("email", ["a@b.co", "first.last+tag@church.org"])
    def test_valid_emails(self, email):
        assert validate_email_format(email) is None

    @pytest.mark.parametrize("email", ["plain", "a@b", "a b@c.com", "@b.com"])
    def test_invalid_emails(self, email):
        assert validate_email_format(email) == "Invalid email format"

    @pytest.mark.parametrize(
        "phone", ["+1234567890", "(012) 345-6789", "012 345 67 89"]
    )
    def test_valid_phones(self, phone):
        assert validate_phone_format(phone) is None

    @pytest.mark.parametrize("phone", ["123456789", "+1 (555) 12", "555-CALL-NOW"])
    def test_invalid_phones(self, phone):
        """Fewer than ten digits or stray characters fail."""
        assert validate_phone_format(phone) == "Invalid phone number format"
