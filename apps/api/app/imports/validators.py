"""Validation rules for member import rows."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Optional

from app.imports.coercers import MemberRow, coerce_date


BLOOD_GROUPS = ("A+", "B+", "AB+", "O+", "A-", "B-", "AB-", "O-")
GENDERS = ("Male", "Female", "Other")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
MIN_PHONE_DIGITS = 10

# Required-field messages, checked in this order
REQUIRED_MESSAGES = (
    ("first_name", "First name is required"),
    ("last_name", "Last name is required"),
    ("email", "Email is required"),
    ("phone", "Phone is required"),
    ("family_name", "Family name is required"),
)


@dataclass
class ImportErrorEntry:
    """One entry of an import job's error (or warning) log."""

    row_number: int
    message: str
    data: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def validate_email_format(value: Any) -> Optional[str]:
    """Validate email format."""
    if not EMAIL_PATTERN.match(str(value)):
        return "Invalid email format"
    return None


def validate_phone_format(value: Any) -> Optional[str]:
    """Validate phone format (at least 10 digits)."""
    str_value = str(value)
    if not PHONE_PATTERN.match(str_value):
        return "Invalid phone number format"
    if len(re.sub(r"\D", "", str_value)) < MIN_PHONE_DIGITS:
        return "Invalid phone number format"
    return None


def validate_blood_group(value: Any) -> Optional[str]:
    if value and value not in BLOOD_GROUPS:
        return "Invalid blood group"
    return None


def validate_date_of_birth(value: Any) -> Optional[str]:
    if value and not coerce_date(value).success:
        return "Invalid date of birth format"
    return None


def validate_gender(value: Any) -> Optional[str]:
    if value and value not in GENDERS:
        return "Invalid gender. Must be Male, Female, or Other"
    return None


def validate_row(row: MemberRow, row_number: Optional[int] = None) -> Optional[ImportErrorEntry]:
    """
    Validate one member row.

    Checks run in a fixed order and stop at the first failure: required
    fields, email, phone, blood group, date of birth, gender.

    Args:
        row: Normalized row
        row_number: Spreadsheet row number; defaults to ``row.row_number``

    Returns:
        Error entry echoing the row data, or None if the row is valid
    """
    if row_number is None:
        row_number = row.row_number

    message: Optional[str] = None
    for field_name, required_message in REQUIRED_MESSAGES:
        if not getattr(row, field_name):
            message = required_message
            break

    if message is None:
        message = (
            validate_email_format(row.email)
            or validate_phone_format(row.phone)
            or validate_blood_group(row.blood_group)
            or validate_date_of_birth(row.date_of_birth)
            or validate_gender(row.gender)
        )

    if message is None:
        return None

    data = row.to_dict()
    data.pop("row_number", None)
    return ImportErrorEntry(row_number=row_number, message=message, data=data)
