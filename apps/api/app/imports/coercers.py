"""Normalization of raw spreadsheet rows into member records."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser

from app.imports.mappers import REQUIRED_FIELDS

logger = logging.getLogger(__name__)


@dataclass
class CoercionResult:
    """Result of coercion operation."""

    success: bool
    coerced_value: Any = None
    error: Optional[str] = None


# Boolean patterns accepted for "Head of Family"
BOOLEAN_TRUE = ["yes", "y", "true", "1"]

GROUP_LEADER_ROLE = "group_leader"
DEFAULT_ROLE = "member"


@dataclass(frozen=True)
class MemberRow:
    """One normalized member record from an import file."""

    first_name: str
    last_name: str
    email: str
    phone: str
    family_name: str
    date_of_birth: str = ""
    gender: str = ""
    blood_group: str = ""
    address: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    head_of_family: bool = False
    group_memberships: str = ""
    role: str = DEFAULT_ROLE
    notes: str = ""
    row_number: int = field(default=0, compare=False)

    @property
    def group_names(self) -> list[str]:
        """Group names listed in the row, trimmed and lower-cased."""
        return [
            name.strip().lower()
            for name in self.group_memberships.split(",")
            if name.strip()
        ]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the job queue."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemberRow":
        """Rebuild a row serialized with ``to_dict``."""
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})


def coerce_date(value: Any) -> CoercionResult:
    """Coerce value to date (month-first when ambiguous)."""
    if value is None or value == "":
        return CoercionResult(success=False, error="Empty value")

    str_value = str(value).strip()

    try:
        parsed = date_parser.parse(str_value, dayfirst=False)
    except (ValueError, TypeError, OverflowError):
        return CoercionResult(
            success=False,
            error=f"Could not parse date: {str_value}",
        )

    if isinstance(parsed, datetime):
        return CoercionResult(success=True, coerced_value=parsed.date())
    if isinstance(parsed, date):
        return CoercionResult(success=True, coerced_value=parsed)
    return CoercionResult(success=False, error=f"Could not parse date: {str_value}")


def coerce_boolean(value: Any) -> bool:
    """True iff the cell reads yes/y/true/1 (case-insensitive)."""
    if value is None:
        return False
    return str(value).strip().lower() in BOOLEAN_TRUE


def coerce_role(value: Any) -> str:
    """Only ``group_leader`` is honoured; anything else imports as member."""
    if value is not None and str(value).strip().lower() == GROUP_LEADER_ROLE:
        return GROUP_LEADER_ROLE
    return DEFAULT_ROLE


def _cell(raw: dict[str, str], mapping: dict[str, str], target: str) -> str:
    for source_col, target_field in mapping.items():
        if target_field == target:
            value = raw.get(source_col, "")
            return str(value).strip() if value is not None else ""
    return ""


def normalize_member_row(
    raw: dict[str, str], mapping: dict[str, str], row_number: int
) -> MemberRow:
    """
    Build a ``MemberRow`` from a raw row.

    Args:
        raw: Row dictionary keyed by the file's header cells
        mapping: Header to field mapping from ``map_headers``
        row_number: Spreadsheet row number (header row is 1)

    Returns:
        Normalized row; strings trimmed, email lower-cased
    """
    def get(target: str) -> str:
        return _cell(raw, mapping, target)

    return MemberRow(
        first_name=get("first_name"),
        last_name=get("last_name"),
        email=get("email").lower(),
        phone=get("phone"),
        family_name=get("family_name"),
        date_of_birth=get("date_of_birth"),
        gender=get("gender"),
        blood_group=get("blood_group"),
        address=get("address"),
        emergency_contact_name=get("emergency_contact_name"),
        emergency_contact_phone=get("emergency_contact_phone"),
        head_of_family=coerce_boolean(get("head_of_family")),
        group_memberships=get("group_memberships"),
        role=coerce_role(get("role")),
        notes=get("notes"),
        row_number=row_number,
    )


def is_blank_row(raw: dict[str, str]) -> bool:
    """Check whether every cell in the row is empty."""
    return all(not str(v).strip() for v in raw.values() if v is not None)


def is_complete(row: MemberRow) -> bool:
    """Check that every required field has a value."""
    return all(getattr(row, name) for name in REQUIRED_FIELDS)


def parse_member_rows(
    raw_rows: list[dict[str, str]],
    mapping: dict[str, str],
    include_incomplete: bool = False,
) -> list[MemberRow]:
    """
    Normalize raw rows, dropping blank and (by default) incomplete ones.

    Args:
        raw_rows: Data rows in file order; index 0 is spreadsheet row 2
        mapping: Header to field mapping from ``map_headers``
        include_incomplete: Keep rows missing required fields so they are
            reported by validation instead of silently skipped

    Returns:
        List of normalized rows carrying their spreadsheet row numbers
    """
    rows: list[MemberRow] = []
    skipped = 0

    for index, raw in enumerate(raw_rows):
        if is_blank_row(raw):
            continue
        row = normalize_member_row(raw, mapping, row_number=index + 2)
        if not include_incomplete and not is_complete(row):
            skipped += 1
            continue
        rows.append(row)

    if skipped:
        logger.info(
            "Skipped incomplete import rows",
            extra={"skipped_rows": skipped, "kept_rows": len(rows)},
        )

    return rows
