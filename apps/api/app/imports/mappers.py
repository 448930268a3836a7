"""Column schema and header mapping for member imports."""

from __future__ import annotations

from dataclasses import dataclass

from fuzzywuzzy import fuzz


@dataclass(frozen=True)
class ImportColumn:
    """One column of the member import template."""

    target_field: str
    header: str
    required: bool = False
    variations: tuple[str, ...] = ()
    width: int = 15


# Template column order is the wire format users fill in.
MEMBER_IMPORT_COLUMNS: tuple[ImportColumn, ...] = (
    ImportColumn("first_name", "First Name*", True, ("first_name", "firstname", "given name", "forename")),
    ImportColumn("last_name", "Last Name*", True, ("last_name", "lastname", "surname")),
    ImportColumn("email", "Email*", True, ("e-mail", "email address", "email_address"), width=25),
    ImportColumn("phone", "Phone*", True, ("phone number", "phone_number", "mobile", "telephone")),
    ImportColumn("date_of_birth", "Date of Birth", False, ("dob", "birth date", "birthday")),
    ImportColumn("gender", "Gender", False, ("sex",), width=10),
    ImportColumn("blood_group", "Blood Group", False, ("blood type",), width=12),
    ImportColumn("address", "Address", False, ("home address",), width=30),
    ImportColumn("emergency_contact_name", "Emergency Contact Name", False, ("emergency contact",), width=20),
    ImportColumn("emergency_contact_phone", "Emergency Contact Phone", False, ("emergency phone",), width=20),
    ImportColumn("family_name", "Family Name*", True, ("family", "household"), width=20),
    ImportColumn("head_of_family", "Head of Family", False, ("head", "family head")),
    ImportColumn("group_memberships", "Group Memberships", False, ("groups",), width=25),
    ImportColumn("role", "Role", False, ()),
    ImportColumn("notes", "Notes", False, ("note", "comments"), width=30),
)

REQUIRED_FIELDS = tuple(c.target_field for c in MEMBER_IMPORT_COLUMNS if c.required)

TEMPLATE_HEADERS = [c.header for c in MEMBER_IMPORT_COLUMNS]


class HeaderMappingError(ValueError):
    """Raised when a file's header row cannot be mapped to the schema."""

    def __init__(self, message: str, missing: list[str], suggestions: dict[str, str]):
        super().__init__(message)
        self.missing = missing
        self.suggestions = suggestions


def normalize_column_name(name: str) -> str:
    """Normalize column name for matching."""
    return (
        str(name).lower().strip().rstrip("*").strip()
        .replace("_", " ").replace("-", " ").replace(".", " ")
    )


def calculate_similarity(source: str, target: str) -> int:
    """Calculate similarity score between source and target column names."""
    return fuzz.ratio(normalize_column_name(source), normalize_column_name(target))


def _lookup_table() -> dict[str, str]:
    table: dict[str, str] = {}
    for column in MEMBER_IMPORT_COLUMNS:
        table[normalize_column_name(column.header)] = column.target_field
        table[normalize_column_name(column.target_field)] = column.target_field
        for variation in column.variations:
            table[normalize_column_name(variation)] = column.target_field
    return table


_HEADER_LOOKUP = _lookup_table()


def map_headers(headers: list[str]) -> dict[str, str]:
    """
    Map file headers to member fields by name.

    Matching is case-insensitive, ignores a trailing ``*`` and accepts known
    aliases. Unknown headers are left out of the result.

    Args:
        headers: Header cells from the first row of the file

    Returns:
        Dictionary mapping source header to target field

    Raises:
        HeaderMappingError: If a required column is missing
    """
    mapping: dict[str, str] = {}
    used_fields: set[str] = set()

    for header in headers:
        target = _HEADER_LOOKUP.get(normalize_column_name(header))
        if target and target not in used_fields:
            mapping[header] = target
            used_fields.add(target)

    missing = [
        c.header for c in MEMBER_IMPORT_COLUMNS
        if c.required and c.target_field not in used_fields
    ]
    if missing:
        unmapped = [h for h in headers if h not in mapping]
        suggestions = suggest_headers(unmapped, missing)
        message = f"Missing required columns: {', '.join(missing)}"
        if suggestions:
            hints = ", ".join(
                f"'{source}' looks like '{target}'"
                for source, target in suggestions.items()
            )
            message += f" ({hints})"
        raise HeaderMappingError(message, missing, suggestions)

    return mapping


def unmapped_headers(headers: list[str], mapping: dict[str, str]) -> list[str]:
    """Return headers that were not mapped to any field."""
    return [h for h in headers if h not in mapping and str(h).strip()]


def suggest_headers(
    source_columns: list[str], expected_headers: list[str], threshold: int = 70
) -> dict[str, str]:
    """
    Suggest which expected header each unmapped source column was meant to be.

    Args:
        source_columns: Headers that did not match the schema
        expected_headers: Template headers that are still missing
        threshold: Minimum fuzzy ratio to report a suggestion

    Returns:
        Dictionary mapping source column to best matching template header
    """
    suggestions: dict[str, str] = {}
    for source_col in source_columns:
        best_score = 0
        best_header = None
        for header in expected_headers:
            score = calculate_similarity(source_col, header)
            if score > best_score:
                best_score = score
                best_header = header
        if best_header and best_score >= threshold:
            suggestions[source_col] = best_header
    return suggestions
