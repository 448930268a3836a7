"""Downloadable Excel template for member imports."""

from __future__ import annotations

import io

import pandas as pd
from openpyxl.styles import Font, PatternFill

from app.core.config import settings
from app.imports.mappers import MEMBER_IMPORT_COLUMNS, TEMPLATE_HEADERS
from app.imports.validators import BLOOD_GROUPS, GENDERS

TEMPLATE_SHEET = "Members Import Template"
INSTRUCTIONS_SHEET = "Instructions"
TEMPLATE_FILENAME = "member_import_template.xlsx"

SAMPLE_ROWS = [
    [
        "John", "Doe", "john.doe@email.com", "+1234567890", "1985-06-15",
        "Male", "A+", "123 Main St, City, State", "Jane Doe", "+1234567891",
        "Doe Family", "Yes", "Choir, Youth Group", "member",
        "Active member since 2020",
    ],
    [
        "Jane", "Doe", "jane.doe@email.com", "+1234567891", "1987-08-20",
        "Female", "B+", "123 Main St, City, State", "John Doe", "+1234567890",
        "Doe Family", "No", "Choir", "member", "Spouse of John",
    ],
]


def _instructions() -> list[str]:
    required = [c.header.rstrip("*") for c in MEMBER_IMPORT_COLUMNS if c.required]
    max_mb = settings.max_upload_bytes // (1024 * 1024)
    return [
        f"{settings.church_name} - Member Import Template",
        "",
        "REQUIRED FIELDS (marked with *):",
        *[f"• {name}" for name in required],
        "",
        "FIELD FORMATS:",
        "• Date of Birth: YYYY-MM-DD or MM/DD/YYYY",
        f"• Gender: {', '.join(GENDERS[:-1])}, or {GENDERS[-1]}",
        f"• Blood Group: {', '.join(BLOOD_GROUPS)}",
        "• Head of Family: Yes/No, Y/N, True/False, 1/0",
        "• Group Memberships: Comma-separated group names",
        "• Role: member or group_leader",
        "",
        "NOTES:",
        "• Families will be created automatically",
        "• Group memberships will create pending requests",
        "• Duplicate emails/phones will update existing members",
        f"• Maximum file size: {max_mb}MB, Maximum records: {settings.max_import_rows:,}",
    ]


def generate_template() -> bytes:
    """
    Build the member import workbook.

    Returns:
        Excel file content as bytes
    """
    df = pd.DataFrame(SAMPLE_ROWS, columns=TEMPLATE_HEADERS)
    instructions = pd.DataFrame({"Instructions": _instructions()})

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        instructions.to_excel(
            writer, sheet_name=INSTRUCTIONS_SHEET, index=False, header=False
        )

        # Format header row
        worksheet = writer.sheets[TEMPLATE_SHEET]
        header_fill = PatternFill(
            start_color="FFE0E0E0", end_color="FFE0E0E0", fill_type="solid"
        )
        for cell in worksheet[1]:
            cell.font = Font(bold=True)
            cell.fill = header_fill

        for column, cells in zip(MEMBER_IMPORT_COLUMNS, worksheet.columns):
            worksheet.column_dimensions[cells[0].column_letter].width = column.width

        instructions_sheet = writer.sheets[INSTRUCTIONS_SHEET]
        instructions_sheet["A1"].font = Font(bold=True)
        instructions_sheet.column_dimensions["A"].width = 60

    buffer.seek(0)
    return buffer.read()
