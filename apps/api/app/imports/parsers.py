"""File parsers for member import formats using pandas."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from io import BytesIO
from typing import Iterator, Optional
import mimetypes

import pandas as pd


class ImportFormat(str, Enum):
    """Supported import formats."""

    CSV = "csv"
    XLSX = "xlsx"
    XLS = "xls"
    UNKNOWN = "unknown"


class ImportFileError(ValueError):
    """Structural problem with an uploaded file (unreadable, bad headers)."""


def _clean_row(row: pd.Series) -> dict[str, str]:
    return {
        str(k).strip(): (str(v).strip() if pd.notna(v) else "")
        for k, v in row.items()
    }


class FileParser(ABC):
    """Abstract base class for file parsers."""

    @abstractmethod
    def detect_format(
        self, file_content: bytes, filename: str
    ) -> ImportFormat:
        """Detect file format from content and filename."""

    @abstractmethod
    def parse_headers(self, file_content: bytes) -> list[str]:
        """Parse and return column headers."""

    @abstractmethod
    def parse_rows(self, file_content: bytes) -> Iterator[dict[str, str]]:
        """Parse rows and yield as dictionaries, blank rows included."""


class CSVParser(FileParser):
    """CSV parser using pandas chunksize for memory efficiency."""

    def detect_format(
        self, file_content: bytes, filename: str
    ) -> ImportFormat:
        """Detect CSV format."""
        if filename.lower().endswith(".csv"):
            return ImportFormat.CSV
        return ImportFormat.UNKNOWN

    def parse_headers(self, file_content: bytes) -> list[str]:
        """Parse CSV headers."""
        df = pd.read_csv(BytesIO(file_content), nrows=0)
        return [str(col).strip() for col in df.columns.tolist()]

    def parse_rows(self, file_content: bytes) -> Iterator[dict[str, str]]:
        """Parse CSV rows using pandas chunksize for memory efficiency."""
        for chunk in pd.read_csv(
            BytesIO(file_content),
            chunksize=1000,
            dtype=str,  # Keep everything as string for import
            na_values=[],
            keep_default_na=False,
            skip_blank_lines=False,  # Keep spreadsheet row numbering intact
            encoding_errors="replace",
        ):
            chunk = chunk.fillna("")
            for _, row in chunk.iterrows():
                yield _clean_row(row)


class XLSXParser(FileParser):
    """Excel XLSX file parser using pandas (first worksheet only)."""

    engine = "openpyxl"

    def detect_format(
        self, file_content: bytes, filename: str
    ) -> ImportFormat:
        """Detect XLSX format."""
        if filename.lower().endswith((".xlsx", ".xlsm")):
            return ImportFormat.XLSX
        mime_type, _ = mimetypes.guess_type(filename)
        if mime_type == (
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        ):
            return ImportFormat.XLSX
        return ImportFormat.UNKNOWN

    def _read(self, file_content: bytes, nrows: Optional[int] = None) -> pd.DataFrame:
        return pd.read_excel(
            BytesIO(file_content),
            sheet_name=0,
            nrows=nrows,
            dtype=str,
            na_values=[],
            keep_default_na=False,
            engine=self.engine,
        )

    def parse_headers(self, file_content: bytes) -> list[str]:
        """Parse XLSX headers from first row."""
        df = self._read(file_content, nrows=0)
        return [str(col).strip() for col in df.columns.tolist()]

    def parse_rows(self, file_content: bytes) -> Iterator[dict[str, str]]:
        """Parse XLSX rows from the first worksheet."""
        df = self._read(file_content).fillna("")
        for _, row in df.iterrows():
            yield _clean_row(row)


class XLSParser(XLSXParser):
    """Legacy Excel 97-2003 parser (requires xlrd)."""

    engine = "xlrd"

    def detect_format(
        self, file_content: bytes, filename: str
    ) -> ImportFormat:
        """Detect XLS format."""
        if filename.lower().endswith(".xls"):
            return ImportFormat.XLS
        return ImportFormat.UNKNOWN


def detect_file_format(file_content: bytes, filename: str) -> ImportFormat:
    """Detect file format using all available parsers."""
    parsers = [
        XLSXParser(),
        XLSParser(),
        CSVParser(),
    ]

    for parser in parsers:
        format_type = parser.detect_format(file_content, filename)
        if format_type != ImportFormat.UNKNOWN:
            return format_type

    return ImportFormat.UNKNOWN


def get_parser(format_type: ImportFormat) -> FileParser:
    """Get appropriate parser for format."""
    parsers = {
        ImportFormat.CSV: CSVParser(),
        ImportFormat.XLSX: XLSXParser(),
        ImportFormat.XLS: XLSParser(),
    }
    if format_type not in parsers:
        raise ValueError(f"Unsupported import format: {format_type}")
    return parsers[format_type]


def read_sheet(
    file_content: bytes, format_type: ImportFormat
) -> tuple[list[str], list[dict[str, str]]]:
    """
    Read headers and all data rows from an import file.

    Row ``i`` of the returned list is spreadsheet row ``i + 2`` (the header is
    row 1); blank rows are kept so that numbering stays aligned.

    Raises:
        ImportFileError: If the file cannot be read or has no header row
    """
    parser = get_parser(format_type)
    try:
        headers = parser.parse_headers(file_content)
        rows = list(parser.parse_rows(file_content))
    except ImportFileError:
        raise
    except Exception as e:
        raise ImportFileError(f"File parsing error: {e}") from e

    if not [h for h in headers if h and not h.startswith("Unnamed:")]:
        raise ImportFileError("File has no header row")

    return headers, rows
