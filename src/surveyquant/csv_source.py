"""
CSV data source: tabular survey export -> raw records.

Each data row becomes an ordered dict of column identifier -> cell text.
Empty cells stay "" and are treated as absent by the engine.

Survey platform exports often carry extra header rows under the column
identifiers (question text, import metadata); skip them with skip_rows.
"""

import csv
from io import StringIO
from typing import Dict, List, Optional


class CSVSourceError(Exception):
    """Raised when CSV input cannot be read as survey records."""
    pass


def read_records_string(csv_content: str, skip_rows: int = 0) -> List[Dict[str, str]]:
    """
    Parse CSV content into raw records.

    Args:
        csv_content: CSV as string, first row holding column identifiers
        skip_rows: Number of rows after the header to discard

    Returns:
        List of dicts in file order; short rows are padded with ""

    Raises:
        CSVSourceError: If the header is empty or repeats a column, a row
            is longer than the header, or the text is not valid CSV
    """
    reader = csv.reader(StringIO(csv_content))
    try:
        header: Optional[List[str]] = next(reader, None)
    except csv.Error as e:
        raise CSVSourceError(f"Malformed header row: {e}") from e

    if not header or not any(h.strip() for h in header):
        raise CSVSourceError("CSV is empty")

    header = [h.strip() for h in header]
    if header[0].startswith("\ufeff"):
        header[0] = header[0][1:]

    duplicates = sorted({h for h in header if header.count(h) > 1})
    if duplicates:
        raise CSVSourceError(f"Duplicate column names: {duplicates}")

    records: List[Dict[str, str]] = []
    try:
        for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is line 1)
            if row_num - 2 < skip_rows:
                continue
            if not row or not any(cell.strip() for cell in row):
                continue
            if len(row) > len(header):
                raise CSVSourceError(
                    f"Row {row_num} has {len(row)} cells but the header has {len(header)}"
                )
            padded = row + [""] * (len(header) - len(row))
            records.append(dict(zip(header, padded)))
    except csv.Error as e:
        raise CSVSourceError(f"Malformed CSV near line {reader.line_num}: {e}") from e

    return records


def read_records_file(filepath: str, skip_rows: int = 0, encoding: str = "utf-8-sig") -> List[Dict[str, str]]:
    """
    Parse a CSV file into raw records.

    Raises:
        FileNotFoundError: If file doesn't exist
        CSVSourceError: If the file cannot be decoded or parsing fails
    """
    try:
        with open(filepath, "r", encoding=encoding, newline="") as f:
            content = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"CSV file not found: {filepath}")
    except UnicodeDecodeError as e:
        raise CSVSourceError(f"{filepath} is not valid {encoding}: {e}") from e

    return read_records_string(content, skip_rows=skip_rows)


__all__ = [
    "read_records_string",
    "read_records_file",
    "CSVSourceError",
]
