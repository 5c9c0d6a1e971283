"""
CSV sheet writer for pipeline runs.

Writes a RunResult as a set of CSV sheets:
    - DATA: one row per derived record, columns in field order
    - VARIABLES: variable dictionary (identifier, type, source, table, description)
    - SUMMARY: run statistics and data-quality counts
"""

import csv
import os
from enum import Enum
from typing import IO, Any, Dict, List

from surveyquant.pipeline import RunResult


class SheetKind(Enum):
    """Sheets produced for a run."""
    DATA = "data"            # Derived records
    VARIABLES = "variables"  # Variable dictionary
    SUMMARY = "summary"      # Run statistics


def _cell(value: Any) -> Any:
    """Render a value; null becomes an empty cell, numbers stay unquoted."""
    if value is None:
        return ""
    return value


def _data_rows(result: RunResult) -> List[List[Any]]:
    field_ids = [spec.field_id for spec in result.field_specs]
    if not field_ids and result.records:
        field_ids = list(result.records[0].field_ids)
    rows: List[List[Any]] = [field_ids]
    for record in result.records:
        rows.append([_cell(record.get(fid)) for fid in field_ids])
    return rows


def _variable_rows(result: RunResult) -> List[List[Any]]:
    rows: List[List[Any]] = [["field_id", "type", "source", "table", "description"]]
    for spec in result.field_specs:
        rows.append([
            spec.field_id,
            spec.field_type.value,
            spec.source,
            spec.table or "",
            spec.description,
        ])
    return rows


def _summary_rows(result: RunResult) -> List[List[Any]]:
    s = result.summary
    rows: List[List[Any]] = [["section", "key", "value"]]
    rows.append(["counts", "raw_total", s.raw_total])
    rows.append(["counts", "eligible_total", s.eligible_total])
    rows.append(["counts", "excluded_total", s.excluded_total])
    rows.append(["counts", "eligibility_rate", round(s.eligibility_rate, 4)])
    for field_id, rate in s.non_response_rates.items():
        rows.append(["non_response_rate", field_id, round(rate, 4)])
    for table, count in sorted(s.unexpected_values.items()):
        rows.append(["unexpected_values", table, count])
    for column, count in sorted(s.missing_fields.items()):
        rows.append(["missing_fields", column, count])
    for warning in s.warnings:
        rows.append(["warning", "", warning])
    return rows


_ROW_BUILDERS = {
    SheetKind.DATA: _data_rows,
    SheetKind.VARIABLES: _variable_rows,
    SheetKind.SUMMARY: _summary_rows,
}


def write_sheet(result: RunResult, kind: SheetKind, fh: IO[str]) -> None:
    """Write one sheet of result to an open text stream."""
    writer = csv.writer(fh, lineterminator="\n")
    writer.writerows(_ROW_BUILDERS[kind](result))


def save_sheets(result: RunResult, out_dir: str, prefix: str = "") -> Dict[SheetKind, str]:
    """
    Write every sheet to out_dir as "{prefix}{kind}.csv".

    Returns:
        SheetKind -> written file path
    """
    os.makedirs(out_dir, exist_ok=True)
    paths: Dict[SheetKind, str] = {}
    for kind in SheetKind:
        path = os.path.join(out_dir, f"{prefix}{kind.value}.csv")
        with open(path, "w", encoding="utf-8", newline="") as f:
            write_sheet(result, kind, f)
        paths[kind] = path
    return paths
