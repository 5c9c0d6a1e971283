"""
Aggregation Summarizer: response and data-quality statistics for a run.

This module provides read-only aggregation over raw and derived records:
    - Raw, eligible and excluded counts
    - Per-field non-response counts and rates
    - Unexpected (unmapped) value counts per mapping table
    - Missing column counts
    - Warning lines for operator review

IMPORTANT: It does NOT modify records and feeds nothing back into
the engine. It only produces a report.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from surveyquant.filters import FilterPolicy
from surveyquant.model import (
    NO_RESPONSE,
    DerivedRecord,
    MissingFieldWarning,
    UnmappedValueWarning,
)


@dataclass
class SummaryStats:
    """Statistics for one processing run."""

    raw_total: int = 0
    eligible_total: int = 0
    excluded_total: int = 0
    eligibility_rate: float = 0.0

    # Non-response per output field (null or fallback label)
    non_response_counts: Dict[str, int] = field(default_factory=dict)
    non_response_rates: Dict[str, float] = field(default_factory=dict)

    # Data quality
    unexpected_values: Dict[str, int] = field(default_factory=dict)
    unexpected_value_detail: Dict[str, Dict[str, int]] = field(default_factory=dict)
    missing_fields: Dict[str, int] = field(default_factory=dict)

    warnings: List[str] = field(default_factory=list)

    @property
    def total_unexpected(self) -> int:
        return sum(self.unexpected_values.values())

    @property
    def total_missing(self) -> int:
        return sum(self.missing_fields.values())

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def _is_non_response(value: Any, fallback_label: str) -> bool:
    return value is None or value == fallback_label


def summarize(
    raw_records: Iterable[Mapping[str, Any]],
    derived_records: Iterable[DerivedRecord],
    filter_policy: FilterPolicy,
    fallback_label: str = NO_RESPONSE,
) -> SummaryStats:
    """
    Summarize a run.

    raw_total and eligible_total are computed over the full raw set
    with filter_policy; all per-field rates use the derived records
    (eligible rows only) as denominator.
    """
    raw = list(raw_records)
    derived = list(derived_records)
    stats = SummaryStats()

    # =========================================================================
    # 1. COUNTS
    # =========================================================================

    stats.raw_total = len(raw)
    stats.eligible_total = sum(1 for record in raw if filter_policy.is_eligible(record))
    stats.excluded_total = stats.raw_total - stats.eligible_total
    if stats.raw_total:
        stats.eligibility_rate = stats.eligible_total / stats.raw_total

    # =========================================================================
    # 2. NON-RESPONSE
    # =========================================================================

    counts: Dict[str, int] = {}
    for record in derived:
        for field_id, value in record.values.items():
            if field_id not in counts:
                counts[field_id] = 0
            if _is_non_response(value, fallback_label):
                counts[field_id] += 1

    stats.non_response_counts = counts
    if derived:
        stats.non_response_rates = {fid: n / len(derived) for fid, n in counts.items()}

    # =========================================================================
    # 3. DATA QUALITY
    # =========================================================================

    unexpected: Dict[str, int] = defaultdict(int)
    detail: Dict[str, Counter] = defaultdict(Counter)
    missing: Dict[str, int] = defaultdict(int)

    for record in derived:
        for warning in record.warnings:
            if isinstance(warning, UnmappedValueWarning):
                unexpected[warning.table] += 1
                detail[warning.table][warning.value] += 1
            elif isinstance(warning, MissingFieldWarning):
                missing[warning.column] += 1

    stats.unexpected_values = dict(unexpected)
    stats.unexpected_value_detail = {table: dict(c) for table, c in detail.items()}
    stats.missing_fields = dict(missing)

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if len(derived) != stats.eligible_total:
        stats.add_warning(
            f"Derived record count {len(derived)} differs from eligible count {stats.eligible_total}"
        )

    for table in sorted(stats.unexpected_values):
        values = ", ".join(repr(v) for v in sorted(stats.unexpected_value_detail[table]))
        stats.add_warning(
            f"Unexpected values for table {table}: {stats.unexpected_values[table]} ({values})"
        )

    for column in sorted(stats.missing_fields):
        stats.add_warning(
            f"Column {column} missing in {stats.missing_fields[column]} record(s)"
        )

    if stats.raw_total and stats.eligible_total == 0:
        stats.add_warning("No records passed the filter")

    return stats


__all__ = ["SummaryStats", "summarize"]
