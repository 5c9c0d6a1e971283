"""
Run orchestration: raw records -> filter -> engine -> summary.

Configuration problems surface before any record is transformed;
per-record problems travel with the DerivedRecords.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from surveyquant.engine import transform_all
from surveyquant.filters import FilterPolicy, partition_records
from surveyquant.model import DerivedRecord, FieldSpec
from surveyquant.registry import MappingRegistry
from surveyquant.summarizer import SummaryStats, summarize


logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Output handed to the output composer."""

    records: List[DerivedRecord] = field(default_factory=list)
    summary: SummaryStats = field(default_factory=SummaryStats)
    field_specs: List[FieldSpec] = field(default_factory=list)
    excluded_indices: List[int] = field(default_factory=list)


def _observed_columns(records: List[Mapping[str, Any]]) -> set:
    columns = set()
    for record in records:
        columns.update(record.keys())
    return columns


def run_pipeline(
    raw_records: Iterable[Mapping[str, Any]],
    registry: MappingRegistry,
    policy: Optional[FilterPolicy] = None,
    max_workers: Optional[int] = None,
) -> RunResult:
    """
    Process a full set of raw records.

    Args:
        raw_records: Ordered raw records from the data source
        registry: Validated conversion configuration
        policy: Eligibility filter (defaults to accepting every record)
        max_workers: Thread fan-out for transformation (optional)

    Returns:
        RunResult with derived records in input order and summary stats

    Raises:
        ConfigurationError: If the filter column exists nowhere in the
            data and the policy defines no fallback
    """
    policy = policy or FilterPolicy.accept_all()
    raw = list(raw_records)

    if raw:
        policy.validate(_observed_columns(raw))

    eligible, excluded = partition_records(raw, policy)
    logger.info(
        "%s: %d raw records, %d eligible, %d excluded",
        registry.name, len(raw), len(eligible), len(excluded),
    )

    derived = transform_all(eligible, registry, max_workers=max_workers)
    summary = summarize(raw, derived, policy, fallback_label=registry.fallback_label)

    if summary.total_unexpected:
        logger.info("%d unexpected values across %d table(s)",
                    summary.total_unexpected, len(summary.unexpected_values))

    return RunResult(
        records=derived,
        summary=summary,
        field_specs=registry.field_specs(),
        excluded_indices=excluded,
    )


__all__ = ["RunResult", "run_pipeline"]
