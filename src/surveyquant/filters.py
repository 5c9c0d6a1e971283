"""
Record Filter: decides which raw rows enter transformation.

A FilterPolicy is a stateless predicate over one raw record, typically
a completion-status gate such as "Finished == True". Ineligible rows
produce no DerivedRecord and do not count in eligible denominators.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from surveyquant.model import is_absent, normalize_label
from surveyquant.registry import ConfigurationError


logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]


def _token(value: Any) -> str:
    """Case-insensitive comparison token for a raw cell."""
    if is_absent(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return normalize_label(value).casefold()


@dataclass(frozen=True)
class FilterPolicy:
    """
    Eligibility predicate evaluated independently per record.

    Properties:
        column:
            Raw column holding the inclusion status (e.g., "Finished").
            If None, every record is eligible.

        eligible_values:
            Values of column that make a record eligible. Compared
            case-insensitively after label normalization; booleans
            compare as "true"/"false".

        missing_default:
            Eligibility of a record that lacks the column.
            None means no fallback is defined: a run whose data never
            contains the column is a configuration error, and single
            records without it are excluded.

    Example:
        FilterPolicy(column="Finished", eligible_values=("True", "1"))
    """

    column: Optional[str] = None
    eligible_values: Tuple[Any, ...] = ("true",)
    missing_default: Optional[bool] = None

    def __post_init__(self) -> None:
        values = self.eligible_values
        if isinstance(values, (str, bool, int, float)):
            values = (values,)
        object.__setattr__(self, "eligible_values", tuple(values))

    @classmethod
    def accept_all(cls) -> "FilterPolicy":
        return cls(column=None)

    @property
    def tokens(self) -> frozenset:
        return frozenset(_token(v) for v in self.eligible_values)

    def is_eligible(self, record: RawRecord) -> bool:
        if self.column is None:
            return True
        if self.column not in record:
            return bool(self.missing_default)
        return _token(record[self.column]) in self.tokens

    def validate(self, columns: Iterable[str]) -> None:
        """
        Check the policy against the columns a run will see.

        Raises:
            ConfigurationError: If the policy column is not among
                columns and no missing_default is defined
        """
        if self.column is None or self.missing_default is not None:
            return
        if self.column not in set(columns):
            raise ConfigurationError(
                f"Filter column {self.column!r} does not exist in the data "
                f"and no missing_default is defined"
            )


def is_eligible(record: RawRecord, policy: FilterPolicy) -> bool:
    return policy.is_eligible(record)


def partition_records(
    records: Iterable[RawRecord], policy: FilterPolicy
) -> Tuple[List[Tuple[int, RawRecord]], List[int]]:
    """
    Split records into eligible (index, record) pairs and excluded indices.

    Indices are 0-based positions in the input; input order is kept.
    """
    eligible: List[Tuple[int, RawRecord]] = []
    excluded: List[int] = []
    for index, record in enumerate(records):
        if policy.is_eligible(record):
            eligible.append((index, record))
        else:
            logger.debug("Excluding row %d: %s=%r", index, policy.column, record.get(policy.column))
            excluded.append(index)
    return eligible, excluded


__all__ = ["FilterPolicy", "is_eligible", "partition_records", "RawRecord"]
