"""
Core Data Model Objects

Defines the declarative configuration and the per-record results of the
survey quantification engine.

These are pure data classes representing:
    - Mapping tables (ordinal and midpoint conversions)
    - Field declarations (passthrough, scalar, threshold indicator)
    - Multi-select groups (checkbox questions)
    - Derived records (one per eligible respondent)
    - Per-record warnings (unmapped values, missing columns)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about file formats or spreadsheets
        - Are immutable once constructed
        - Are fully serializable
        - Describe configuration and results, not control flow
"""

from __future__ import annotations

import math
import operator
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union


NO_RESPONSE = "No Response"
"""Fallback label substituted for absent passthrough and multi-select values."""

DEFAULT_DELIMITER = "; "

Scalar = Union[int, float]

_DASHES_RE = re.compile(r"[\u2010-\u2015\u2212]")
_WHITESPACE_RE = re.compile(r"\s+")
_TOKEN_SPLIT_RE = re.compile(r"[^0-9A-Za-z]+")


def is_absent(value: Any) -> bool:
    """
    True when a raw cell carries no answer.

    Absent means None, a float NaN (as produced by dataframe readers),
    or a string that is empty after stripping.
    """
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def normalize_label(value: Any) -> str:
    """
    Canonical form of a raw answer used for table lookups.

    Strips, collapses internal whitespace and folds typographic dashes
    to '-', so "30–60 minutes" and "30-60  minutes" share a key.
    Case is preserved.
    """
    text = str(value)
    text = _DASHES_RE.sub("-", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def label_token(label: str) -> str:
    """
    Identifier-safe token for a human-readable label.

    "Transfer out" -> "TransferOut", "Staff" -> "Staff".
    """
    parts = [p for p in _TOKEN_SPLIT_RE.split(label) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


class TableKind(Enum):
    """What the numbers in a mapping table mean."""

    ORDINAL = "ordinal"    # rank position on a scale
    MIDPOINT = "midpoint"  # centre of a reported range


class FieldType(Enum):
    """Output field types exposed to the output composer."""

    STRING = "string"
    NUMBER = "number"
    INDICATOR = "indicator"


class Comparator(Enum):
    """
    Comparison operators supported by threshold indicators.

    Keep this minimal. Every operator here must be meaningful
    when comparing a mapped scalar against a fixed threshold.
    """

    GREATER_EQUAL = ">="
    GREATER_THAN = ">"
    LESS_EQUAL = "<="
    LESS_THAN = "<"
    EQUALS = "=="
    NOT_EQUALS = "!="

    def holds(self, value: Scalar, threshold: Scalar) -> bool:
        return _COMPARISONS[self](value, threshold)


_COMPARISONS = {
    Comparator.GREATER_EQUAL: operator.ge,
    Comparator.GREATER_THAN: operator.gt,
    Comparator.LESS_EQUAL: operator.le,
    Comparator.LESS_THAN: operator.lt,
    Comparator.EQUALS: operator.eq,
    Comparator.NOT_EQUALS: operator.ne,
}


@dataclass(frozen=True)
class MappingTable:
    """
    Named conversion from expected raw answers to numbers.

    A value of None is the null sentinel: the answer is a valid
    non-response ("No Response", "Not applicable") rather than a number.

    Examples:
        Satisfaction (ordinal):
            "Very dissatisfied" -> 1 ... "Very satisfied" -> 5
            "No Response" -> None

        ResponseTime (midpoint):
            "30-60 minutes" -> 45
            "Not applicable" -> None

    Properties:
        name: Stable key used by scalar fields to reference the table
        values: Raw label -> number or None, in declared order
        kind: Ordinal rank or range midpoint (documentation only)
        description: Human-readable description (optional)

    IMPORTANT:
        Keys are matched after normalize_label(); two keys that
        normalize to the same label are a configuration error,
        detected by the registry.
    """

    name: str
    values: Mapping[str, Optional[Scalar]]
    kind: TableKind = TableKind.ORDINAL
    description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def labels(self) -> Tuple[str, ...]:
        return tuple(self.values.keys())


@dataclass(frozen=True)
class PassthroughField:
    """
    Verbatim copy of a raw column into the derived record.

    Absent values are replaced by the registry's fallback label.

    Properties:
        column: Raw column identifier (e.g., "Q15")
        label: Construct name appended to the column (e.g., "Satisfaction")
    """

    column: str
    label: Optional[str] = None

    @property
    def field_id(self) -> str:
        if self.label:
            return f"{self.column}_{self.label}"
        return self.column


@dataclass(frozen=True)
class ScalarField:
    """
    Numeric lookup of a raw column through a mapping table.

    Field naming:
        "{column}_{label}_{suffix}"
        Q15 + Satisfaction + Scalar -> "Q15_Satisfaction_Scalar"
        Q10 + ResponseTime + Minutes -> "Q10_ResponseTime_Minutes"

    Properties:
        column: Raw column identifier
        table: Name of the MappingTable to look the answer up in
        label: Construct name (defaults to the table name)
        suffix: Unit or kind suffix (defaults to "Scalar")
    """

    column: str
    table: str
    label: Optional[str] = None
    suffix: str = "Scalar"

    @property
    def field_id(self) -> str:
        label = self.label or self.table
        return f"{self.column}_{label}_{self.suffix}"


@dataclass(frozen=True)
class ThresholdIndicator:
    """
    0/1 variable computed from a scalar field.

    Example:
        ThresholdIndicator(
            name="HighSatisfaction",
            source="Q15_Satisfaction_Scalar",
            comparator=Comparator.GREATER_EQUAL,
            threshold=4,
        )

    IMPORTANT:
        A null scalar yields 0, never null. Downstream counts treat
        "unknown" as "condition not met".
    """

    name: str
    source: str
    comparator: Comparator
    threshold: Scalar

    def evaluate(self, value: Optional[Scalar]) -> int:
        if value is None:
            return 0
        return 1 if self.comparator.holds(value, self.threshold) else 0


@dataclass(frozen=True)
class MultiSelectOption:
    """
    One checkbox of a multi-select question.

    Properties:
        column: Raw boolean column (e.g., "Q3_2")
        label: Human-readable label used in the composite field
        name: Identifier token for the indicator field
              (defaults to label_token(label))
    """

    column: str
    label: str
    name: Optional[str] = None

    @property
    def token(self) -> str:
        return self.name or label_token(self.label)


@dataclass(frozen=True)
class MultiSelectGroup:
    """
    Ordered set of checkbox columns forming one survey question.

    The option order is the output order: for indicator columns and
    for the labels in the composite field, whatever the raw column
    order of the input.

    Field naming:
        indicators: "{name}_{option.token}"  e.g. "VascularCoverage_Staff"
        composite:  "{question}_{name}"       e.g. "Q3_VascularCoverage"

    Properties:
        name: Group key
        options: Ordered checkbox options
        question: Source question identifier (optional)
        optional: When True and nothing is selected the composite is ""
                  instead of the fallback label
        delimiter: Separator for the composite field
    """

    name: str
    options: Tuple[MultiSelectOption, ...] = field(default_factory=tuple)
    question: Optional[str] = None
    optional: bool = False
    delimiter: str = DEFAULT_DELIMITER

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))

    @property
    def composite_id(self) -> str:
        if self.question:
            return f"{self.question}_{self.name}"
        return self.name

    def indicator_id(self, option: MultiSelectOption) -> str:
        return f"{self.name}_{option.token}"

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(option.column for option in self.options)


@dataclass(frozen=True)
class FieldSpec:
    """
    Variable dictionary entry for one output field.

    Lets the output composer render values with the right type
    (e.g., not quoting numeric fields).
    """

    field_id: str
    field_type: FieldType
    source: str
    description: str = ""
    table: Optional[str] = None


@dataclass(frozen=True)
class RecordWarning:
    """Non-fatal problem found while transforming one record."""

    row_index: int
    column: str

    @property
    def kind(self) -> str:
        return "warning"

    @property
    def message(self) -> str:
        return f"row {self.row_index}: {self.kind} in column {self.column}"


@dataclass(frozen=True)
class UnmappedValueWarning(RecordWarning):
    """
    A present raw value that its mapping table does not declare.

    Distinct from a declared non-response: the scalar is null in both
    cases, but only this one indicates unexpected data.
    """

    table: str = ""
    value: str = ""

    @property
    def kind(self) -> str:
        return "unmapped_value"

    @property
    def message(self) -> str:
        return (
            f"row {self.row_index}: value {self.value!r} in column {self.column} "
            f"is not in table {self.table}"
        )


@dataclass(frozen=True)
class MissingFieldWarning(RecordWarning):
    """A configured column absent from a raw record."""

    @property
    def kind(self) -> str:
        return "missing_field"

    @property
    def message(self) -> str:
        return f"row {self.row_index}: column {self.column} is missing"


@dataclass(frozen=True)
class DerivedRecord:
    """
    Result of transforming one eligible raw record.

    Properties:
        index:
            0-based position of the source row in the raw input

        values:
            Ordered field id -> value. Order is passthrough fields,
            scalar fields, threshold indicators, then multi-select
            fields, each in registry declaration order.

        warnings:
            Per-record warnings accumulated during transformation

    ARCHITECTURAL RULE:
        Created once by the engine, never mutated afterwards.
        values is copied on construction and exposed read-only.
    """

    index: int
    values: Mapping[str, Any]
    warnings: Tuple[RecordWarning, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _FrozenValues(self.values))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    def __getitem__(self, field_id: str) -> Any:
        return self.values[field_id]

    def get(self, field_id: str, default: Any = None) -> Any:
        return self.values.get(field_id, default)

    @property
    def field_ids(self) -> Tuple[str, ...]:
        return tuple(self.values.keys())

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.values)


class _FrozenValues(Mapping):
    """Read-only ordered mapping backing DerivedRecord.values."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return list(self.items()) == list(other.items())
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._data.items()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"
