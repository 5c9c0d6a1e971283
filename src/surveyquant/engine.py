"""
Transformation Engine: raw record -> derived record.

Applies a MappingRegistry to one eligible raw record at a time:

    1. Passthrough fields   (verbatim, fallback label when absent)
    2. Scalar fields        (table lookup: number, declared null, or unmapped)
    3. Threshold indicators (0/1; a null scalar gives 0)
    4. Multi-select groups  (0/1 per option plus an ordered composite label)

IMPORTANT: transform() holds no state between calls and never mutates
the registry or the record, so records can be fanned out to workers.
Per-record problems become warnings on the DerivedRecord; nothing here
raises for bad data.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from surveyquant.model import (
    NO_RESPONSE,
    DerivedRecord,
    MissingFieldWarning,
    MultiSelectGroup,
    RecordWarning,
    UnmappedValueWarning,
    is_absent,
    normalize_label,
)
from surveyquant.registry import UNMAPPED, MappingRegistry


logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]

FALSY_TOKENS = frozenset({"false", "0", "no", "n", "off", "unchecked"})


def is_selected(value: Any, fallback_label: str = NO_RESPONSE) -> bool:
    """
    Truthiness of a raw checkbox cell.

    True, non-zero numbers and non-empty strings are selected, except
    the tokens in FALSY_TOKENS and the fallback label. Survey exports
    often put the chosen option's label in the column, which counts
    as selected.
    """
    if is_absent(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    token = normalize_label(value).casefold()
    if token == normalize_label(fallback_label).casefold():
        return False
    return token not in FALSY_TOKENS


def flatten_multi_select(
    group: MultiSelectGroup,
    record: RawRecord,
    fallback_label: str = NO_RESPONSE,
) -> Dict[str, Any]:
    """
    Expand one multi-select question into indicator and composite fields.

    Returns an ordered dict: one 0/1 field per option in declared order,
    then the composite field holding the selected labels joined by the
    group delimiter. With nothing selected the composite is the fallback
    label, or "" for optional groups.

    Missing columns count as not selected.
    """
    values: Dict[str, Any] = {}
    selected: List[str] = []
    for option in group.options:
        flag = is_selected(record.get(option.column), fallback_label)
        values[group.indicator_id(option)] = 1 if flag else 0
        if flag:
            selected.append(option.label)

    if selected:
        values[group.composite_id] = group.delimiter.join(selected)
    elif group.optional:
        values[group.composite_id] = ""
    else:
        values[group.composite_id] = fallback_label
    return values


class _RecordReader:
    """Reads configured columns and records each missing one once."""

    def __init__(self, record: RawRecord, index: int) -> None:
        self.record = record
        self.index = index
        self.warnings: List[RecordWarning] = []
        self._missing: Set[str] = set()

    def get(self, column: str) -> Any:
        if column not in self.record:
            self.note_missing(column)
            return None
        return self.record[column]

    def note_missing(self, column: str) -> None:
        if column in self.record or column in self._missing:
            return
        self._missing.add(column)
        self.warnings.append(MissingFieldWarning(row_index=self.index, column=column))


def transform(record: RawRecord, registry: MappingRegistry, index: int = 0) -> DerivedRecord:
    """
    Transform one eligible raw record.

    Args:
        record: Column identifier -> raw cell value
        registry: Validated conversion configuration
        index: Position of the record in the raw input

    Returns:
        DerivedRecord with fields in registry output order and the
        warnings raised by this record
    """
    reader = _RecordReader(record, index)
    values: Dict[str, Any] = {}

    for pt in registry.passthrough:
        raw = reader.get(pt.column)
        values[pt.field_id] = registry.fallback_label if is_absent(raw) else raw

    for sc in registry.scalars:
        raw = reader.get(sc.column)
        result = registry.lookup(sc.table, raw)
        if result is UNMAPPED:
            value = normalize_label(raw)
            logger.debug("Row %d: %r in %s not in table %s", index, value, sc.column, sc.table)
            reader.warnings.append(UnmappedValueWarning(
                row_index=index, column=sc.column, table=sc.table, value=value,
            ))
            result = None
        values[sc.field_id] = result

    for ind in registry.indicators:
        values[ind.name] = ind.evaluate(values.get(ind.source))

    for group in registry.multi_select:
        for column in group.columns:
            reader.note_missing(column)
        values.update(flatten_multi_select(group, record, registry.fallback_label))

    return DerivedRecord(index=index, values=values, warnings=tuple(reader.warnings))


def transform_all(
    indexed_records: Iterable[Tuple[int, RawRecord]],
    registry: MappingRegistry,
    max_workers: Optional[int] = None,
) -> List[DerivedRecord]:
    """
    Transform (index, record) pairs, keeping input order.

    With max_workers > 1 records are spread over a thread pool; the
    result order is still the input order.
    """
    pairs = list(indexed_records)
    if max_workers is not None and max_workers > 1 and len(pairs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda pair: transform(pair[1], registry, pair[0]), pairs))
    return [transform(record, registry, index) for index, record in pairs]


__all__ = [
    "transform",
    "transform_all",
    "flatten_multi_select",
    "is_selected",
    "FALSY_TOKENS",
]
