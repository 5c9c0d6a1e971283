"""
Mapping Registry: validated, read-only conversion configuration.

Holds every MappingTable, field declaration and MultiSelectGroup a
transformation run needs. All consistency checks happen here, at
construction time, so the engine never meets a configuration problem
while processing records.

Fatal problems raise ConfigurationError:
    - duplicate table keys
    - table labels that collide after normalization
    - scalar fields referencing unknown tables
    - indicators whose source is not a scalar field
    - duplicate output field identifiers

Non-fatal problems emit SchemaConsistencyWarning:
    - configured raw columns that appear in no declared schema version
"""

from __future__ import annotations

import warnings
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from surveyquant.model import (
    NO_RESPONSE,
    FieldSpec,
    FieldType,
    MappingTable,
    MultiSelectGroup,
    PassthroughField,
    Scalar,
    ScalarField,
    ThresholdIndicator,
    is_absent,
    normalize_label,
)


class ConfigurationError(Exception):
    """Raised when registry or filter configuration is invalid."""
    pass


class SchemaConsistencyWarning(UserWarning):
    """A configured column is used by no declared schema version."""
    pass


class _Unmapped:
    """Sentinel type for present values a table does not declare."""

    _instance: Optional["_Unmapped"] = None

    def __new__(cls) -> "_Unmapped":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNMAPPED"


UNMAPPED = _Unmapped()

LookupResult = Union[Scalar, None, _Unmapped]


class MappingRegistry:
    """
    Read-only collection of conversion tables and field declarations.

    Properties:
        tables: table name -> MappingTable (read-only mapping)
        passthrough: passthrough field declarations
        scalars: scalar (table lookup) field declarations
        indicators: threshold indicator declarations
        multi_select: multi-select group declarations
        schemas: schema version -> known raw columns (optional)
        name / version: identification of the configuration
        fallback_label: label substituted for absent values

    Several registries (e.g., one per survey instrument version) can
    coexist; nothing here is module-level state.
    """

    def __init__(
        self,
        tables: Iterable[MappingTable] = (),
        passthrough: Iterable[PassthroughField] = (),
        scalars: Iterable[ScalarField] = (),
        indicators: Iterable[ThresholdIndicator] = (),
        multi_select: Iterable[MultiSelectGroup] = (),
        schemas: Optional[Mapping[str, Iterable[str]]] = None,
        name: str = "registry",
        version: Optional[str] = None,
        fallback_label: str = NO_RESPONSE,
    ) -> None:
        self._name = name
        self._version = version
        self._fallback_label = fallback_label
        self._passthrough = tuple(passthrough)
        self._scalars = tuple(scalars)
        self._indicators = tuple(indicators)
        self._multi_select = tuple(multi_select)
        self._schemas: Dict[str, Tuple[str, ...]] = {
            str(key): tuple(columns) for key, columns in (schemas or {}).items()
        }

        table_list = list(tables)
        self._tables: Dict[str, MappingTable] = {}
        self._index: Dict[str, Dict[str, Optional[Scalar]]] = {}
        for table in table_list:
            if table.name in self._tables:
                raise ConfigurationError(f"Duplicate mapping table key: {table.name!r}")
            self._tables[table.name] = table
            self._index[table.name] = _build_index(table)

        self._validate()

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> Optional[str]:
        return self._version

    @property
    def fallback_label(self) -> str:
        return self._fallback_label

    @property
    def tables(self) -> Mapping[str, MappingTable]:
        return MappingProxyType(self._tables)

    @property
    def passthrough(self) -> Tuple[PassthroughField, ...]:
        return self._passthrough

    @property
    def scalars(self) -> Tuple[ScalarField, ...]:
        return self._scalars

    @property
    def indicators(self) -> Tuple[ThresholdIndicator, ...]:
        return self._indicators

    @property
    def multi_select(self) -> Tuple[MultiSelectGroup, ...]:
        return self._multi_select

    @property
    def schemas(self) -> Mapping[str, Tuple[str, ...]]:
        return MappingProxyType(self._schemas)

    def table(self, table_name: str) -> MappingTable:
        """
        Retrieve a table by key.

        Raises:
            ConfigurationError: If no table has that key
        """
        try:
            return self._tables[table_name]
        except KeyError:
            raise ConfigurationError(f"Unknown mapping table: {table_name!r}") from None

    def get_group(self, group_name: str) -> Optional[MultiSelectGroup]:
        for group in self._multi_select:
            if group.name == group_name:
                return group
        return None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, table_name: str, raw_value: Any) -> LookupResult:
        """
        Convert a raw answer through a table.

        Returns:
            - the number the table declares for the answer
            - None when the table declares the answer as non-response,
              or when the answer is absent
            - UNMAPPED when the answer is present but not declared

        Raises:
            ConfigurationError: If the table key is unknown
        """
        if table_name not in self._index:
            raise ConfigurationError(f"Unknown mapping table: {table_name!r}")
        index = self._index[table_name]

        if is_absent(raw_value):
            return index.get(normalize_label(self._fallback_label))

        key = normalize_label(raw_value)
        if key in index:
            return index[key]
        return UNMAPPED

    def is_declared(self, table_name: str, raw_value: Any) -> bool:
        """True when the table lists the (normalized) raw value."""
        self.table(table_name)
        return normalize_label(raw_value) in self._index[table_name]

    # ------------------------------------------------------------------
    # Output description
    # ------------------------------------------------------------------

    def field_ids(self) -> List[str]:
        """All output field identifiers in output order."""
        return [spec.field_id for spec in self.field_specs()]

    def field_specs(self) -> List[FieldSpec]:
        """
        Variable dictionary for the derived dataset, in output order.

        Order: passthrough, scalar, threshold indicators, then per
        multi-select group its indicators followed by its composite.
        """
        specs: List[FieldSpec] = []

        for pt in self._passthrough:
            specs.append(FieldSpec(
                field_id=pt.field_id,
                field_type=FieldType.STRING,
                source=pt.column,
                description=f"Original response to {pt.column}",
            ))

        for sc in self._scalars:
            table = self._tables[sc.table]
            specs.append(FieldSpec(
                field_id=sc.field_id,
                field_type=FieldType.NUMBER,
                source=sc.column,
                description=f"{table.kind.value} value of {sc.column} via {sc.table}",
                table=sc.table,
            ))

        for ind in self._indicators:
            specs.append(FieldSpec(
                field_id=ind.name,
                field_type=FieldType.INDICATOR,
                source=ind.source,
                description=f"1 if {ind.source} {ind.comparator.value} {ind.threshold}, else 0",
            ))

        for group in self._multi_select:
            for option in group.options:
                specs.append(FieldSpec(
                    field_id=group.indicator_id(option),
                    field_type=FieldType.INDICATOR,
                    source=option.column,
                    description=f"1 if '{option.label}' was selected, else 0",
                ))
            specs.append(FieldSpec(
                field_id=group.composite_id,
                field_type=FieldType.STRING,
                source=", ".join(group.columns),
                description=f"Selected {group.name} options joined by {group.delimiter!r}",
            ))

        return specs

    def configured_columns(self) -> List[str]:
        """Raw columns referenced anywhere in the registry, first use order."""
        columns: List[str] = []
        candidates: List[str] = [pt.column for pt in self._passthrough]
        candidates.extend(sc.column for sc in self._scalars)
        for group in self._multi_select:
            candidates.extend(group.columns)
        for column in candidates:
            if column not in columns:
                columns.append(column)
        return columns

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        for sc in self._scalars:
            if sc.table not in self._tables:
                raise ConfigurationError(
                    f"Scalar field {sc.field_id!r} references unknown table {sc.table!r}"
                )

        scalar_ids = {sc.field_id for sc in self._scalars}
        for ind in self._indicators:
            if ind.source not in scalar_ids:
                raise ConfigurationError(
                    f"Indicator {ind.name!r} references {ind.source!r}, which is not a scalar field"
                )
            if isinstance(ind.threshold, bool) or not isinstance(ind.threshold, (int, float)):
                raise ConfigurationError(
                    f"Indicator {ind.name!r} has non-numeric threshold {ind.threshold!r}"
                )

        for group in self._multi_select:
            if not group.options:
                raise ConfigurationError(f"Multi-select group {group.name!r} has no options")

        seen: Dict[str, int] = {}
        for field_id in self.field_ids():
            seen[field_id] = seen.get(field_id, 0) + 1
        duplicates = sorted(fid for fid, count in seen.items() if count > 1)
        if duplicates:
            raise ConfigurationError(f"Duplicate output field identifiers: {duplicates}")

        if self._schemas:
            known = set()
            for columns in self._schemas.values():
                known.update(columns)
            for column in self.configured_columns():
                if column not in known:
                    warnings.warn(
                        f"Column {column!r} is not part of any declared schema "
                        f"({', '.join(sorted(self._schemas))})",
                        SchemaConsistencyWarning,
                        stacklevel=3,
                    )

    def __repr__(self) -> str:
        return (
            f"MappingRegistry(name={self._name!r}, version={self._version!r}, "
            f"tables={list(self._tables)!r})"
        )


def _build_index(table: MappingTable) -> Dict[str, Optional[Scalar]]:
    index: Dict[str, Optional[Scalar]] = {}
    for label, value in table.values.items():
        # YAML reads unquoted Yes/No keys as booleans
        if not isinstance(label, str):
            raise ConfigurationError(
                f"Table {table.name!r} has non-string label {label!r}; quote it"
            )
        key = normalize_label(label)
        if key in index:
            raise ConfigurationError(
                f"Table {table.name!r} declares {label!r} more than once after normalization"
            )
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise ConfigurationError(
                f"Table {table.name!r} maps {label!r} to non-numeric value {value!r}"
            )
        index[key] = value
    return index


__all__ = [
    "MappingRegistry",
    "ConfigurationError",
    "SchemaConsistencyWarning",
    "UNMAPPED",
    "LookupResult",
]
