"""
Serialization helpers for registry configuration and run output.

Configuration (MappingRegistry, FilterPolicy) round-trips through an
intermediate dict representation to JSON/YAML. Run output
(DerivedRecord, SummaryStats) is written one way only.
This module intentionally keeps serialization structure stable and explicit.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from surveyquant.filters import FilterPolicy
from surveyquant.model import (
    NO_RESPONSE,
    DEFAULT_DELIMITER,
    Comparator,
    DerivedRecord,
    FieldSpec,
    MappingTable,
    MultiSelectGroup,
    MultiSelectOption,
    PassthroughField,
    RecordWarning,
    ScalarField,
    TableKind,
    ThresholdIndicator,
    UnmappedValueWarning,
)
from surveyquant.registry import ConfigurationError, MappingRegistry
from surveyquant.summarizer import SummaryStats


def table_to_dict(t: MappingTable) -> Dict[str, Any]:
    return {
        "kind": t.kind.value,
        "description": t.description,
        "values": dict(t.values),
    }


def table_from_dict(name: str, d: Dict[str, Any]) -> MappingTable:
    return MappingTable(
        name=name,
        values=d.get("values") or {},
        kind=TableKind(d.get("kind", TableKind.ORDINAL.value)),
        description=d.get("description"),
    )


def passthrough_to_dict(p: PassthroughField) -> Dict[str, Any]:
    return {"column": p.column, "label": p.label}


def passthrough_from_dict(d: Dict[str, Any]) -> PassthroughField:
    return PassthroughField(column=d["column"], label=d.get("label"))


def scalar_to_dict(s: ScalarField) -> Dict[str, Any]:
    return {"column": s.column, "table": s.table, "label": s.label, "suffix": s.suffix}


def scalar_from_dict(d: Dict[str, Any]) -> ScalarField:
    return ScalarField(
        column=d["column"],
        table=d["table"],
        label=d.get("label"),
        suffix=d.get("suffix") or "Scalar",
    )


def indicator_to_dict(i: ThresholdIndicator) -> Dict[str, Any]:
    return {
        "name": i.name,
        "source": i.source,
        "comparator": i.comparator.value,
        "threshold": i.threshold,
    }


def indicator_from_dict(d: Dict[str, Any]) -> ThresholdIndicator:
    return ThresholdIndicator(
        name=d["name"],
        source=d["source"],
        comparator=Comparator(d["comparator"]),
        threshold=d["threshold"],
    )


def option_to_dict(o: MultiSelectOption) -> Dict[str, Any]:
    return {"column": o.column, "label": o.label, "name": o.name}


def option_from_dict(d: Dict[str, Any]) -> MultiSelectOption:
    return MultiSelectOption(column=d["column"], label=d["label"], name=d.get("name"))


def group_to_dict(g: MultiSelectGroup) -> Dict[str, Any]:
    return {
        "name": g.name,
        "question": g.question,
        "optional": g.optional,
        "delimiter": g.delimiter,
        "options": [option_to_dict(o) for o in g.options],
    }


def group_from_dict(d: Dict[str, Any]) -> MultiSelectGroup:
    return MultiSelectGroup(
        name=d["name"],
        options=tuple(option_from_dict(o) for o in d.get("options", [])),
        question=d.get("question"),
        optional=bool(d.get("optional", False)),
        delimiter=d.get("delimiter", DEFAULT_DELIMITER),
    )


def registry_to_dict(r: MappingRegistry) -> Dict[str, Any]:
    return {
        "name": r.name,
        "version": r.version,
        "fallback_label": r.fallback_label,
        "tables": {name: table_to_dict(t) for name, t in r.tables.items()},
        "passthrough": [passthrough_to_dict(p) for p in r.passthrough],
        "scalars": [scalar_to_dict(s) for s in r.scalars],
        "indicators": [indicator_to_dict(i) for i in r.indicators],
        "multi_select": [group_to_dict(g) for g in r.multi_select],
        "schemas": {version: list(columns) for version, columns in r.schemas.items()},
    }


def registry_from_dict(d: Dict[str, Any]) -> MappingRegistry:
    """
    Build a registry from its dict form.

    Tables may be given as a mapping keyed by table name or as a list
    of entries carrying a "name"; the list form lets duplicate keys
    reach the registry, which rejects them.

    Raises:
        ConfigurationError: If an entry is malformed or the registry
            fails validation
    """
    if not isinstance(d, dict):
        raise ConfigurationError("Registry configuration must be a mapping")
    try:
        raw_tables = d.get("tables") or {}
        if isinstance(raw_tables, dict):
            tables = [table_from_dict(name, t) for name, t in raw_tables.items()]
        else:
            tables = [table_from_dict(t["name"], t) for t in raw_tables]
        return MappingRegistry(
            tables=tables,
            passthrough=[passthrough_from_dict(p) for p in d.get("passthrough") or []],
            scalars=[scalar_from_dict(s) for s in d.get("scalars") or []],
            indicators=[indicator_from_dict(i) for i in d.get("indicators") or []],
            multi_select=[group_from_dict(g) for g in d.get("multi_select") or []],
            schemas=d.get("schemas"),
            name=d.get("name", "registry"),
            version=None if d.get("version") is None else str(d["version"]),
            fallback_label=d.get("fallback_label", NO_RESPONSE),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Malformed registry configuration: {e!r}") from e


def policy_to_dict(p: FilterPolicy) -> Dict[str, Any]:
    return {
        "column": p.column,
        "eligible_values": list(p.eligible_values),
        "missing_default": p.missing_default,
    }


def policy_from_dict(d: Dict[str, Any] | None) -> FilterPolicy:
    if not d:
        return FilterPolicy.accept_all()
    try:
        values = d.get("eligible_values", ["true"])
        if not isinstance(values, (list, tuple)):
            values = [values]
        return FilterPolicy(
            column=d.get("column"),
            eligible_values=tuple(values),
            missing_default=d.get("missing_default"),
        )
    except AttributeError as e:
        raise ConfigurationError(f"Malformed filter configuration: {e!r}") from e


def config_from_dict(d: Dict[str, Any]) -> Tuple[MappingRegistry, FilterPolicy]:
    """Registry plus the optional top-level "filter" section."""
    if not isinstance(d, dict):
        raise ConfigurationError("Configuration must be a mapping")
    return registry_from_dict(d), policy_from_dict(d.get("filter"))


def config_to_dict(r: MappingRegistry, p: FilterPolicy) -> Dict[str, Any]:
    d = registry_to_dict(r)
    d["filter"] = policy_to_dict(p)
    return d


def registry_to_json(r: MappingRegistry) -> str:
    return json.dumps(registry_to_dict(r), sort_keys=True)


def registry_from_json(s: str) -> MappingRegistry:
    d = json.loads(s)
    return registry_from_dict(d)


def registry_to_yaml(r: MappingRegistry) -> str:
    return yaml.safe_dump(registry_to_dict(r), sort_keys=False, allow_unicode=True)


def registry_from_yaml(s: str) -> MappingRegistry:
    d = yaml.safe_load(s)
    return registry_from_dict(d)


def config_from_yaml(s: str) -> Tuple[MappingRegistry, FilterPolicy]:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML configuration: {e}") from e
    return config_from_dict(d)


def load_config(path: str) -> Tuple[MappingRegistry, FilterPolicy]:
    with open(path, "r", encoding="utf-8") as f:
        return config_from_yaml(f.read())


def warning_to_dict(w: RecordWarning) -> Dict[str, Any]:
    d = {"kind": w.kind, "row_index": w.row_index, "column": w.column}
    if isinstance(w, UnmappedValueWarning):
        d["table"] = w.table
        d["value"] = w.value
    return d


def derived_record_to_dict(rec: DerivedRecord, include_warnings: bool = False) -> Dict[str, Any]:
    d: Dict[str, Any] = {"index": rec.index, "values": rec.to_dict()}
    if include_warnings:
        d["warnings"] = [warning_to_dict(w) for w in rec.warnings]
    return d


def derived_records_to_json(records: Iterable[DerivedRecord], include_warnings: bool = False) -> str:
    # Field order is part of the output; keys are not sorted.
    return json.dumps(
        [derived_record_to_dict(r, include_warnings) for r in records],
        ensure_ascii=False,
    )


def field_spec_to_dict(f: FieldSpec) -> Dict[str, Any]:
    return {
        "field_id": f.field_id,
        "type": f.field_type.value,
        "source": f.source,
        "table": f.table,
        "description": f.description,
    }


def field_specs_to_dicts(specs: Iterable[FieldSpec]) -> List[Dict[str, Any]]:
    return [field_spec_to_dict(f) for f in specs]


def summary_to_dict(s: SummaryStats) -> Dict[str, Any]:
    return {
        "raw_total": s.raw_total,
        "eligible_total": s.eligible_total,
        "excluded_total": s.excluded_total,
        "eligibility_rate": s.eligibility_rate,
        "non_response_counts": dict(s.non_response_counts),
        "non_response_rates": dict(s.non_response_rates),
        "unexpected_values": dict(s.unexpected_values),
        "unexpected_value_detail": {k: dict(v) for k, v in s.unexpected_value_detail.items()},
        "missing_fields": dict(s.missing_fields),
        "warnings": list(s.warnings),
    }


def summary_to_json(s: SummaryStats) -> str:
    return json.dumps(summary_to_dict(s), sort_keys=True)
