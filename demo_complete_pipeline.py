#!/usr/bin/env python3
"""
Complete Pipeline Demo: CSV → Filter → Transform → Summary → Sheets

Shows the full workflow:
1. Read a survey export
2. Filter to finished responses
3. Convert answers to scalar, indicator and multi-select variables
4. Summarize response rates and data quality
5. Write CSV sheets
"""

import logging

from surveyquant.backends import save_sheets
from surveyquant.csv_source import read_records_string
from surveyquant.examples import build_example_policy, build_example_registry
from surveyquant.pipeline import run_pipeline
from surveyquant.serialization import registry_to_yaml


SAMPLE_EXPORT = """ResponseId,Finished,Progress,Q3_1,Q3_2,Q3_3,Q3_4,Q10,Q15
R_001,True,100,Residency,Staff,,,30–60 minutes,Somewhat satisfied
R_002,True,100,,,Locum tenens,,1–2 hours,Somewhat dissatisfied
R_003,False,40,,,,,,
R_004,True,100,,Staff,,Transfer to another facility,Not applicable,
R_005,True,100,Residency,,,,Less than 15 minutes,Totally thrilled
"""


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: CSV → Filter → Transform → Summary → Sheets")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Configuration
    # =========================================================================
    print("\n1. REGISTRY...")
    registry = build_example_registry()
    policy = build_example_policy()
    print(f"   ✓ Registry: {registry.name} (version {registry.version})")
    print(f"   ✓ Tables: {', '.join(registry.tables)}")
    print(f"   ✓ Output fields: {len(registry.field_ids())}")

    # =========================================================================
    # STEP 2: Read and transform
    # =========================================================================
    print("\n2. TRANSFORMING...")
    records = read_records_string(SAMPLE_EXPORT)
    result = run_pipeline(records, registry, policy)
    for derived in result.records:
        print(
            f"   ✓ {derived['ResponseId']}: "
            f"satisfaction={derived['Q15_Satisfaction_Scalar']} "
            f"high={derived['HighSatisfaction']} "
            f"minutes={derived['Q10_ResponseTime_Minutes']} "
            f"coverage={derived['Q3_VascularCoverage']!r}"
        )

    # =========================================================================
    # STEP 3: Summary
    # =========================================================================
    print("\n3. SUMMARY:")
    print("-" * 80)
    summary = result.summary
    print(f"   Raw records: {summary.raw_total}")
    print(f"   Eligible: {summary.eligible_total} ({summary.eligibility_rate:.0%})")
    for field_id, rate in summary.non_response_rates.items():
        if rate:
            print(f"   Non-response {field_id}: {rate:.0%}")
    if summary.warnings:
        print(f"\n   Warnings ({len(summary.warnings)}):")
        for warning in summary.warnings:
            print(f"      - {warning}")

    # =========================================================================
    # STEP 4: Output
    # =========================================================================
    print("\n4. WRITING SHEETS...")
    for kind, path in save_sheets(result, "demo_output").items():
        print(f"   ✓ Saved {kind.value}: {path}")

    print("\n5. REGISTRY AS YAML (first lines):")
    print("-" * 80)
    lines = registry_to_yaml(registry).splitlines()
    for line in lines[:15]:
        print(f"   {line}")
    if len(lines) > 15:
        print(f"   ... ({len(lines) - 15} more lines)")


if __name__ == "__main__":
    main()
