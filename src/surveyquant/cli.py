"""
Command-line entry point: registry YAML + survey CSV -> CSV sheets.

    survey-quant registry.yaml responses.csv --out results/ --skip-rows 2
"""

import argparse
import logging
import sys
from typing import List, Optional

from surveyquant.backends import save_sheets
from surveyquant.csv_source import CSVSourceError, read_records_file
from surveyquant.pipeline import run_pipeline
from surveyquant.registry import ConfigurationError
from surveyquant.serialization import load_config


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survey-quant",
        description="Convert qualitative survey responses into analysis-ready variables",
    )
    parser.add_argument("registry", help="Path to registry YAML (tables, fields, filter)")
    parser.add_argument("data", help="Path to survey export CSV")
    parser.add_argument("--out", default="output", help="Directory for the output sheets")
    parser.add_argument("--prefix", default="", help="File name prefix for the output sheets")
    parser.add_argument("--skip-rows", type=int, default=0,
                        help="Header rows to skip below the column identifiers")
    parser.add_argument("--workers", type=int, default=None,
                        help="Transform records on this many threads")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        registry, policy = load_config(args.registry)
        records = read_records_file(args.data, skip_rows=args.skip_rows)
        result = run_pipeline(records, registry, policy, max_workers=args.workers)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except (CSVSourceError, FileNotFoundError) as e:
        logger.error("Cannot read input: %s", e)
        return 1

    paths = save_sheets(result, args.out, prefix=args.prefix)

    summary = result.summary
    print(f"Registry: {registry.name} (version {registry.version or '-'})")
    print(f"Raw records: {summary.raw_total}")
    print(f"Eligible: {summary.eligible_total} ({summary.eligibility_rate:.1%})")
    print(f"Excluded: {summary.excluded_total}")
    print(f"Unexpected values: {summary.total_unexpected}")
    print(f"Missing fields: {summary.total_missing}")
    if summary.warnings:
        print(f"\nWarnings ({len(summary.warnings)}):")
        for warning in summary.warnings:
            print(f"  - {warning}")
    print()
    for kind, path in paths.items():
        print(f"Wrote {kind.value} sheet: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
