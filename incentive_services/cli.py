"""
Command-line runner: execute a scheme over dataset files and write the RunResult.

Usage:
    incentive-run --scheme <scheme.json|yaml> --data <file> [--data <file> ...] --as-of YYYY-MM-DD [options]

Examples:
    # Validate a scheme only (no datasets needed)
    incentive-run --scheme schemes/na_so_dec24.json --validate-only

    # Run and print the result JSON
    incentive-run --scheme schemes/na_so_dec24.json \\
        --data data/SCH1.csv --data data/MH_DEC24.csv --as-of 2024-12-31

    # Run with a thread pool and write to a file
    incentive-run --scheme schemes/na_so_dec24.yaml --data data/SCH1.csv \\
        --as-of 2024-12-31 --workers 4 --output result.json

Datasets are keyed by file name, so ``--data data/SCH1.csv`` satisfies a
scheme whose ``baseMapping.sourceFile`` is ``SCH1.csv``.

Exit status: 0 on success, 1 on invalid input or a failed run.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

import yaml

from incentive_config.loader import load_scheme_data
from incentive_config.validator import validate_scheme
from incentive_ingestion.adapters import load_datasets
from incentive_kernel.exceptions import IncentiveEngineError
from incentive_kernel.logging_config import configure_logging
from incentive_services.run_orchestrator import RunOptions, run_scheme

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="incentive-run",
        description="Run a sales incentive scheme over uploaded datasets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--scheme",
        required=True,
        type=Path,
        help="Path to the scheme definition (JSON or YAML).",
    )
    parser.add_argument(
        "--data",
        action="append",
        default=[],
        type=Path,
        help="Dataset file (CSV, TSV, JSON, JSONL, XLSX). Repeat for each file.",
    )
    parser.add_argument(
        "--as-of",
        dest="as_of",
        help="Run-as-of date, YYYY-MM-DD (inclusive).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the result JSON here instead of stdout.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Process agents on a thread pool of this size (default: sequential).",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Structured log level written to stderr (default: WARNING).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the scheme and exit without running it.",
    )
    return parser


def _print_validation(errors: Sequence[str], warnings: Sequence[str]) -> None:
    for msg in errors:
        print(f"ERROR: {msg}", file=sys.stderr)
    for msg in warnings:
        print(f"WARNING: {msg}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.validate_only:
        if not args.as_of:
            parser.error("--as-of is required unless --validate-only is given")
        if not args.data:
            parser.error("at least one --data file is required unless --validate-only is given")
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be a positive integer")

    configure_logging(level=getattr(logging, args.log_level))

    try:
        scheme_data = load_scheme_data(args.scheme)
    except (OSError, yaml.YAMLError) as e:
        print(f"ERROR: Failed to load scheme {args.scheme}: {e}", file=sys.stderr)
        return 1

    validation = validate_scheme(scheme_data)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1
    if args.validate_only:
        print(
            f"Scheme {validation.compiled.name!r} is valid "
            f"({len(validation.warnings)} warning(s))."
        )
        return 0

    try:
        datasets = load_datasets(args.data)
        result = run_scheme(
            validation.compiled,
            datasets,
            args.as_of,
            options=RunOptions(max_workers=args.workers),
        )
    except (IncentiveEngineError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    payload = json.dumps(result.to_dict(), indent=2, default=str)
    if args.output:
        args.output.write_text(payload + "\n", encoding="utf-8")
        print(
            f"Wrote results for {len(result.agent_payouts)} agent(s) to {args.output}",
            file=sys.stderr,
        )
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
