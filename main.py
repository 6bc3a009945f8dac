"""
main.py - CLI orchestration for the EOB reconciliation run.

This module is orchestration-only:
1. scan
2. aggregate
3. check
4. report
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Sequence

from aggregate import aggregate_records
from config import load_settings
from explain import format_report, format_report_json, format_summary_table
from filenames import is_applicable
from inbox import scan_directory
from integrity import check_integrity, compare_grand_total
from logging_config import get_logger, parse_level, setup_logging
from models import MalformedFilenameError, ReconciliationResult

logger = get_logger("eob-recon")


def parse_total(value: str) -> Decimal:
    """argparse type for --total: an exact decimal amount such as 100.50."""
    try:
        total = Decimal(str(value).strip().replace(",", "").replace("$", ""))
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid total amount: {value!r}") from exc
    if not total.is_finite():
        raise argparse.ArgumentTypeError(f"invalid total amount: {value!r}")
    return total


def reconcile_filenames(
    filenames: Sequence[str],
    expected_total: Decimal,
) -> ReconciliationResult:
    """Aggregate and check an already-listed set of filenames."""
    names = list(filenames or [])

    stage_start = time.time()
    logger.info("pipeline_stage | stage=2/4 | name=aggregate | status=start")
    records = aggregate_records(names)
    logger.info(
        "pipeline_stage | stage=2/4 | name=aggregate | status=complete | records=%s | duration_s=%.3f",
        len(records),
        time.time() - stage_start,
    )

    stage_start = time.time()
    logger.info("pipeline_stage | stage=3/4 | name=check | status=start")
    report = check_integrity(records)
    total_violation = compare_grand_total(report.grand_total, expected_total)
    logger.info(
        "pipeline_stage | stage=3/4 | name=check | status=complete | grand_total=%s | violations=%s | duration_s=%.3f",
        report.grand_total,
        len(report.violations) + (1 if total_violation else 0),
        time.time() - stage_start,
    )

    applicable = sum(1 for name in names if is_applicable(name))
    return ReconciliationResult(
        expected_total=expected_total,
        report=report,
        records=records,
        total_violation=total_violation,
        scanned_files=len(names),
        skipped_files=len(names) - applicable,
    )


def run_reconciliation(target_dir: str | Path, expected_total: Decimal) -> ReconciliationResult:
    """Run the full pipeline for one directory."""
    pipeline_start = time.time()
    logger.info("pipeline_start | target_dir=%s | expected_total=%s", target_dir, expected_total)

    stage_start = time.time()
    logger.info("pipeline_stage | stage=1/4 | name=scan | status=start")
    filenames = scan_directory(target_dir)
    logger.info(
        "pipeline_stage | stage=1/4 | name=scan | status=complete | files=%s | duration_s=%.3f",
        len(filenames),
        time.time() - stage_start,
    )

    result = reconcile_filenames(filenames, expected_total)
    logger.info(
        "pipeline_complete | clean=%s | messages=%s | total_duration_s=%.3f",
        result.is_clean,
        len(result.messages),
        time.time() - pipeline_start,
    )
    return result


def parse(target_dir: str | Path, expected_total: Decimal) -> int:
    """Run the pipeline and print the numbered report to stdout.

    Returns the number of reported problems (0 means 'No errors found.').
    """
    result = run_reconciliation(target_dir, expected_total)
    logger.info("pipeline_stage | stage=4/4 | name=report | status=start")
    print(format_report(result))
    logger.info(
        "pipeline_stage | stage=4/4 | name=report | status=complete | messages=%s",
        len(result.messages),
    )
    return len(result.messages)


def build_parser(default_dir: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eob-recon",
        description=(
            "EOB Check Reconciliation\n"
            "Validates a directory of filename-encoded EOB and check files "
            "against each other and against an expected grand total."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --total 100.50\n"
            "  %(prog)s --total 100.50 --dir storage/2026-10\n"
            "  %(prog)s --total 100.50 --summary --verbose\n"
        ),
    )
    parser.add_argument(
        "--total",
        "-t",
        type=parse_total,
        required=True,
        help="The expected total for this set of EOBs (required, e.g. 100.50)",
    )
    parser.add_argument(
        "--dir",
        "-d",
        type=str,
        default=default_dir,
        help=f"The target dir to parse the set of EOBs (default: {default_dir})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON instead of numbered text",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a per-record summary table after the report",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG-level) logging",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines (for production/log aggregation)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for the EOB reconciliation run."""
    settings = load_settings()
    parser = build_parser(settings.target_dir)
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else parse_level(settings.log_level),
        json_format=args.log_json or settings.log_json,
    )

    if args.total == 0:
        parser.error("--total is required and must be non-zero. For help: --help")

    try:
        logger.info("cli_mode | dir=%s | total=%s | json=%s", args.dir, args.total, args.json)
        result = run_reconciliation(args.dir, args.total)
        if args.json:
            print(json.dumps(format_report_json(result), indent=2))
        else:
            print(format_report(result))
            if args.summary:
                print()
                print(format_summary_table(result))
    except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
        logger.error("cli_error | type=%s | error=%s", type(exc).__name__, exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except MalformedFilenameError as exc:
        logger.error("cli_error | type=MalformedFilenameError | file=%s | error=%s", exc.filename, exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except ValueError as exc:
        logger.error("cli_error | type=ValueError | error=%s", exc)
        print(f"\nError: {exc}")
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.")
        raise SystemExit(130)
    except Exception as exc:
        logger.error(
            "cli_error | type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        print(f"\nUnexpected error: {exc}")
        print("Run with --verbose for full traceback.")
        raise SystemExit(1) from exc

    if not result.is_clean:
        raise SystemExit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
