"""
explain.py - Human-readable and JSON-ready report formatting.

This module converts a `ReconciliationResult` into:
- the numbered, one-message-per-line report printed by the CLI
- a machine-friendly dictionary for --json output
- a pandas summary table with one row per record
"""

from __future__ import annotations

from typing import Mapping

import pandas as pd

from logging_config import get_logger
from models import CheckRecord, ReconciliationResult

logger = get_logger(__name__)

NO_ERRORS_MESSAGE = "No errors found."
SUMMARY_COLUMNS = [
    "prefix",
    "check_number",
    "check_total",
    "item_total",
    "item_count",
    "check_file",
    "balanced",
]
OUTPUT_WIDTH = 72
SEPARATOR = "=" * OUTPUT_WIDTH


def format_report(result: ReconciliationResult | None) -> str:
    """Numbered report lines, or exactly 'No errors found.' when clean."""
    if result is None:
        logger.error("report_input_error | result_none=True")
        return "1. No reconciliation result available"

    messages = result.messages
    if not messages:
        return NO_ERRORS_MESSAGE

    return "\n".join(f"{number}. {message}" for number, message in enumerate(messages, start=1))


def records_frame(records: Mapping[str, CheckRecord] | None) -> pd.DataFrame:
    """One row per record, sorted by prefix. Amounts stay Decimal."""
    rows = [
        {
            "prefix": record.prefix,
            "check_number": record.check_number,
            "check_total": record.check_total,
            "item_total": record.item_total,
            "item_count": len(record.items),
            "check_file": record.check_file,
            "balanced": record.is_balanced,
        }
        for _, record in sorted((records or {}).items())
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def format_summary_table(result: ReconciliationResult) -> str:
    """Per-record summary block for --summary."""
    frame = records_frame(result.records)
    lines = [SEPARATOR, f"  SUMMARY - {len(frame)} record(s)", SEPARATOR]
    if frame.empty:
        lines.append("  (no EOB or check files found)")
    else:
        lines.append(frame.to_string(index=False))
    lines.append("")
    lines.append(f"  Expected total:  {result.expected_total}")
    lines.append(f"  Computed total:  {result.report.grand_total}")
    lines.append(f"  Files scanned:   {result.scanned_files} ({result.skipped_files} skipped)")
    lines.append(SEPARATOR)
    return "\n".join(lines)


def format_report_json(result: ReconciliationResult | None) -> dict:
    """Format a result as a structured JSON-compatible dictionary."""
    if result is None:
        logger.error("report_json_input_error | result_none=True | fallback=error_payload")
        return {
            "status": "error",
            "expected_total": None,
            "grand_total": None,
            "violations": [],
            "records": [],
            "messages": ["No reconciliation result available"],
        }

    records_section = [
        {
            "prefix": record.prefix,
            "check_number": record.check_number,
            "check_total": str(record.check_total),
            "item_total": str(record.item_total),
            "check_file": record.check_file or None,
            "items": [{"name": item.name, "paid": str(item.paid)} for item in record.items],
            "source_files": list(record.source_files),
            "balanced": record.is_balanced,
        }
        for _, record in sorted(result.records.items())
    ]

    violations_section = [
        {
            "type": violation.type.value,
            "prefix": violation.prefix or None,
            "filename": violation.filename,
            "message": violation.message,
        }
        for violation in result.violations
    ]

    return {
        "status": "clean" if result.is_clean else "errors",
        "expected_total": str(result.expected_total),
        "grand_total": str(result.report.grand_total),
        "total_matches": result.total_matches,
        "record_count": result.report.record_count,
        "scanned_files": result.scanned_files,
        "skipped_files": result.skipped_files,
        "violations": violations_section,
        "records": records_section,
        "messages": result.messages or [NO_ERRORS_MESSAGE],
    }
