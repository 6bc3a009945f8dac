"""
integrity.py - Deterministic cross-total checks over aggregated records.

This module converts the record mapping into an `IntegrityReport`.
Each record is checked on its own; every rule runs regardless of whether
an earlier rule already failed for the same record.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional

from filenames import tokenize_filename
from logging_config import get_logger
from models import (
    CheckRecord,
    IntegrityReport,
    MalformedFilenameError,
    Violation,
    ViolationType,
    exact_sum,
)
from normalize import split_prefix

logger = get_logger(__name__)


def _check_file_fields(check_file: str) -> tuple[Decimal, str]:
    """Total and check number embedded in a check file's own name."""
    tokens = tokenize_filename(check_file)
    if tokens is None:
        raise MalformedFilenameError(check_file, "check file name does not carry a '<cents>-<check number>_' prefix")
    return split_prefix(tokens.prefix, check_file)


def check_record(record: CheckRecord) -> list[Violation]:
    """Run every per-record rule and return the violations, in rule order."""
    prefix = record.prefix
    violations: list[Violation] = []

    def flag(kind: ViolationType, message: str, filename: Optional[str] = None) -> None:
        violations.append(Violation(type=kind, prefix=prefix, message=message, filename=filename))

    if record.check_total <= 0:
        flag(ViolationType.MISSING_CHECK_TOTAL, f"There is no check total for {prefix}")

    if not record.check_number:
        flag(ViolationType.MISSING_CHECK_NUMBER, f"Check number does not exist for {prefix}")

    if not record.check_file:
        flag(ViolationType.MISSING_CHECK_FILE, f"Missing check file for {prefix}")
    else:
        file_total, file_number = _check_file_fields(record.check_file)
        if file_total != record.check_total:
            flag(
                ViolationType.CHECK_TOTAL_MISMATCH,
                f"Check total does not match between set {prefix} and file {record.check_file}",
                record.check_file,
            )
        if file_number != record.check_number:
            flag(
                ViolationType.CHECK_NUMBER_MISMATCH,
                f"Check number does not match between set {prefix} and file {record.check_file}",
                record.check_file,
            )

    item_total = record.item_total
    if item_total != record.check_total:
        flag(
            ViolationType.ITEM_TOTAL_MISMATCH,
            f"Check total {record.check_total} does not match item totals {item_total} for {prefix}",
        )

    violations.extend(record.anomalies)

    if violations:
        logger.debug(
            "record_violations | prefix=%s | types=%s",
            prefix,
            [violation.type.value for violation in violations],
        )
    return violations


def check_integrity(records: Mapping[str, CheckRecord] | None) -> IntegrityReport:
    """Check every record and total the item sums across all of them.

    Never mutates `records`; running it twice gives identical reports.
    """
    records = records or {}
    item_totals: list[Decimal] = []
    violations: list[Violation] = []

    for prefix in sorted(records):
        record = records[prefix]
        violations.extend(check_record(record))
        item_totals.append(record.item_total)

    grand_total = exact_sum(item_totals)

    logger.info(
        "integrity_complete | records=%s | grand_total=%s | violations=%s",
        len(records),
        grand_total,
        len(violations),
    )
    return IntegrityReport(
        grand_total=grand_total,
        violations=violations,
        record_count=len(records),
    )


def compare_grand_total(grand_total: Decimal, expected_total: Decimal) -> Optional[Violation]:
    """Return a violation when the computed grand total misses the expected one."""
    if grand_total == expected_total:
        return None

    logger.info(
        "grand_total_mismatch | expected=%s | computed=%s",
        expected_total,
        grand_total,
    )
    return Violation(
        type=ViolationType.GRAND_TOTAL_MISMATCH,
        message=f"The expected total of {expected_total} does not equal {grand_total}",
    )
