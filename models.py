"""
models.py - Data Models for the EOB Reconciliation Pipeline

This file defines ALL data structures used across the reconciliation run.
Every module in the pipeline communicates exclusively through these models:

    filenames.py  ->  FileTokens
    aggregate.py  ->  dict[str, CheckRecord]
    integrity.py  ->  IntegrityReport
    main.py       ->  ReconciliationResult
    explain.py    ->  str / dict (uses ReconciliationResult as input)

Design principles:
1. Each layer's output is the next layer's input
2. Money is always Decimal - never float - so sums are exact
3. Violations carry a type AND a message so reports stay readable while
   tests and JSON consumers can filter on the type

Schema relationships:
    Item           --used by--> CheckRecord.items
    ViolationType  --used by--> Violation.type
    Violation      --used by--> CheckRecord.anomalies, IntegrityReport.violations
    CheckRecord    --used by--> ReconciliationResult.records
    IntegrityReport --used by--> ReconciliationResult.report
"""

from __future__ import annotations

from decimal import Decimal, Inexact, localcontext
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0.00")


def exact_sum(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimals without rounding, whatever their length.

    The default context keeps 28 significant digits, so long amounts are
    added under a context wide enough for every operand. Inexact is trapped
    so a result that would still round raises instead.
    """
    amounts = list(amounts)
    precision = len(amounts) + 2
    for amount in amounts:
        _, digits, exponent = amount.as_tuple()
        precision += len(digits) + abs(exponent)

    total = ZERO
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, precision)
        ctx.traps[Inexact] = True
        for amount in amounts:
            total += amount
    return total


class MalformedFilenameError(ValueError):
    """Raised when a filename matches the prefix grammar but cannot be parsed.

    This is a fatal condition: the run aborts without a partial report.
    """

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Malformed filename '{filename}': {reason}")


class FileKind(str, Enum):
    """What a prefixed file contributes to its record."""

    # Remainder starts with "check" - the payment instrument for the record.
    CHECK = "check"

    # Remainder starts with "EOB" - underscore-delimited name/amount pairs.
    ITEM_LIST = "item_list"

    # Remainder matches neither marker. Contributes nothing but is reported.
    UNKNOWN = "unknown"


class ViolationType(str, Enum):
    """Every class of consistency problem the run can surface."""

    MISSING_CHECK_TOTAL = "missing_check_total"
    MISSING_CHECK_NUMBER = "missing_check_number"
    MISSING_CHECK_FILE = "missing_check_file"
    CHECK_TOTAL_MISMATCH = "check_total_mismatch"
    CHECK_NUMBER_MISMATCH = "check_number_mismatch"
    ITEM_TOTAL_MISMATCH = "item_total_mismatch"
    GRAND_TOTAL_MISMATCH = "grand_total_mismatch"

    # Found while aggregating rather than while checking.
    DUPLICATE_CHECK_FILE = "duplicate_check_file"
    UNPAIRED_ITEM_TOKEN = "unpaired_item_token"
    UNRECOGNIZED_FILE = "unrecognized_file"


class FileTokens(BaseModel):
    """Structured view of one prefixed filename.

    Produced by filenames.tokenize_filename(). Only names that match the
    prefix grammar get a FileTokens - everything else is skipped before
    this model is ever built.
    """

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Original filename, untouched.")
    prefix: str = Field(
        ...,
        description=(
            "Grouping key: '<cents>-<check number>' with the trailing "
            "underscore trimmed. Example: '10050-ABC1'."
        ),
    )
    suffix: str = Field(
        default="",
        description=(
            "Payload after the prefix. For item lists this is the "
            "name/amount token run without the 'EOB_' marker and the "
            "4-character extension. For checks it is the remainder minus "
            "the extension ('check'). Empty for unknown files."
        ),
    )
    kind: FileKind = Field(..., description="Classification of the remainder.")


class Item(BaseModel):
    """One payment line parsed from an EOB filename."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Free-text payee token, e.g. 'John'.")
    paid: Decimal = Field(
        ...,
        ge=0,
        description=(
            "Exact amount paid. Parsed from a fixed-point cents digit "
            "string, so it is never negative: '5050' -> Decimal('50.50')."
        ),
    )


class Violation(BaseModel):
    """A single collected consistency problem.

    Violations never stop a run. They are gathered and surfaced together
    at the end, numbered in report order.
    """

    model_config = ConfigDict(frozen=True)

    type: ViolationType
    prefix: str = Field(default="", description="Record the violation belongs to.")
    message: str = Field(..., description="Human-readable report line.")
    filename: Optional[str] = Field(
        default=None,
        description="Offending file, when a single file is to blame.",
    )


class CheckRecord(BaseModel):
    """One logical reconciliation unit ("EOB"), keyed by its prefix.

    Created the first time any file with a new prefix is seen. The check
    total and check number come from the prefix and never change after
    that. Later files only attach the check file or append items.

    The aggregator never mutates a record in place; it swaps in an updated
    copy (model_copy) so a mapping handed out earlier stays as it was.
    """

    prefix: str = Field(..., description="Shared key, e.g. '10050-ABC1'.")
    check_total: Decimal = Field(
        ...,
        description=(
            "Authoritative expected total for this record, parsed from the "
            "digits before the hyphen using the fixed-point cents convention."
        ),
    )
    check_number: str = Field(
        ...,
        description="Check identifier, the alphanumeric field after the hyphen.",
    )
    check_file: str = Field(
        default="",
        description=(
            "Full name of the check document for this record. Empty until a "
            "check file is seen - staying empty is itself a violation."
        ),
    )
    items: list[Item] = Field(
        default_factory=list,
        description="Payment lines in file-processing order. Append-only.",
    )
    source_files: list[str] = Field(
        default_factory=list,
        description="Every filename folded into this record, in processing order.",
    )
    anomalies: list[Violation] = Field(
        default_factory=list,
        description=(
            "Problems noticed while aggregating (duplicate check files, "
            "unpaired item tokens, unrecognized files). The integrity "
            "checker reports them after the record's own checks."
        ),
    )

    @property
    def item_total(self) -> Decimal:
        """Exact sum of every item's paid amount, starting from zero."""
        return exact_sum(item.paid for item in self.items)

    @property
    def is_balanced(self) -> bool:
        """Whether the item sum equals the check total."""
        return self.item_total == self.check_total


class IntegrityReport(BaseModel):
    """Output of integrity.check_integrity()."""

    grand_total: Decimal = Field(
        default=ZERO,
        description="Sum of every record's item total.",
    )
    violations: list[Violation] = Field(default_factory=list)
    record_count: int = Field(default=0, ge=0)

    @property
    def messages(self) -> list[str]:
        """Violation messages in report order."""
        return [violation.message for violation in self.violations]


class ReconciliationResult(BaseModel):
    """Everything one run produced, ready for the report layer."""

    expected_total: Decimal
    report: IntegrityReport
    records: dict[str, CheckRecord] = Field(default_factory=dict)
    total_violation: Optional[Violation] = Field(
        default=None,
        description="Grand total vs expected total mismatch, if any.",
    )
    scanned_files: int = Field(default=0, ge=0)
    skipped_files: int = Field(
        default=0,
        ge=0,
        description="Names that did not match the prefix grammar.",
    )

    @property
    def violations(self) -> list[Violation]:
        """Grand-total mismatch first, then per-record violations."""
        ordered: list[Violation] = []
        if self.total_violation is not None:
            ordered.append(self.total_violation)
        ordered.extend(self.report.violations)
        return ordered

    @property
    def messages(self) -> list[str]:
        return [violation.message for violation in self.violations]

    @property
    def total_matches(self) -> bool:
        return self.total_violation is None

    @property
    def is_clean(self) -> bool:
        return not self.violations
