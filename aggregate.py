"""
aggregate.py - Fold filenames into CheckRecords keyed by prefix.

The fold is pure: every step takes the mapping built so far plus one
filename and returns a new mapping. Records are replaced with updated
copies, so no mapping or record handed to a caller changes afterwards.

Item order inside a record follows processing order. Names are sorted
before folding (unless the caller opts out) so two listings of the same
directory always produce the same records; only the item *sum* matters
to the integrity checks.
"""

from __future__ import annotations

from functools import reduce
from typing import Iterable, Mapping

from filenames import split_item_tokens, tokenize_filename
from logging_config import get_logger
from models import CheckRecord, FileKind, FileTokens, Item, Violation, ViolationType
from normalize import normalize_cents, split_prefix

logger = get_logger(__name__)

RecordMap = Mapping[str, CheckRecord]


def _new_record(tokens: FileTokens) -> CheckRecord:
    check_total, check_number = split_prefix(tokens.prefix, tokens.filename)
    logger.debug(
        "record_init | prefix=%s | check_total=%s | check_number=%s",
        tokens.prefix,
        check_total,
        check_number,
    )
    return CheckRecord(prefix=tokens.prefix, check_total=check_total, check_number=check_number)


def _attach_check_file(record: CheckRecord, tokens: FileTokens) -> dict:
    anomalies = list(record.anomalies)
    if record.check_file and record.check_file != tokens.filename:
        logger.warning(
            "duplicate_check_file | prefix=%s | previous=%s | replacement=%s",
            record.prefix,
            record.check_file,
            tokens.filename,
        )
        anomalies.append(
            Violation(
                type=ViolationType.DUPLICATE_CHECK_FILE,
                prefix=record.prefix,
                filename=tokens.filename,
                message=(
                    f"Duplicate check file for {record.prefix}: "
                    f"{tokens.filename} replaces {record.check_file}"
                ),
            )
        )
    return {"check_file": tokens.filename, "anomalies": anomalies}


def _append_items(record: CheckRecord, tokens: FileTokens) -> dict:
    pairs, leftover = split_item_tokens(tokens.suffix)
    items = list(record.items)
    for name, amount in pairs:
        items.append(Item(name=name, paid=normalize_cents(amount, tokens.filename)))

    anomalies = list(record.anomalies)
    if leftover is not None:
        logger.warning(
            "unpaired_item_token | prefix=%s | file=%s | token=%r",
            record.prefix,
            tokens.filename,
            leftover,
        )
        anomalies.append(
            Violation(
                type=ViolationType.UNPAIRED_ITEM_TOKEN,
                prefix=record.prefix,
                filename=tokens.filename,
                message=f"Item '{leftover}' has no paid amount in file {tokens.filename}",
            )
        )

    logger.debug(
        "items_parsed | prefix=%s | file=%s | items=%s",
        record.prefix,
        tokens.filename,
        len(pairs),
    )
    return {"items": items, "anomalies": anomalies}


def _flag_unrecognized(record: CheckRecord, tokens: FileTokens) -> dict:
    anomalies = list(record.anomalies)
    anomalies.append(
        Violation(
            type=ViolationType.UNRECOGNIZED_FILE,
            prefix=record.prefix,
            filename=tokens.filename,
            message=f"File {tokens.filename} is neither an EOB nor a check file for {record.prefix}",
        )
    )
    return {"anomalies": anomalies}


def fold_filename(records: RecordMap, filename: str) -> dict[str, CheckRecord]:
    """One fold step: return a new mapping with `filename` applied."""
    tokens = tokenize_filename(filename)
    if tokens is None:
        return dict(records)

    record = records.get(tokens.prefix)
    if record is None:
        record = _new_record(tokens)

    if tokens.kind == FileKind.CHECK:
        update = _attach_check_file(record, tokens)
    elif tokens.kind == FileKind.ITEM_LIST:
        update = _append_items(record, tokens)
    else:
        update = _flag_unrecognized(record, tokens)

    update["source_files"] = [*record.source_files, tokens.filename]
    return {**records, tokens.prefix: record.model_copy(update=update)}


def aggregate_records(
    filenames: Iterable[str],
    sort_names: bool = True,
) -> dict[str, CheckRecord]:
    """Group filenames into CheckRecords keyed by prefix.

    Names outside the prefix grammar are skipped. MalformedFilenameError
    propagates and aborts the run.
    """
    names = [name for name in (filenames or []) if name]
    if sort_names:
        names = sorted(names)

    records = reduce(fold_filename, names, {})
    logger.info(
        "aggregate_complete | files=%s | records=%s | items=%s",
        len(names),
        len(records),
        sum(len(record.items) for record in records.values()),
    )
    return records
