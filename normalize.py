"""
normalize.py - Currency and prefix normalization.

Two core normalizers:
    normalize_cents(digits)   -> exact Decimal using the fixed-point cents convention
    split_prefix(prefix)      -> (check_total, check_number)

Design principles:
    - Money is Decimal end to end; floats never touch an amount
    - Pure transformations, no filesystem access
    - Bad input is fatal: these raise MalformedFilenameError instead of
      degrading to a default, because a silently-zeroed amount would hide
      exactly the mismatch the run exists to find
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from logging_config import get_logger
from models import MalformedFilenameError

logger = get_logger(__name__)

CENTS_PATTERN = re.compile(r"[0-9]{2,}")
PREFIX_SEPARATOR = "-"


def normalize_cents(digits: str, filename: str = "") -> Decimal:
    """Parse a cents digit string into an exact Decimal.

    The last two digits are cents: '10050' -> Decimal('100.50'),
    '50' -> Decimal('0.50').
    """
    if digits is None or not CENTS_PATTERN.fullmatch(str(digits)):
        raise MalformedFilenameError(
            filename or str(digits),
            f"amount token {digits!r} is not a digit string of length >= 2",
        )

    text = f"{digits[:-2]}.{digits[-2:]}"
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise MalformedFilenameError(
            filename or digits,
            f"amount token {digits!r} is not a number",
        ) from exc

    logger.debug("normalize_cents | raw=%r | normalized=%s", digits, value)
    return value


def split_prefix(prefix: str, filename: str = "") -> tuple[Decimal, str]:
    """Split a '<cents>-<check number>' prefix into its total and number."""
    fields = str(prefix).split(PREFIX_SEPARATOR)
    if len(fields) != 2:
        raise MalformedFilenameError(
            filename or prefix,
            f"prefix {prefix!r} does not split into exactly two hyphen-separated fields",
        )

    total_digits, check_number = fields
    return normalize_cents(total_digits, filename or prefix), check_number
