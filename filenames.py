"""
filenames.py - Filename tokenizer.

Turns one filename into a FileTokens (prefix, suffix, kind) using a fixed
lexical grammar:

    <cents>-<check number>_EOB_<name>_<cents>_<name>_<cents>_.ext   item list
    <cents>-<check number>_check.ext                                check

Anything that does not start with '<digits>-<alnum>_' belongs to some other
file set and is skipped (tokenize_filename returns None).
"""

from __future__ import annotations

import re
from typing import Optional

from logging_config import get_logger
from models import FileKind, FileTokens, MalformedFilenameError

logger = get_logger(__name__)

PREFIX_REGEX = r"^([0-9]+)-([0-9A-Za-z]+)_"
PREFIX_PATTERN = re.compile(PREFIX_REGEX)

ITEM_LIST_MARKER = "EOB"
CHECK_MARKER = "check"
EXTENSION_LENGTH = 4  # ".pdf", ".csv"
MARKER_DELIMITER_LENGTH = 1


def is_applicable(filename: str) -> bool:
    """Whether the name belongs to the EOB/check file set at all."""
    return bool(filename) and PREFIX_PATTERN.match(filename) is not None


def tokenize_filename(filename: str) -> Optional[FileTokens]:
    """Split a filename into prefix and classified suffix.

    Returns None for names outside the grammar. Raises
    MalformedFilenameError when the prefix cannot be split into exactly two
    hyphen-separated fields.
    """
    if not filename:
        return None

    match = PREFIX_PATTERN.match(filename)
    if match is None:
        logger.debug("tokenize_skip | file=%s | reason='prefix grammar'", filename)
        return None

    prefix = match.group(0)[:-1]
    if len(prefix.split("-")) != 2:
        raise MalformedFilenameError(filename, f"prefix {prefix!r} is not '<cents>-<check number>'")

    remainder = filename[match.end():]

    if remainder.startswith(ITEM_LIST_MARKER):
        start = len(ITEM_LIST_MARKER) + MARKER_DELIMITER_LENGTH
        suffix = remainder[start : max(start, len(remainder) - EXTENSION_LENGTH)]
        kind = FileKind.ITEM_LIST
    elif remainder.startswith(CHECK_MARKER):
        suffix = remainder[: max(0, len(remainder) - EXTENSION_LENGTH)]
        kind = FileKind.CHECK
    else:
        suffix = ""
        kind = FileKind.UNKNOWN
        logger.warning("tokenize_unknown_marker | file=%s | remainder=%r", filename, remainder)

    tokens = FileTokens(filename=filename, prefix=prefix, suffix=suffix, kind=kind)
    logger.debug(
        "tokenize_file | file=%s | prefix=%s | kind=%s | suffix=%r",
        filename,
        tokens.prefix,
        tokens.kind.value,
        tokens.suffix,
    )
    return tokens


def split_item_tokens(suffix: str) -> tuple[list[tuple[str, str]], Optional[str]]:
    """Pair up underscore-delimited name/amount tokens.

    Returns (pairs, leftover) where leftover is the trailing name token that
    had no amount after it, or None when every name was paired. Item lists
    conventionally end with '_' before the extension, so an empty trailing
    token is not a leftover.
    """
    if not suffix:
        return [], None

    tokens = suffix.split("_")
    pairs = [(tokens[index - 1], tokens[index]) for index in range(1, len(tokens), 2)]
    leftover = tokens[-1] if len(tokens) % 2 == 1 and tokens[-1] else None
    return pairs, leftover
