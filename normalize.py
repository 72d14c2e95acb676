"""
normalize.py - Cell-level normalization helpers.

Core helpers:
    cell_text(record, column)       -> raw cell text ('' when missing)
    parse_number(value)             -> leading number or None
    parse_amount(value)             -> float, unparseable -> 0.0
    format_amount(value)            -> 2-decimal text or ''
    parse_dimensions(value)         -> Dimensions
    first_non_empty(records, col)   -> representative value for a group

Design principles:
    - Pure transformations, no I/O
    - Invalid input degrades to neutral defaults ('' or 0.0), never raises
    - Values are passed through unchanged unless a rule says otherwise
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from logging_config import get_logger
from models import Dimensions

logger = get_logger(__name__)

# Leading decimal number, optional exponent. Trailing text is ignored, so
# "12.50 USD" reads as 12.5 and "N/A" does not read at all.
_LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

DIMENSION_SEPARATOR = "x"


def cell_text(record: Mapping[str, Any], column: str) -> str:
    """Return a record's cell as text; missing keys and None read as ''."""
    value = record.get(column)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def parse_number(value: Any) -> Optional[float]:
    """Parse the leading number of a cell, or None when there is none."""
    if value is None:
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip()
    if not text:
        return None

    match = _LEADING_NUMBER_RE.match(text)
    if match is None:
        return None

    try:
        number = float(match.group(0))
    except (ValueError, OverflowError):
        return None

    if not math.isfinite(number):
        logger.debug("parse_number | non_finite | raw=%r", value)
        return None
    return number


def parse_amount(value: Any) -> float:
    """Parse a monetary cell; blank or unparseable cells count as 0.0."""
    number = parse_number(value)
    if number is None:
        if not is_blank(value):
            logger.debug("parse_amount | unparseable | raw=%r | fallback=0.0", value)
        return 0.0
    return number


def format_amount(value: Any) -> str:
    """Format a number or numeric cell with exactly two decimals.

    Blank and unparseable input returns ''. Negative zero prints as '0.00'.
    """
    if value is None or (isinstance(value, str) and value == ""):
        return ""

    number = parse_number(value)
    if number is None:
        return ""

    text = f"{number:.2f}"
    if text == "-0.00":
        text = "0.00"
    return text


def parse_dimensions(value: Any) -> Dimensions:
    """Decode 'L x W x H' into three fields.

    Splits on the separator, trims each part and drops empty ones. Fewer than
    three parts means the value is treated as absent.
    """
    if is_blank(value):
        return Dimensions()

    parts = [part.strip() for part in str(value).split(DIMENSION_SEPARATOR)]
    parts = [part for part in parts if part]

    if len(parts) < 3:
        logger.debug("parse_dimensions | malformed | raw=%r | fallback=empty", value)
        return Dimensions()

    return Dimensions(length=parts[0], width=parts[1], height=parts[2])


def first_non_empty(
    records: Sequence[Mapping[str, Any]],
    column: str,
    skip_zero: bool = False,
    truncate: Optional[int] = None,
) -> str:
    """Return the first usable value of `column` across a group's records.

    Args:
        records: Group members in input order.
        column: Column to read.
        skip_zero: Treat values that parse to exactly 0 as absent.
        truncate: Cap the returned value to its first `truncate` characters.

    Returns:
        The raw cell text of the first qualifying record, or '' if none qualify.
    """
    for record in records:
        value = cell_text(record, column)
        if not value.strip():
            continue

        if skip_zero and parse_number(value) == 0:
            continue

        if truncate is not None and len(value) > truncate:
            return value[:truncate]

        return value

    return ""
