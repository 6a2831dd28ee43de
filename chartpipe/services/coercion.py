"""Scalar coercion rules shared by the shape analyzer and the reshapers.

Query results arrive as JSON, so a column may hold real numbers, numeric
strings, date strings, nested objects or nulls. These helpers make every
fallback explicit: a value that does not parse becomes ``None`` (parse) or
the given default (coerce), never a silent falsy substitute.
"""
import math
import re
import warnings
from decimal import Decimal
from functools import lru_cache
from typing import Any, Optional, Union

import pandas as pd

Number = Union[int, float]

# Unsigned 0x, 0o and 0b literals parse as integers; signed ones do not.
_RADIX_LITERAL = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")


def is_number(value: Any) -> bool:
    """True for real numeric types; booleans and NaN do not count."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, (float, Decimal)):
        return math.isfinite(value)
    return False


def parse_number(value: Any) -> Optional[Number]:
    """Parse ``value`` fully as a finite number, or return ``None``."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    # float() accepts "1_000", "nan" and "inf"; none of them are numeric cells.
    if not text or "_" in text:
        return None
    if _RADIX_LITERAL.fullmatch(text):
        return int(text, 0)
    try:
        return int(text)
    except ValueError:
        pass
    try:
        parsed = float(text)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def is_numeric_value(value: Any) -> bool:
    """Numeric for classification purposes: a number or a numeric string."""
    if value is None or isinstance(value, bool):
        return False
    return parse_number(value) is not None


def coerce_number(value: Any, default: Number = 0) -> Number:
    parsed = parse_number(value)
    return default if parsed is None else parsed


@lru_cache(maxsize=4096)
def parse_timestamp(value: str) -> Optional[int]:
    """Nanosecond timestamp of a date-like string, or ``None``."""
    text = value.strip()
    if not text:
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    return int(parsed.value)
