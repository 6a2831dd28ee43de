"""Numeric keys for chart identifiers.

Pinned charts are tracked by number while backend charts carry string or UUID
ids. ``to_numeric_key`` maps both onto one space. It is lossy for arbitrary
strings (a plain sum of UTF-16 code units) and exact only for ids that were
already numeric, which is enough for toggling pins in the UI.
"""
import math
from decimal import Decimal
from typing import Any, Union

from chartpipe.services.coercion import parse_number

NumericKey = Union[int, float]


def _utf16_code_unit_sum(text: str) -> int:
    encoded = text.encode("utf-16-le")
    return sum(int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2))


def to_numeric_key(chart_id: Any) -> NumericKey:
    if isinstance(chart_id, bool):
        return 0
    if isinstance(chart_id, (int, float, Decimal)):
        return 0 if isinstance(chart_id, (float, Decimal)) and math.isnan(chart_id) else chart_id
    if isinstance(chart_id, str):
        trimmed = chart_id.strip()
        if not trimmed:
            return 0
        parsed = parse_number(trimmed)
        if parsed is not None:
            return parsed
        return _utf16_code_unit_sum(trimmed)
    return 0
