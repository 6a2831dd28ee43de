from functools import cmp_to_key
from typing import Any, List

from chartpipe.schemas.charts import Row
from chartpipe.services.coercion import is_number, parse_timestamp


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def compare_axis_values(a: Any, b: Any) -> int:
    """Order two x-axis values: dates, then strings, then numbers, then text."""
    if isinstance(a, str) and isinstance(b, str):
        a_ts = parse_timestamp(a)
        b_ts = parse_timestamp(b)
        if a_ts is not None and b_ts is not None:
            return _cmp(a_ts, b_ts)
        return _cmp(a, b)
    if is_number(a) and is_number(b):
        return _cmp(a, b)
    return _cmp(str(a), str(b))


def sort_by_axis(rows: List[Row], x_axis_key: str) -> List[Row]:
    return sorted(rows, key=cmp_to_key(lambda a, b: compare_axis_values(a.get(x_axis_key), b.get(x_axis_key))))
