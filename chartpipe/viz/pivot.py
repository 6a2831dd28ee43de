"""Long-to-wide pivot for ``(x, category, value)`` result sets.

A query such as ``SELECT month, user_type, COUNT(*)`` returns one row per
(month, user_type) pair. Charts plot it as one series per user type, so the
rows are regrouped to one row per month with a column per user type.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from chartpipe.schemas.charts import ChartDataConfig, DataKeys, Row, ShapeDescriptor
from chartpipe.services.coercion import coerce_number, parse_timestamp
from chartpipe.viz.ordering import sort_by_axis

TIME_HINTS = ("month", "date", "time", "year", "day", "week")
GROUPING_HINTS = ("type", "category", "status", "group", "name")
UNKNOWN_CATEGORY = "Unknown"


@dataclass
class SeriesPivot:
    x_axis_key: str
    grouping_key: str
    value_key: str


def _string_keys(shape: ShapeDescriptor) -> List[str]:
    sample = shape.rows[0]
    return [key for key in shape.keys if isinstance(sample[key], str)]


def _looks_temporal(key: str, value: str) -> bool:
    if parse_timestamp(value) is not None:
        return True
    lowered = key.lower()
    return any(hint in lowered for hint in TIME_HINTS)


def detect_series_pivot(shape: ShapeDescriptor) -> Optional[SeriesPivot]:
    """Pick axis, grouping and value columns, or ``None`` when the rows do not fit."""
    if shape.is_empty or not shape.numeric_keys:
        return None
    string_keys = _string_keys(shape)
    if len(string_keys) < 2:
        return None

    sample = shape.rows[0]
    x_axis_key = next(
        (key for key in string_keys if _looks_temporal(key, sample[key])),
        string_keys[0],
    )
    grouping_key = next(
        (
            key
            for key in string_keys
            if key != x_axis_key and any(hint in key.lower() for hint in GROUPING_HINTS)
        ),
        None,
    ) or next(key for key in string_keys if key != x_axis_key)
    return SeriesPivot(x_axis_key=x_axis_key, grouping_key=grouping_key, value_key=shape.numeric_keys[0])


def _category(row: Row, key: str) -> str:
    value = row.get(key)
    return UNKNOWN_CATEGORY if value is None or value == "" else str(value)


def pivot_rows(shape: ShapeDescriptor, pivot: SeriesPivot) -> ChartDataConfig:
    grouped: Dict[str, Row] = {}
    categories: List[str] = []
    for row in shape.rows:
        category = _category(row, pivot.grouping_key)
        if category not in categories:
            categories.append(category)
        x_value = row.get(pivot.x_axis_key)
        bucket = grouped.setdefault(str(x_value), {pivot.x_axis_key: x_value})
        bucket[category] = coerce_number(row.get(pivot.value_key))

    # Each pivoted row must carry every series, absent pairs plot as zero.
    for bucket in grouped.values():
        for category in categories:
            bucket.setdefault(category, 0)

    data = sort_by_axis(list(grouped.values()), pivot.x_axis_key)
    primary = categories[0] if categories else pivot.value_key
    secondary = categories[1] if len(categories) > 1 else None
    return ChartDataConfig(
        data=data,
        data_keys=DataKeys(primary=primary, secondary=secondary),
        x_axis_key=pivot.x_axis_key,
    )
