from collections.abc import Mapping
from typing import Any, List, Optional, Sequence

from chartpipe.schemas.charts import Row, ShapeDescriptor
from chartpipe.services.coercion import coerce_number, is_number, is_numeric_value

DEFAULT_PRIMARY_KEY = "value"
DEFAULT_X_AXIS_KEY = "label"
INDEX_KEY = "index"


def default_shape() -> ShapeDescriptor:
    return ShapeDescriptor(primary_key=DEFAULT_PRIMARY_KEY, x_axis_key=DEFAULT_X_AXIS_KEY)


def normalize_rows(rows: Optional[Sequence[Any]]) -> List[Row]:
    """Copy mapping rows and wrap bare scalars as ``{"value", "label"}`` rows."""
    normalized: List[Row] = []
    for index, row in enumerate(rows or []):
        if isinstance(row, Mapping):
            normalized.append({str(key): value for key, value in row.items()})
        else:
            normalized.append({"value": coerce_number(row), "label": f"Row {index + 1}"})
    return normalized


def _is_categorical(value: Any) -> bool:
    return isinstance(value, (str, Mapping, list, tuple))


def analyze(rows: Optional[Sequence[Any]]) -> ShapeDescriptor:
    """Classify the columns of an untyped result set.

    Only the first row is inspected; rows that deviate from its typing are
    handled by coercion when reshaping.
    """
    normalized = normalize_rows(rows)
    if not normalized:
        return default_shape()

    sample = normalized[0]
    keys = list(sample.keys())
    if not keys:
        shape = default_shape()
        shape.rows = normalized
        return shape

    numeric_keys = [key for key in keys if is_numeric_value(sample[key])]
    categorical_keys = [key for key in keys if _is_categorical(sample[key])]

    if numeric_keys:
        primary_key = numeric_keys[0]
    else:
        primary_key = keys[1] if len(keys) > 1 else keys[0]
    secondary_key = next((key for key in numeric_keys if key != primary_key), None)

    # Numeric strings may still serve as the axis, real numbers may not.
    x_axis_key = next(
        (key for key in keys if key != primary_key and not is_number(sample[key])),
        INDEX_KEY,
    )

    return ShapeDescriptor(
        rows=normalized,
        keys=keys,
        primary_key=primary_key,
        secondary_key=secondary_key,
        x_axis_key=x_axis_key,
        numeric_keys=numeric_keys,
        categorical_keys=categorical_keys,
    )
