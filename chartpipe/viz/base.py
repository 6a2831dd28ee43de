from abc import ABC, abstractmethod
from typing import Any, Dict, List

from chartpipe.schemas.charts import ChartDataConfig, DataKeys, Row, ShapeDescriptor
from chartpipe.services.coercion import coerce_number


class IReshapeStrategy(ABC):
    """Strategy turning an analyzed result set into a renderer-ready config.

    shape: ShapeDescriptor produced by the shape analyzer (normalised rows included)
    config: per-request options such as ``pivot_series``
    settings: application settings

    To add a new chart type: create a strategy class in chartpipe/viz/strategies/,
    implement reshape, and register the key in chartpipe/viz/__init__.py.
    """

    @abstractmethod
    def reshape(self, shape: ShapeDescriptor, config: Dict[str, Any], settings: Any) -> ChartDataConfig:
        ...


def coerce_rows(shape: ShapeDescriptor) -> List[Row]:
    """Fill in the axis column and force the metric columns to numbers.

    A missing axis value becomes the 1-based row position; an unparseable
    metric becomes 0.
    """
    coerced: List[Row] = []
    for index, row in enumerate(shape.rows):
        out = dict(row)
        if shape.x_axis_key not in out:
            out[shape.x_axis_key] = index + 1
        out[shape.primary_key] = coerce_number(row.get(shape.primary_key))
        if shape.secondary_key:
            out[shape.secondary_key] = coerce_number(row.get(shape.secondary_key))
        coerced.append(out)
    return coerced


def series_config(rows: List[Row], shape: ShapeDescriptor) -> ChartDataConfig:
    return ChartDataConfig(
        data=rows,
        data_keys=DataKeys(primary=shape.primary_key, secondary=shape.secondary_key),
        x_axis_key=shape.x_axis_key,
    )
