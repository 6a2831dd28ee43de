from typing import Any, Dict

from chartpipe.schemas.charts import ChartDataConfig, ShapeDescriptor
from chartpipe.viz.base import IReshapeStrategy, coerce_rows, series_config
from chartpipe.viz.ordering import sort_by_axis
from chartpipe.viz.pivot import detect_series_pivot, pivot_rows


class LineStrategy(IReshapeStrategy):
    """Line chart over the x-axis column.

    Query results are not guaranteed to arrive in axis order, so rows are
    sorted ascending by the x-axis value (dates, strings, then numbers).
    """

    def reshape(self, shape: ShapeDescriptor, config: Dict[str, Any], settings: Any) -> ChartDataConfig:
        if config.get("pivot_series"):
            pivot = detect_series_pivot(shape)
            if pivot is not None:
                return pivot_rows(shape, pivot)

        rows = sort_by_axis(coerce_rows(shape), shape.x_axis_key)
        return series_config(rows, shape)


class AreaStrategy(LineStrategy):
    """Area chart; same ordering rules as the line chart."""
