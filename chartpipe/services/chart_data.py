from typing import Any, Optional, Sequence

from chartpipe.config.observability import log_error, timed
from chartpipe.config.settings import settings
from chartpipe.schemas.charts import CHART_TYPES, ChartDataConfig, DataKeys
from chartpipe.services.shape_analyzer import DEFAULT_PRIMARY_KEY, DEFAULT_X_AXIS_KEY, analyze
from chartpipe.viz.base import IReshapeStrategy
from chartpipe.viz.registry import InvalidChartTypeError, factory
import chartpipe.viz  # noqa: F401 ensures default strategies registered

__all__ = ["InvalidChartTypeError", "default_chart_data_config", "infer_chart_data_config", "resolve_strategy"]


def default_chart_data_config() -> ChartDataConfig:
    return ChartDataConfig(
        data=[], data_keys=DataKeys(primary=DEFAULT_PRIMARY_KEY), x_axis_key=DEFAULT_X_AXIS_KEY
    )


def resolve_strategy(chart_type: str) -> IReshapeStrategy:
    try:
        return factory.require(chart_type)
    except InvalidChartTypeError as exc:
        log_error("invalid_chart_type", str(exc), supported=CHART_TYPES)
        raise


def infer_chart_data_config(
    rows: Optional[Sequence[Any]], chart_type: str, pivot_series: Optional[bool] = None
) -> ChartDataConfig:
    """Analyze ``rows`` and reshape them for ``chart_type``.

    Empty input yields the default config rather than an error. An unknown
    chart type is rejected even when there is nothing to reshape.
    """
    strategy = resolve_strategy(chart_type)

    shape = analyze(rows)
    if shape.is_empty:
        return default_chart_data_config()

    if pivot_series is None:
        pivot_series = settings.enable_series_pivot
    with timed("reshape_chart_data", chart_type=chart_type, rows=len(shape.rows)):
        return strategy.reshape(shape, {"pivot_series": pivot_series}, settings)
