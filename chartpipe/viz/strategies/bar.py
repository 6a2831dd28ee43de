from typing import Any, Dict, List, Optional

from chartpipe.config.observability import log_event
from chartpipe.schemas.charts import ChartDataConfig, DataKeys, ShapeDescriptor
from chartpipe.viz.base import IReshapeStrategy, coerce_rows, series_config
from chartpipe.viz.pivot import UNKNOWN_CATEGORY, detect_series_pivot, pivot_rows

# Heuristic carried over from the dashboard; may misfire on other schemas.
CATEGORY_HINTS = ("value", "name", "category", "institute")


def select_category_key(categorical_keys: List[str]) -> Optional[str]:
    for key in categorical_keys:
        lowered = key.lower()
        if any(hint in lowered for hint in CATEGORY_HINTS):
            return key
    return categorical_keys[-1] if categorical_keys else None


class BarStrategy(IReshapeStrategy):
    """Bar chart, order-preserving.

    With no numeric column at all the bars count occurrences of each value of
    a categorical column instead, emitted as ``{"name", "value"}`` rows in
    first-occurrence order.
    """

    def reshape(self, shape: ShapeDescriptor, config: Dict[str, Any], settings: Any) -> ChartDataConfig:
        if not shape.numeric_keys:
            category_key = select_category_key(shape.categorical_keys)
            if category_key:
                return self._count_categories(shape, category_key)

        if config.get("pivot_series"):
            pivot = detect_series_pivot(shape)
            if pivot is not None:
                return pivot_rows(shape, pivot)

        return series_config(coerce_rows(shape), shape)

    def _count_categories(self, shape: ShapeDescriptor, category_key: str) -> ChartDataConfig:
        counts: Dict[str, int] = {}
        for row in shape.rows:
            value = row.get(category_key)
            name = UNKNOWN_CATEGORY if value is None else str(value)
            counts[name] = counts.get(name, 0) + 1

        log_event("bar.category_count", category_key=category_key, categories=len(counts))
        return ChartDataConfig(
            data=[{"name": name, "value": count} for name, count in counts.items()],
            data_keys=DataKeys(primary="value"),
            x_axis_key="name",
        )
