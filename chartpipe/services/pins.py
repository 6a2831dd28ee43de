from typing import Dict, List

from chartpipe.config.observability import log_event
from chartpipe.schemas.charts import ChartDefinition
from chartpipe.services.identity import NumericKey, to_numeric_key


class PinnedCharts:
    """In-memory pin toggles, keyed by the chart's numeric key.

    Persistence belongs to the backend favorites service; this only mirrors
    the state the UI shows.
    """

    def __init__(self) -> None:
        self._pinned: Dict[NumericKey, ChartDefinition] = {}

    def is_pinned(self, chart_id) -> bool:
        return to_numeric_key(chart_id) in self._pinned

    def is_chart_pinned(self, chart: ChartDefinition) -> bool:
        return chart.is_favorite or self.is_pinned(chart.id)

    def pin(self, chart: ChartDefinition) -> None:
        self._pinned[to_numeric_key(chart.id)] = chart

    def unpin(self, chart_id) -> None:
        self._pinned.pop(to_numeric_key(chart_id), None)

    def toggle(self, chart: ChartDefinition) -> bool:
        if self.is_pinned(chart.id):
            self.unpin(chart.id)
            pinned = False
        else:
            self.pin(chart)
            pinned = True
        log_event("chart_pin_toggled", chart_id=chart.key, pinned=pinned)
        return pinned

    def pinned(self) -> List[ChartDefinition]:
        return list(self._pinned.values())
