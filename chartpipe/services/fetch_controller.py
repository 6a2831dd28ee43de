"""Per-chart asynchronous fetch bookkeeping.

Each chart identity owns one ``ChartDataStatus`` in the controller. A fetch
moves it to loading and then to success or error. Every trigger takes a
generation number; a completed fetch only lands if no newer trigger for the
same chart was issued meanwhile, so the latest request wins regardless of
the order in which responses arrive.
"""
import itertools
from datetime import date
from typing import Dict, Optional, Union

from chartpipe.config.observability import log_error, log_event, log_warning
from chartpipe.schemas.charts import (
    ChartDataConfig,
    ChartDataStatus,
    ChartDefinition,
    ChartRows,
    DateRange,
)
from chartpipe.services.chart_data import (
    default_chart_data_config,
    infer_chart_data_config,
    resolve_strategy,
)
from chartpipe.services.dates import request_bounds
from chartpipe.services.query_client import FETCH_FAILED_MESSAGE, ChartRowsFetcher
from chartpipe.services.result_cache import ChartResultCache, cache_key
from chartpipe.services.validators import missing_chart_config

CONFIG_ERROR_MESSAGE = "Chart has no query or database connection configured"

ChartId = Union[int, str]


class UnknownChartError(KeyError):
    pass


class ChartDataFetchController:
    def __init__(self, client: ChartRowsFetcher, cache: Optional[ChartResultCache] = None) -> None:
        self._client = client
        self._cache = cache
        self._charts: Dict[str, ChartDefinition] = {}
        self._statuses: Dict[str, ChartDataStatus] = {}
        self._date_ranges: Dict[str, DateRange] = {}
        self._latest_generation: Dict[str, int] = {}
        self._generations = itertools.count(1)

    def chart(self, chart_id: ChartId) -> ChartDefinition:
        chart = self._charts.get(str(chart_id))
        if chart is None:
            raise UnknownChartError(f"Unknown chart: {chart_id}")
        return chart

    def status(self, chart_id: ChartId) -> Optional[ChartDataStatus]:
        return self._statuses.get(str(chart_id))

    def statuses(self) -> Dict[str, ChartDataStatus]:
        return dict(self._statuses)

    def date_range(self, chart_id: ChartId) -> Optional[DateRange]:
        return self._date_ranges.get(str(chart_id))

    async def ensure_fetched(self, chart: ChartDefinition) -> ChartDataStatus:
        """Fetch once per chart; later calls return the existing status untouched."""
        self._charts[chart.key] = chart
        existing = self._statuses.get(chart.key)
        if existing is not None:
            return existing
        return await self._fetch(chart, self._resolve_date_range(chart, None), use_cache=True)

    async def refetch(
        self, chart: ChartDefinition, date_range_override: Optional[DateRange] = None
    ) -> ChartDataStatus:
        self._charts[chart.key] = chart
        date_range = self._resolve_date_range(chart, date_range_override)
        return await self._fetch(chart, date_range, use_cache=False)

    async def set_date_range(
        self, chart: ChartDefinition, start_date: Optional[date], end_date: Optional[date]
    ) -> Optional[ChartDataStatus]:
        """Track the picked range; fetch only once it is complete or fully cleared.

        While only one bound is set the current status is returned as is, so
        an unfiltered response never replaces the displayed rows.
        """
        date_range = DateRange(start_date=start_date, end_date=end_date)
        self._date_ranges[chart.key] = date_range
        updated = chart.model_copy(update={"date_range": date_range})
        if (start_date is None) != (end_date is None):
            self._charts[chart.key] = updated
            log_event("chart_date_range_partial", chart_id=chart.key)
            return self._statuses.get(chart.key)
        return await self.refetch(updated, date_range)

    async def clear_date_range(self, chart: ChartDefinition) -> Optional[ChartDataStatus]:
        return await self.set_date_range(chart, None, None)

    def remove(self, chart_id: ChartId) -> None:
        """Forget a deleted chart; results still in flight for it are dropped."""
        key = str(chart_id)
        self._charts.pop(key, None)
        self._statuses.pop(key, None)
        self._date_ranges.pop(key, None)
        self._latest_generation.pop(key, None)
        log_event("chart_removed", chart_id=key)

    def config_for(
        self,
        chart_id: ChartId,
        chart_type: Optional[str] = None,
        pivot_series: Optional[bool] = None,
    ) -> ChartDataConfig:
        """Reshape the stored raw rows for rendering.

        Reshaping happens on read so a chart whose type changes can reuse the
        rows it already fetched.
        """
        chart = self.chart(chart_id)
        resolved_type = chart_type or chart.type
        resolve_strategy(resolved_type)
        status = self._statuses.get(chart.key)
        if status is None or not status.data:
            return default_chart_data_config()
        return infer_chart_data_config(status.data, resolved_type, pivot_series)

    def _resolve_date_range(
        self, chart: ChartDefinition, override: Optional[DateRange]
    ) -> Optional[DateRange]:
        if override is not None:
            return override
        tracked = self._date_ranges.get(chart.key)
        if tracked is not None:
            return tracked
        return chart.date_range

    async def _fetch(
        self, chart: ChartDefinition, date_range: Optional[DateRange], use_cache: bool
    ) -> ChartDataStatus:
        key = chart.key
        generation = next(self._generations)
        self._latest_generation[key] = generation

        missing = missing_chart_config(chart)
        if missing:
            log_error("chart_not_configured", CONFIG_ERROR_MESSAGE, chart_id=key, missing=",".join(missing))
            return self._apply(key, generation, ChartDataStatus(data=[], error=CONFIG_ERROR_MESSAGE))

        previous = self._statuses.get(key)
        self._statuses[key] = ChartDataStatus(
            data=previous.data if previous else None,
            metadata=previous.metadata if previous else None,
            loading=True,
        )

        from_date, to_date = request_bounds(date_range)
        key_for_cache = cache_key(key, chart.database_id, chart.query, from_date, to_date)
        if use_cache and self._cache is not None:
            cached = self._cache.get(key_for_cache)
            if cached is not None:
                log_event("chart_cache_hit", chart_id=key, generation=generation)
                return self._apply(key, generation, self._success(cached))

        log_event("chart_fetch_started", chart_id=key, generation=generation, from_date=from_date, to_date=to_date)
        try:
            result = await self._client.fetch_chart_rows(key, chart.database_id, chart.query, from_date, to_date)
        except Exception as exc:
            message = str(exc) or FETCH_FAILED_MESSAGE
            log_error("chart_fetch_failed", message, chart_id=key, generation=generation)
            return self._apply(key, generation, ChartDataStatus(data=[], error=message))

        if result.success and result.data is not None:
            if self._cache is not None:
                self._cache.set(key_for_cache, result.data)
            log_event("chart_fetch_succeeded", chart_id=key, generation=generation, rows=len(result.data.data))
            return self._apply(key, generation, self._success(result.data))

        message = result.error.message if result.error and result.error.message else FETCH_FAILED_MESSAGE
        log_error("chart_fetch_failed", message, chart_id=key, generation=generation)
        return self._apply(key, generation, ChartDataStatus(data=[], error=message))

    @staticmethod
    def _success(rows: ChartRows) -> ChartDataStatus:
        return ChartDataStatus(data=list(rows.data), metadata=rows.metadata, loading=False)

    def _apply(self, key: str, generation: int, status: ChartDataStatus) -> ChartDataStatus:
        latest = self._latest_generation.get(key)
        if latest != generation:
            log_warning("chart_fetch_stale", chart_id=key, generation=generation, latest=latest)
            return self._statuses.get(key, status)
        self._statuses[key] = status
        return status
