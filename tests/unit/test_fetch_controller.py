import asyncio
from datetime import date
from typing import Dict, List

import pytest

from chartpipe.schemas.charts import ChartDefinition, ChartRows, DateRange, QueryResult
from chartpipe.services.chart_data import InvalidChartTypeError
from chartpipe.services.fetch_controller import (
    CONFIG_ERROR_MESSAGE,
    ChartDataFetchController,
    UnknownChartError,
)
from chartpipe.services.result_cache import ChartResultCache


def _chart(**overrides) -> ChartDefinition:
    fields = {"id": "c1", "name": "Revenue", "type": "line", "query": "SELECT 1", "database_id": "db"}
    fields.update(overrides)
    return ChartDefinition(**fields)


class GatedQueryClient:
    """Holds every request until the test releases it."""

    def __init__(self) -> None:
        self.gates: List[asyncio.Event] = []
        self.replies: List[List[Dict]] = []

    async def fetch_chart_rows(self, chart_id, database_connection_id, query, from_date=None, to_date=None):
        gate = asyncio.Event()
        self.gates.append(gate)
        rows = self.replies[len(self.gates) - 1]
        await gate.wait()
        return QueryResult(success=True, data=ChartRows(data=rows))


@pytest.mark.asyncio
async def test_ensure_fetched_loads_once(fake_query_client):
    fake_query_client.rows["c1"] = [{"day": "2024-01-01", "v": 3}]
    controller = ChartDataFetchController(fake_query_client)

    status = await controller.ensure_fetched(_chart())
    assert status.state == "success"
    assert status.data == [{"day": "2024-01-01", "v": 3}]
    assert status.metadata.row_count == 1

    again = await controller.ensure_fetched(_chart())
    assert again is status
    assert len(fake_query_client.calls) == 1


@pytest.mark.asyncio
async def test_missing_query_fails_without_network_call(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    status = await controller.ensure_fetched(_chart(query=""))
    assert status.state == "error"
    assert status.error == CONFIG_ERROR_MESSAGE
    assert fake_query_client.calls == []

    # The error bucket now exists, so a second ensure stays a no-op.
    await controller.ensure_fetched(_chart(query=""))
    assert fake_query_client.calls == []


@pytest.mark.asyncio
async def test_missing_database_is_a_configuration_error(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    status = await controller.refetch(_chart(database_id=None))
    assert status.error == CONFIG_ERROR_MESSAGE
    assert fake_query_client.calls == []


@pytest.mark.asyncio
async def test_service_error_is_recorded(fake_query_client):
    fake_query_client.errors["c1"] = "relation does not exist"
    controller = ChartDataFetchController(fake_query_client)
    status = await controller.ensure_fetched(_chart())
    assert status.state == "error"
    assert status.error == "relation does not exist"
    assert status.data == []


@pytest.mark.asyncio
async def test_raised_exception_is_recorded(fake_query_client):
    fake_query_client.errors["c1"] = RuntimeError("boom")
    controller = ChartDataFetchController(fake_query_client)
    status = await controller.ensure_fetched(_chart())
    assert status.error == "boom"


@pytest.mark.asyncio
async def test_exception_without_message_uses_generic_text(fake_query_client):
    fake_query_client.errors["c1"] = RuntimeError()
    controller = ChartDataFetchController(fake_query_client)
    status = await controller.ensure_fetched(_chart())
    assert status.error == "Failed to fetch chart data"


@pytest.mark.asyncio
async def test_empty_result_is_success(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    status = await controller.ensure_fetched(_chart())
    assert status.state == "success"
    assert status.data == []
    assert status.error is None


@pytest.mark.asyncio
async def test_refetch_always_issues_a_request(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    await controller.ensure_fetched(_chart())
    await controller.refetch(_chart())
    await controller.refetch(_chart())
    assert len(fake_query_client.calls) == 3


@pytest.mark.asyncio
async def test_partial_date_range_is_not_sent(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    await controller.refetch(_chart(), DateRange(start_date=date(2024, 1, 1), end_date=None))
    call = fake_query_client.calls[-1]
    assert call["from_date"] is None
    assert call["to_date"] is None


@pytest.mark.asyncio
async def test_date_range_priority(fake_query_client):
    embedded = DateRange(start_date=date(2023, 1, 1), end_date=date(2023, 12, 31))
    chart = _chart(date_range=embedded)
    controller = ChartDataFetchController(fake_query_client)

    await controller.refetch(chart)
    assert fake_query_client.calls[-1]["from_date"] == "2023-01-01"

    await controller.set_date_range(chart, date(2024, 2, 1), date(2024, 2, 29))
    assert fake_query_client.calls[-1]["to_date"] == "2024-02-29"
    await controller.refetch(chart)
    assert fake_query_client.calls[-1]["from_date"] == "2024-02-01"

    override = DateRange(start_date=date(2025, 5, 1), end_date=date(2025, 5, 2))
    await controller.refetch(chart, override)
    assert (fake_query_client.calls[-1]["from_date"], fake_query_client.calls[-1]["to_date"]) == (
        "2025-05-01",
        "2025-05-02",
    )


@pytest.mark.asyncio
async def test_half_picked_date_range_keeps_current_rows(fake_query_client):
    fake_query_client.rows["c1"] = [{"day": "2024-01-01", "v": 3}]
    controller = ChartDataFetchController(fake_query_client)
    before = await controller.refetch(_chart())

    status = await controller.set_date_range(_chart(), date(2024, 1, 1), None)
    assert status is before
    assert len(fake_query_client.calls) == 1
    assert controller.date_range("c1").start_date == date(2024, 1, 1)

    await controller.set_date_range(_chart(), date(2024, 1, 1), date(2024, 1, 31))
    assert len(fake_query_client.calls) == 2
    assert fake_query_client.calls[-1]["to_date"] == "2024-01-31"


@pytest.mark.asyncio
async def test_clear_date_range_refetches_without_bounds(fake_query_client):
    chart = _chart(date_range=DateRange(start_date=date(2023, 1, 1), end_date=date(2023, 1, 2)))
    controller = ChartDataFetchController(fake_query_client)
    await controller.clear_date_range(chart)
    assert fake_query_client.calls[-1]["from_date"] is None
    tracked = controller.date_range("c1")
    assert tracked.start_date is None and tracked.end_date is None


@pytest.mark.asyncio
async def test_latest_request_wins_when_responses_arrive_out_of_order():
    client = GatedQueryClient()
    client.replies = [[{"v": "old"}], [{"v": "new"}]]
    controller = ChartDataFetchController(client)

    first = asyncio.create_task(controller.refetch(_chart()))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.refetch(_chart()))
    await asyncio.sleep(0)
    assert controller.status("c1").loading

    client.gates[1].set()
    await second
    client.gates[0].set()
    await first

    assert controller.status("c1").data == [{"v": "new"}]


@pytest.mark.asyncio
async def test_charts_fetch_independently(fake_query_client):
    fake_query_client.rows["a"] = [{"k": "x", "v": 1}]
    fake_query_client.errors["b"] = "denied"
    controller = ChartDataFetchController(fake_query_client)
    await asyncio.gather(controller.ensure_fetched(_chart(id="a")), controller.ensure_fetched(_chart(id="b")))
    assert controller.status("a").state == "success"
    assert controller.status("b").state == "error"


@pytest.mark.asyncio
async def test_loading_keeps_previous_data():
    client = GatedQueryClient()
    client.replies = [[{"v": 1}], [{"v": 2}]]
    controller = ChartDataFetchController(client)

    first = asyncio.create_task(controller.refetch(_chart()))
    await asyncio.sleep(0)
    client.gates[0].set()
    await first

    pending = asyncio.create_task(controller.refetch(_chart()))
    await asyncio.sleep(0)
    status = controller.status("c1")
    assert status.state == "loading"
    assert status.data == [{"v": 1}]
    client.gates[1].set()
    await pending


@pytest.mark.asyncio
async def test_removed_chart_ignores_in_flight_result():
    client = GatedQueryClient()
    client.replies = [[{"v": 1}]]
    controller = ChartDataFetchController(client)

    task = asyncio.create_task(controller.ensure_fetched(_chart()))
    await asyncio.sleep(0)
    controller.remove("c1")
    client.gates[0].set()
    await task

    assert controller.status("c1") is None
    with pytest.raises(UnknownChartError):
        controller.chart("c1")


@pytest.mark.asyncio
async def test_config_is_reshaped_on_read(fake_query_client):
    fake_query_client.rows["c1"] = [{"category": "X", "count": 10}, {"category": "Y", "count": 20}]
    controller = ChartDataFetchController(fake_query_client)
    await controller.ensure_fetched(_chart(type="bar"))

    assert controller.config_for("c1").x_axis_key == "category"
    pie = controller.config_for("c1", chart_type="pie")
    assert pie.data == [{"name": "X", "value": 10}, {"name": "Y", "value": 20}]
    # The stored payload stays raw.
    assert controller.status("c1").data[0] == {"category": "X", "count": 10}


@pytest.mark.asyncio
async def test_config_for_failed_chart_is_default(fake_query_client):
    fake_query_client.errors["c1"] = "nope"
    controller = ChartDataFetchController(fake_query_client)
    await controller.ensure_fetched(_chart())
    config = controller.config_for("c1")
    assert config.data == []
    assert config.x_axis_key == "label"


@pytest.mark.asyncio
async def test_cache_serves_ensure_but_not_refetch(fake_query_client):
    fake_query_client.rows["c1"] = [{"v": 1}]
    cache = ChartResultCache(ttl_seconds=60, max_entries=10)
    first = ChartDataFetchController(fake_query_client, cache=cache)
    await first.ensure_fetched(_chart())

    second = ChartDataFetchController(fake_query_client, cache=cache)
    status = await second.ensure_fetched(_chart())
    assert status.data == [{"v": 1}]
    assert len(fake_query_client.calls) == 1

    await second.refetch(_chart())
    assert len(fake_query_client.calls) == 2


def test_numeric_chart_ids_share_string_keys(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    assert controller.status(5) is None
    assert _chart(id=5).key == "5"


@pytest.mark.asyncio
async def test_config_for_rejects_unknown_type_without_rows(fake_query_client):
    controller = ChartDataFetchController(fake_query_client)
    await controller.ensure_fetched(_chart())
    assert controller.status("c1").data == []
    with pytest.raises(InvalidChartTypeError):
        controller.config_for("c1", chart_type="scatter")
