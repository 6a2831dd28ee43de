from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from chartpipe.api.app import app
from chartpipe.schemas.charts import ChartRows, QueryMetadata, QueryResult
from chartpipe.services.fetch_controller import ChartDataFetchController
from chartpipe.services.pins import PinnedCharts
from chartpipe.services.query_client import failure
import chartpipe.viz  # noqa: F401 ensures strategies registered


class FakeQueryClient:
    """Stands in for the query service; replies with canned rows per chart id."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.rows: Dict[str, List[Any]] = {}
        self.errors: Dict[str, Any] = {}

    async def fetch_chart_rows(
        self,
        chart_id: str,
        database_connection_id: str,
        query: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> QueryResult:
        self.calls.append(
            {
                "chart_id": chart_id,
                "database_connection_id": database_connection_id,
                "query": query,
                "from_date": from_date,
                "to_date": to_date,
            }
        )
        error = self.errors.get(chart_id)
        if isinstance(error, Exception):
            raise error
        if error is not None:
            return failure(error)
        rows = self.rows.get(chart_id, [])
        return QueryResult(
            success=True,
            data=ChartRows(data=rows, metadata=QueryMetadata(row_count=len(rows), execution_time=12.5)),
        )


@pytest.fixture
def fake_query_client() -> FakeQueryClient:
    return FakeQueryClient()


@pytest.fixture
def client(fake_query_client) -> TestClient:
    app.state.controller = ChartDataFetchController(fake_query_client)
    app.state.pins = PinnedCharts()
    return TestClient(app)
