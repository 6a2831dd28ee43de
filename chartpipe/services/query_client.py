from typing import Any, Dict, Optional, Protocol

import httpx

from chartpipe.config.observability import log_error, timed
from chartpipe.config.settings import settings
from chartpipe.schemas.charts import ChartRows, QueryError, QueryMetadata, QueryResult
from chartpipe.schemas.errors import ErrorCode
from chartpipe.services.validators import DatasetTooLarge, enforce_row_limit

FETCH_FAILED_MESSAGE = "Failed to fetch chart data"


class ChartRowsFetcher(Protocol):
    async def fetch_chart_rows(
        self,
        chart_id: str,
        database_connection_id: str,
        query: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> QueryResult:
        ...


def failure(message: Optional[str], code: str = ErrorCode.FETCH_CHART_DATA_FAILED) -> QueryResult:
    return QueryResult(success=False, error=QueryError(code=code, message=message or FETCH_FAILED_MESSAGE))


def parse_query_response(body: Any) -> ChartRows:
    """Normalise an execute-query response body into rows plus metadata."""
    if not isinstance(body, dict):
        body = {}
    if isinstance(body.get("result"), list):
        rows = body["result"]
    elif isinstance(body.get("data"), list):
        rows = body["data"]
    else:
        rows = []

    row_count = body.get("row_count")
    execution_time = body.get("execution_time_ms")
    metadata = QueryMetadata(
        row_count=row_count if row_count is not None else len(rows),
        execution_time=execution_time if execution_time is not None else 0.0,
        cached_at=body.get("cached_at"),
        x_axis=body.get("x_axis"),
        y_axis=body.get("y_axis"),
    )
    return ChartRows(data=rows, metadata=metadata)


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        detail = body.get("message") or body.get("detail") or body.get("error")
        if isinstance(detail, str):
            return detail
    return None


class QueryServiceClient:
    """HTTP client for the backend query service.

    Every failure, transport or service side, is reported as an unsuccessful
    ``QueryResult`` rather than raised.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_rows: Optional[int] = None,
        execute_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.query_service_url).rstrip("/")
        self.max_rows = max_rows if max_rows is not None else settings.max_rows
        self.execute_path = execute_path or settings.query_execute_path
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "QueryServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def fetch_chart_rows(
        self,
        chart_id: str,
        database_connection_id: str,
        query: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
    ) -> QueryResult:
        payload: Dict[str, Any] = {"query": query}
        if from_date:
            payload["from_date"] = from_date
        if to_date:
            payload["to_date"] = to_date

        try:
            with timed("execute_query", chart_id=chart_id, database_id=database_connection_id):
                response = await self.client.post(
                    self.execute_path.format(database_id=database_connection_id), json=payload
                )
            response.raise_for_status()
            rows = parse_query_response(response.json())
            enforce_row_limit(rows.data, self.max_rows)
        except httpx.HTTPStatusError as exc:
            message = _error_message(exc.response) or FETCH_FAILED_MESSAGE
            log_error("execute_query_failed", message, chart_id=chart_id, status=exc.response.status_code)
            return failure(message)
        except httpx.HTTPError as exc:
            log_error("execute_query_failed", str(exc), chart_id=chart_id)
            return failure(str(exc))
        except DatasetTooLarge as exc:
            log_error("dataset_too_large", str(exc), chart_id=chart_id)
            return failure(str(exc), code=ErrorCode.DATASET_TOO_LARGE)
        except ValueError as exc:
            log_error("execute_query_invalid_body", str(exc), chart_id=chart_id)
            return failure(f"Invalid response from query service: {exc}")

        return QueryResult(success=True, data=rows)
