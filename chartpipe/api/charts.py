from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from chartpipe.config.observability import log_event
from chartpipe.schemas.charts import CHART_TYPES, ChartDataStatus, ChartDefinition, DateRange
from chartpipe.schemas.errors import ErrorCode
from chartpipe.schemas.visualize import (
    ChartConfigResponse,
    ChartStatusResponse,
    InferRequest,
    RefetchRequest,
)
from chartpipe.services.chart_data import InvalidChartTypeError, infer_chart_data_config
from chartpipe.services.error_builder import build_error
from chartpipe.services.fetch_controller import ChartDataFetchController, UnknownChartError
from chartpipe.services.pins import PinnedCharts
from chartpipe.viz.registry import factory

router = APIRouter(tags=["charts"])


def _controller(request: Request) -> ChartDataFetchController:
    return request.app.state.controller


def _pins(request: Request) -> PinnedCharts:
    return request.app.state.pins


def _unknown_chart(chart_id: str) -> JSONResponse:
    error = build_error(code=ErrorCode.UNKNOWN_CHART, message=f"Unknown chart: {chart_id}")
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=error)


def _invalid_chart_type(exc: InvalidChartTypeError) -> JSONResponse:
    error = build_error(
        code=ErrorCode.INVALID_CHART_TYPE,
        message=str(exc),
        supported_types=CHART_TYPES,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error)


def _status_payload(chart_id: str, chart_status: Optional[ChartDataStatus]) -> Dict[str, Any]:
    if chart_status is None:
        return ChartStatusResponse(chart_id=chart_id, state="idle", loading=False).model_dump()
    return ChartStatusResponse(
        chart_id=chart_id,
        state=chart_status.state,
        loading=chart_status.loading,
        error=chart_status.error,
        row_count=len(chart_status.data or []),
        metadata=chart_status.metadata,
    ).model_dump()


@router.get("/charts/supported-types", response_model=list[str])
async def supported_types() -> list[str]:
    return factory.list_keys()


@router.post("/charts/infer", response_model=Dict[str, Any])
async def infer(body: InferRequest) -> Dict[str, Any]:
    try:
        config = infer_chart_data_config(body.rows, body.chart_type, body.pivot_series)
    except InvalidChartTypeError as exc:
        return _invalid_chart_type(exc)
    return config.to_payload()


@router.post("/charts/{chart_id}/ensure", response_model=Dict[str, Any])
async def ensure(chart_id: str, chart: ChartDefinition, request: Request) -> Dict[str, Any]:
    if chart.key != chart_id:
        error = build_error(
            code=ErrorCode.PAYLOAD_ERROR,
            message="Chart id in body does not match the path",
            details=[f"path={chart_id}", f"body={chart.key}"],
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error)
    chart_status = await _controller(request).ensure_fetched(chart)
    return _status_payload(chart_id, chart_status)


@router.post("/charts/{chart_id}/refetch", response_model=Dict[str, Any])
async def refetch(chart_id: str, request: Request, body: Optional[RefetchRequest] = None) -> Dict[str, Any]:
    controller = _controller(request)
    try:
        chart = controller.chart(chart_id)
    except UnknownChartError:
        return _unknown_chart(chart_id)
    override = body.date_range if body else None
    chart_status = await controller.refetch(chart, override)
    return _status_payload(chart_id, chart_status)


@router.put("/charts/{chart_id}/date-range", response_model=Dict[str, Any])
async def set_date_range(chart_id: str, date_range: DateRange, request: Request) -> Dict[str, Any]:
    controller = _controller(request)
    try:
        chart = controller.chart(chart_id)
    except UnknownChartError:
        return _unknown_chart(chart_id)
    chart_status = await controller.set_date_range(chart, date_range.start_date, date_range.end_date)
    return _status_payload(chart_id, chart_status)


@router.delete("/charts/{chart_id}/date-range", response_model=Dict[str, Any])
async def clear_date_range(chart_id: str, request: Request) -> Dict[str, Any]:
    controller = _controller(request)
    try:
        chart = controller.chart(chart_id)
    except UnknownChartError:
        return _unknown_chart(chart_id)
    chart_status = await controller.clear_date_range(chart)
    return _status_payload(chart_id, chart_status)


@router.get("/charts/{chart_id}/status", response_model=Dict[str, Any])
async def get_status(chart_id: str, request: Request) -> Dict[str, Any]:
    controller = _controller(request)
    try:
        controller.chart(chart_id)
    except UnknownChartError:
        return _unknown_chart(chart_id)
    return _status_payload(chart_id, controller.status(chart_id))


@router.get("/charts/{chart_id}/config", response_model=Dict[str, Any])
async def get_config(
    chart_id: str,
    request: Request,
    chart_type: Optional[str] = None,
    pivot_series: Optional[bool] = None,
) -> Dict[str, Any]:
    controller = _controller(request)
    try:
        chart = controller.chart(chart_id)
        resolved_type = chart_type or chart.type
        config = controller.config_for(chart_id, resolved_type, pivot_series)
    except UnknownChartError:
        return _unknown_chart(chart_id)
    except InvalidChartTypeError as exc:
        return _invalid_chart_type(exc)
    return ChartConfigResponse(chart_id=chart_id, chart_type=resolved_type, config=config.to_payload()).model_dump()


@router.delete("/charts/{chart_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chart(chart_id: str, request: Request) -> None:
    _controller(request).remove(chart_id)
    _pins(request).unpin(chart_id)


@router.get("/pins", response_model=list[Dict[str, Any]])
async def pinned(request: Request) -> list[Dict[str, Any]]:
    return [chart.model_dump(mode="json") for chart in _pins(request).pinned()]


@router.post("/pins/{chart_id}/toggle", response_model=Dict[str, Any])
async def toggle_pin(chart_id: str, request: Request) -> Dict[str, Any]:
    try:
        chart = _controller(request).chart(chart_id)
    except UnknownChartError:
        return _unknown_chart(chart_id)
    is_pinned = _pins(request).toggle(chart)
    log_event("pins.toggle_request", chart_id=chart_id)
    return {"chart_id": chart_id, "pinned": is_pinned}
