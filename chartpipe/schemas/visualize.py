from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from chartpipe.schemas.charts import ChartType, DateRange, QueryMetadata


class InferRequest(BaseModel):
    rows: List[Any] = Field(default_factory=list, description="Raw query result rows")
    chart_type: str = Field(..., description="Chart type driving the reshaping policy")
    pivot_series: Optional[bool] = Field(
        default=None, description="Pivot category/value rows into one series per category"
    )


class RefetchRequest(BaseModel):
    date_range: Optional[DateRange] = Field(
        default=None, description="Date range overriding the tracked and chart ranges"
    )


class ChartStatusResponse(BaseModel):
    chart_id: str
    state: str
    loading: bool
    error: Optional[str] = None
    row_count: int = 0
    metadata: Optional[QueryMetadata] = None


class ChartConfigResponse(BaseModel):
    chart_id: str
    chart_type: ChartType
    config: Dict[str, Any]
