from datetime import date
from typing import Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

ChartType = Literal["line", "bar", "pie", "area"]
CHART_TYPES: List[str] = list(get_args(ChartType))

Row = Dict[str, Any]


class DateRange(BaseModel):
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_complete(self) -> bool:
        return self.start_date is not None and self.end_date is not None


class ChartDefinition(BaseModel):
    id: Union[int, str] = Field(..., description="Backend chart identifier")
    name: str = ""
    type: ChartType = "bar"
    query: Optional[str] = None
    database_id: Optional[str] = Field(
        default=None, alias="databaseId", description="Database connection the query runs against"
    )
    date_range: Optional[DateRange] = Field(default=None, alias="dateRange")
    is_favorite: bool = Field(default=False, alias="isFavorite")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def key(self) -> str:
        return str(self.id)

    @property
    def is_configured(self) -> bool:
        return bool(self.query and self.query.strip()) and bool(self.database_id)


class DataKeys(BaseModel):
    primary: str
    secondary: Optional[str] = None


class ChartDataConfig(BaseModel):
    """Renderer-ready chart payload.

    Every row carries a number under ``data_keys.primary`` and a value under
    ``x_axis_key``. Pie configs always use ``name``/``value`` rows.
    """

    data: List[Row] = Field(default_factory=list)
    data_keys: DataKeys = Field(default_factory=lambda: DataKeys(primary="value"), alias="dataKeys")
    x_axis_key: str = Field(default="label", alias="xAxisKey")

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        if payload["dataKeys"]["secondary"] is None:
            del payload["dataKeys"]["secondary"]
        return payload


class ShapeDescriptor(BaseModel):
    """Column classification of one result set, taken from its first row."""

    rows: List[Row] = Field(default_factory=list, description="Rows normalised to mappings")
    keys: List[str] = Field(default_factory=list)
    primary_key: str = "value"
    secondary_key: Optional[str] = None
    x_axis_key: str = "label"
    numeric_keys: List[str] = Field(default_factory=list)
    categorical_keys: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows or not self.keys


class QueryMetadata(BaseModel):
    row_count: int = 0
    execution_time: float = Field(0.0, description="Query execution time in milliseconds")
    cached_at: Optional[str] = None
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None


class ChartRows(BaseModel):
    data: List[Any] = Field(default_factory=list)
    metadata: Optional[QueryMetadata] = None


class QueryError(BaseModel):
    code: str = "fetch_chart_data_failed"
    message: str


class QueryResult(BaseModel):
    success: bool
    data: Optional[ChartRows] = None
    error: Optional[QueryError] = None


class ChartDataStatus(BaseModel):
    data: Optional[List[Any]] = None
    metadata: Optional[QueryMetadata] = None
    loading: bool = False
    error: Optional[str] = None

    @property
    def state(self) -> str:
        if self.loading:
            return "loading"
        if self.error is not None:
            return "error"
        return "success"
