from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorCode:
    UNKNOWN_CHART = "unknown_chart"
    INVALID_CHART_TYPE = "invalid_chart_type"
    FETCH_CHART_DATA_FAILED = "fetch_chart_data_failed"
    DATASET_TOO_LARGE = "dataset_too_large"
    PAYLOAD_ERROR = "payload_error"


class ErrorResponse(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable description")
    details: Optional[List[str]] = Field(default=None, description="Specific field issues")
    supported_chart_types: Optional[List[str]] = Field(
        default=None, description="Available chart types when an invalid type was provided"
    )
