from typing import List, Optional

from chartpipe.schemas.errors import ErrorResponse


def build_error(
    code: str,
    message: str,
    details: Optional[List[str]] = None,
    supported_types: Optional[List[str]] = None,
) -> dict:
    return ErrorResponse(
        code=code,
        message=message,
        details=details or [],
        supported_chart_types=supported_types,
    ).model_dump()
