from datetime import date
from typing import Optional, Tuple

from chartpipe.schemas.charts import DateRange


def format_date_for_api(value: date) -> str:
    """``YYYY-MM-DD`` from the value's own calendar fields, never shifted to UTC."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def request_bounds(date_range: Optional[DateRange]) -> Tuple[Optional[str], Optional[str]]:
    """From/to parameters for a query; a half-filled range sends neither."""
    if date_range is None or not date_range.is_complete:
        return None, None
    return format_date_for_api(date_range.start_date), format_date_for_api(date_range.end_date)
