from typing import List, Sequence

from chartpipe.schemas.charts import ChartDefinition


class DatasetTooLarge(ValueError):
    pass


def enforce_row_limit(rows: Sequence, max_rows: int) -> None:
    if len(rows) > max_rows:
        raise DatasetTooLarge(f"Dataset too large: rows={len(rows)}, limit rows<={max_rows}")


def missing_chart_config(chart: ChartDefinition) -> List[str]:
    missing = []
    if not (chart.query and chart.query.strip()):
        missing.append("query")
    if not chart.database_id:
        missing.append("database_id")
    return missing
