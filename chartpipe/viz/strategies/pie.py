from typing import Any, Dict

from chartpipe.schemas.charts import ChartDataConfig, DataKeys, ShapeDescriptor
from chartpipe.services.shape_analyzer import INDEX_KEY
from chartpipe.viz.base import IReshapeStrategy, coerce_rows


class PieStrategy(IReshapeStrategy):
    """One slice per row as ``{"name", "value"}``; secondary series are dropped."""

    def reshape(self, shape: ShapeDescriptor, config: Dict[str, Any], settings: Any) -> ChartDataConfig:
        # Wrapped scalar rows name their slices through the "label" column.
        name_key = "label" if shape.x_axis_key == INDEX_KEY else shape.x_axis_key
        slices = []
        for index, row in enumerate(coerce_rows(shape)):
            name = row.get(name_key)
            if name is None:
                name = row.get(shape.x_axis_key)
            if name is None:
                name = f"Slice {index + 1}"
            slices.append({"name": name, "value": row[shape.primary_key]})

        return ChartDataConfig(data=slices, data_keys=DataKeys(primary="value"), x_axis_key="name")
