from typing import Dict, Optional

from chartpipe.viz.base import IReshapeStrategy


class InvalidChartTypeError(ValueError):
    def __init__(self, chart_type: str):
        super().__init__(f"Unsupported chart type: {chart_type}")
        self.chart_type = chart_type


class ReshapeFactory:
    """Chart type to reshaping strategy, one strategy per renderer kind."""

    def __init__(self) -> None:
        self._strategies: Dict[str, IReshapeStrategy] = {}

    def register(self, chart_type: str, strategy: IReshapeStrategy) -> None:
        self._strategies[chart_type] = strategy

    def get(self, chart_type: str) -> Optional[IReshapeStrategy]:
        return self._strategies.get(chart_type)

    def require(self, chart_type: str) -> IReshapeStrategy:
        strategy = self._strategies.get(chart_type)
        if strategy is None:
            raise InvalidChartTypeError(chart_type)
        return strategy

    def list_keys(self) -> list[str]:
        return sorted(self._strategies.keys())


factory = ReshapeFactory()
