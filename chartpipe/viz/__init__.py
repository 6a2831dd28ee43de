from chartpipe.viz.registry import factory
from chartpipe.viz.strategies.bar import BarStrategy
from chartpipe.viz.strategies.pie import PieStrategy
from chartpipe.viz.strategies.time_series import AreaStrategy, LineStrategy

# Register default strategies at import time
factory.register("line", LineStrategy())
factory.register("area", AreaStrategy())
factory.register("bar", BarStrategy())
factory.register("pie", PieStrategy())
