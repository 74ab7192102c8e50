from epiviz.viz.registry import chart_registry
from epiviz.viz.strategies.epicurve import EpicurveStrategy

# Register default strategies at import time
chart_registry.register("epicurve", EpicurveStrategy())
