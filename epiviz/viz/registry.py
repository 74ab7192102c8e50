from typing import Dict, List, Optional

from epiviz.viz.base import IVisualizationStrategy


class UnknownChartKeyError(KeyError):
    pass


class ChartRegistry:
    def __init__(self) -> None:
        self._strategies: Dict[str, IVisualizationStrategy] = {}

    def register(self, key: str, strategy: IVisualizationStrategy) -> None:
        self._strategies[key] = strategy

    def get(self, key: str) -> Optional[IVisualizationStrategy]:
        return self._strategies.get(key)

    def require(self, key: str) -> IVisualizationStrategy:
        strategy = self.get(key)
        if strategy is None:
            raise UnknownChartKeyError(f"Unsupported chart key: {key}")
        return strategy

    def list_keys(self) -> List[str]:
        return sorted(self._strategies)


chart_registry = ChartRegistry()
