from abc import ABC, abstractmethod
from typing import Any, Dict

import pandas as pd


class IVisualizationStrategy(ABC):
    """Strategy for producing a Vega-Lite spec from dataframes.

    data: {"linelist": DataFrame}
    config: chart-specific configuration
    filters: optional equality filters to apply before visualization

    To add a new chart: create a strategy class in epiviz/viz/strategies/, implement generate,
    document required columns/config, and register the key in epiviz/viz/__init__.py.
    """

    @abstractmethod
    def generate(
        self, data: Dict[str, pd.DataFrame], config: Dict[str, Any], filters: Dict[str, Any], settings: Any
    ) -> Dict[str, Any]:
        ...
