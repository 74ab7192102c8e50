from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChartRequest(BaseModel):
    chart_key: str = Field(..., description="Registry key selecting the visualization strategy")
    date_col: str = Field(..., description="Column holding the onset / report dates")
    filters: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional equality filters applied before bucketing"
    )
    options: Optional[Dict[str, Any]] = Field(
        default=None, description="Epicurve options such as time_period, fill_by or palette"
    )


class VisualizationSpec(BaseModel):
    chart_key: str
    spec: Dict[str, Any]
    generated_at: datetime


class NullifiedTable(BaseModel):
    columns: List[str]
    rows: List[Dict[str, Any]]
