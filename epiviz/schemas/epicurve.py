from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class InvalidTimePeriod(ValueError):
    pass


class TimePeriod(str, Enum):
    """Bucketing granularity for the epicurve x-axis.

    ``USE_DATE_COL_AS_IS`` skips date handling entirely: the date column is
    already a categorical axis.
    """

    DAY = "day"
    YEAR = "year"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR_MONTH = "year_month"
    YEAR_QUARTER = "year_quarter"
    ISO_YEAR = "iso_year"
    ISO_WEEK = "iso_week"
    ISO_YEAR_WEEK = "iso_year_week"
    USE_DATE_COL_AS_IS = "use_date_col_as_is"

    @classmethod
    def parse(cls, value: Union[str, "TimePeriod"]) -> "TimePeriod":
        """Accept enum members, values and dotted names such as ``year.month``."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace(".", "_")
        try:
            return cls(key)
        except ValueError:
            names = ", ".join(member.value for member in cls)
            raise InvalidTimePeriod(f"time_period must be one of: {names} (got '{value}')") from None


DEFAULT_X_LABELS: Dict[TimePeriod, str] = {
    TimePeriod.DAY: "Day",
    TimePeriod.YEAR: "Year",
    TimePeriod.MONTH: "Month",
    TimePeriod.QUARTER: "Quarter",
    TimePeriod.YEAR_MONTH: "Year - Month",
    TimePeriod.YEAR_QUARTER: "Year - Quarter",
    TimePeriod.ISO_YEAR: "ISO Year",
    TimePeriod.ISO_WEEK: "ISO Week",
    TimePeriod.ISO_YEAR_WEEK: "ISO Year Week",
}


class NoFill(BaseModel):
    kind: Literal["none"] = "none"


class FillByColumn(BaseModel):
    kind: Literal["column"] = "column"
    column: str


FillStrategy = Annotated[Union[NoFill, FillByColumn], Field(discriminator="kind")]


class EpicurveOptions(BaseModel):
    """Chart options for an epicurve.

    ``fill_by="col"`` is accepted as shorthand for
    ``fill={"kind": "column", "column": "col"}``.
    """

    time_period: Optional[TimePeriod] = Field(
        default=None, description="Bucketing period; chosen from the date span when omitted"
    )
    start: Optional[date] = Field(default=None, description="First day of the axis (yyyy-mm-dd)")
    stop: Optional[date] = Field(default=None, description="Last day of the axis (yyyy-mm-dd)")
    fill: FillStrategy = Field(default_factory=NoFill, description="Bar colour stratification")
    split_by: Optional[str] = Field(default=None, description="Column used for row facets")
    shade_by: Optional[str] = Field(default=None, description="Column mapped to bar opacity")
    x_label: Optional[str] = None
    y_label: str = "Number of cases"
    fill_legend_title: Optional[str] = None
    shade_legend_title: Optional[str] = None
    angle: float = Field(default=90, description="X tick label angle, counter-clockwise in degrees")
    # unrecognised selectors fall back to "phe" with a warning when the chart is drawn
    palette: Any = Field(
        default="phe", description="'phe' brand palette or ColorBrewer qualitative palette 1-8"
    )
    label_breaks: int = Field(default=0, ge=0, description="Number of tick labels skipped between shown labels")
    squares: bool = Field(default=True, description="Draw one stacked unit square per record")
    blank_background: bool = True
    drop_missing: bool = Field(
        default=True, description="Drop rows with missing or out-of-range dates"
    )

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _expand_fill_by(cls, data: Any) -> Any:
        if isinstance(data, dict) and "fill_by" in data:
            data = dict(data)
            column = data.pop("fill_by")
            data["fill"] = {"kind": "column", "column": column} if column else {"kind": "none"}
        return data

    @field_validator("time_period", mode="before")
    @classmethod
    def _parse_time_period(cls, value: Any) -> Optional[TimePeriod]:
        if value is None:
            return None
        return TimePeriod.parse(value)

    @property
    def fill_by(self) -> Optional[str]:
        return self.fill.column if isinstance(self.fill, FillByColumn) else None

    def stratification_columns(self) -> list[str]:
        return [col for col in (self.fill_by, self.shade_by, self.split_by) if col]
