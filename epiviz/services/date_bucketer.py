from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

from epiviz.config.observability import log_event
from epiviz.config.settings import settings
from epiviz.schemas.epicurve import DEFAULT_X_LABELS, TimePeriod

AXIS_COLUMN = "date_bucket"

CALENDAR_PERIODS: List[TimePeriod] = [p for p in TimePeriod if p is not TimePeriod.USE_DATE_COL_AS_IS]

DateBound = Union[str, date, None]


class NotADateColumn(TypeError):
    pass


@dataclass
class BucketedDates:
    table: pd.DataFrame
    levels: List[str]
    excluded: int
    time_period: TimePeriod
    x_label: str


def _period_parts(day: date) -> Dict[TimePeriod, Tuple[str, Tuple[int, ...]]]:
    """Label and chronological sort key of ``day`` for every calendar period."""
    iso_year, iso_week, _ = day.isocalendar()
    quarter = math.ceil(day.month / 3)
    return {
        TimePeriod.DAY: (day.isoformat(), (day.toordinal(),)),
        TimePeriod.YEAR: (f"{day.year:04d}", (day.year,)),
        TimePeriod.MONTH: (f"{day.month:02d}", (day.month,)),
        TimePeriod.QUARTER: (f"{quarter:02d}", (quarter,)),
        TimePeriod.YEAR_MONTH: (f"{day.year:04d}{day.month:02d}", (day.year, day.month)),
        TimePeriod.YEAR_QUARTER: (f"{day.year:04d}{quarter:02d}", (day.year, quarter)),
        TimePeriod.ISO_YEAR: (f"{iso_year:04d}", (iso_year,)),
        TimePeriod.ISO_WEEK: (f"{iso_week:02d}", (iso_week,)),
        TimePeriod.ISO_YEAR_WEEK: (f"{iso_year:04d}{iso_week:02d}", (iso_year, iso_week)),
    }


def period_label(day: date, period: TimePeriod) -> str:
    return _period_parts(day)[period][0]


def _to_day(value: Any, column: str) -> Optional[date]:
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, float) and math.isnan(value):
        return None
    raise NotADateColumn(
        f"Column '{column}' must contain dates, found {type(value).__name__} value {value!r}"
    )


def as_calendar_days(series: pd.Series) -> List[Optional[date]]:
    """Convert a date column to ``datetime.date`` objects (``None`` when missing).

    Raises NotADateColumn for anything that is not already a date: strings are
    not parsed here.
    """
    column = str(series.name)
    if pd.api.types.is_datetime64_any_dtype(series):
        return [None if pd.isna(ts) else ts.date() for ts in series]
    return [_to_day(value, column) for value in series]


def derive_periods(dates: pd.Series) -> pd.DataFrame:
    """Every period label for every date; one column per calendar period."""
    days = as_calendar_days(dates)
    rows = [
        {period.value: label for period, (label, _) in _period_parts(day).items()} if day else {}
        for day in days
    ]
    return pd.DataFrame(rows, index=dates.index, columns=[p.value for p in CALENDAR_PERIODS])


def auto_time_period(n_days: int) -> TimePeriod:
    if n_days < 31 * 2:
        return TimePeriod.DAY
    if n_days < 365:
        return TimePeriod.ISO_YEAR_WEEK
    return TimePeriod.YEAR_MONTH


def axis_levels(start: date, stop: date, period: TimePeriod) -> List[str]:
    """Labels of every day in [start, stop], unique and in chronological order.

    Built from the calendar rather than the data so periods without cases
    still get a (zero-height) bar.
    """
    keys: Dict[str, Tuple[int, ...]] = {}
    for offset in range((stop - start).days + 1):
        label, key = _period_parts(start + timedelta(days=offset))[period]
        keys.setdefault(label, key)
    return sorted(keys, key=keys.__getitem__)


def parse_bound(value: DateBound) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _passthrough_levels(series: pd.Series) -> List[str]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return [str(v) for v in series.cat.categories]
    return [str(v) for v in series.dropna().drop_duplicates().sort_values()]


def bucket(
    table: pd.DataFrame,
    date_column: str,
    time_period: Union[str, TimePeriod, None] = None,
    start: DateBound = None,
    stop: DateBound = None,
    drop_missing: bool = True,
    x_label: Optional[str] = None,
) -> BucketedDates:
    """Add the categorical x-axis column ``date_bucket`` to a copy of ``table``.

    Rows whose date is missing or outside [start, stop] get a missing bucket;
    they are counted in ``excluded`` and removed when ``drop_missing`` is set.
    """
    if date_column not in table.columns:
        raise ValueError(f"Date column '{date_column}' not found in dataset")

    period = TimePeriod.parse(time_period) if time_period is not None else None
    out = table.copy()

    if period is TimePeriod.USE_DATE_COL_AS_IS:
        raw = out[date_column]
        levels = _passthrough_levels(raw)
        out[AXIS_COLUMN] = pd.Categorical(
            raw.astype(object).map(str, na_action="ignore"), categories=levels
        )
        excluded = int(out[AXIS_COLUMN].isna().sum())
    else:
        days = as_calendar_days(out[date_column])
        observed = [d for d in days if d is not None]
        start_day, stop_day = parse_bound(start), parse_bound(stop)
        if (start_day is None or stop_day is None) and not observed:
            raise ValueError(f"Column '{date_column}' has no dates; pass start and stop explicitly")

        padding = timedelta(days=settings.date_padding_days)
        if start_day is None:
            start_day = min(observed) - padding
        if stop_day is None:
            stop_day = max(observed) + padding
        if start_day > stop_day:
            raise ValueError(f"start ({start_day}) must not be after stop ({stop_day})")

        if period is None:
            period = auto_time_period((stop_day - start_day).days + 1)

        levels = axis_levels(start_day, stop_day, period)
        labels = [
            period_label(day, period) if day is not None and start_day <= day <= stop_day else None
            for day in days
        ]
        out[AXIS_COLUMN] = pd.Categorical(labels, categories=levels)
        excluded = sum(label is None for label in labels)

    log_event(
        "epicurve.rows_excluded",
        rows=excluded,
        reason="missing dates OR dates outside of the start/stop period",
    )
    if drop_missing:
        out = out[out[AXIS_COLUMN].notna()]

    default_label = date_column if period is TimePeriod.USE_DATE_COL_AS_IS else DEFAULT_X_LABELS[period]
    return BucketedDates(
        table=out,
        levels=levels,
        excluded=excluded,
        time_period=period,
        x_label=x_label or default_label,
    )
