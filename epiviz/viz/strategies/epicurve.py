from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import altair as alt
import numpy as np
import pandas as pd

from epiviz.config.settings import settings as default_settings
from epiviz.schemas.epicurve import EpicurveOptions, TimePeriod
from epiviz.services.date_bucketer import AXIS_COLUMN, BucketedDates, bucket
from epiviz.services.validators import missing_columns
from epiviz.viz.base import IVisualizationStrategy
from epiviz.viz.theme import BAR_OUTLINE, SHADE_RANGE, apply_theme, fill_colours, resolve_palette, style_chart

FILL_COLUMN = "fill"
SHADE_COLUMN = "shade"
SPLIT_COLUMN = "split"
COUNT_COLUMN = "count"
ORDER_COLUMN = "stack_order"
BLOCK_COLUMN = "block"

DUMMY_FILL = "dummy"
MISSING_LABEL = "NA"


def pretty(low: float, high: float, n: int = 5) -> List[float]:
    """Roughly ``n + 1`` equally spaced round values covering [low, high] (R's ``pretty``)."""
    if high <= low:
        return [float(low)]
    cell = (high - low) / n
    base = 10 ** math.floor(math.log10(cell))
    unit = base
    if 2 * base - cell < 1.5 * (cell - unit):
        unit = 2 * base
        if 5 * base - cell < 2.75 * (cell - unit):
            unit = 5 * base
            if 10 * base - cell < 1.5 * (cell - unit):
                unit = 10 * base
    first = math.floor(low / unit + 1e-7)
    last = math.ceil(high / unit - 1e-7)
    return [i * unit for i in range(first, last + 1)]


def y_breaks(max_count: float) -> List[int]:
    """Integer count-axis ticks from 0 to just above 1.1 x the tallest bar."""
    return sorted({math.floor(b + 1e-9) for b in pretty(0, 1.1 * max_count)})


def thin_labels(levels: List[str], label_breaks: int) -> List[str]:
    """Keep every ``(label_breaks + 1)``-th axis label, starting with the first."""
    return list(levels[:: label_breaks + 1])


def _label_order(values: pd.Series) -> pd.Series:
    # object columns may mix types; order them by their text labels
    return values.map(str, na_action="ignore") if values.dtype == object else values


def category_levels(series: pd.Series) -> List[str]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        levels = [str(v) for v in series.cat.categories]
    else:
        levels = [str(v) for v in series.dropna().drop_duplicates().sort_values(key=_label_order)]
    if series.isna().any():
        levels.append(MISSING_LABEL)
    return levels


def _as_labels(series: pd.Series) -> np.ndarray:
    return series.astype(object).map(str, na_action="ignore").fillna(MISSING_LABEL).to_numpy()


def sort_for_stacking(table: pd.DataFrame, fill_by: Optional[str], shade_by: Optional[str]) -> pd.DataFrame:
    """Stable sort by fill then shade; this sets the stacking order within each bar."""
    keys = [col for col in (fill_by, shade_by) if col]
    if not keys:
        return table
    return table.sort_values(keys, kind="mergesort", key=_label_order)


def build_plot_frame(table: pd.DataFrame, levels: List[str], options: EpicurveOptions) -> pd.DataFrame:
    """Records handed to Vega-Lite.

    Squares mode keeps one unit-height row per record (``block`` ids keep
    them as separate segments); otherwise rows are counted per
    (bucket, fill, shade, split). Unused split categories get a zero-count
    row so their facet panel is still drawn.
    """
    rows = table[table[AXIS_COLUMN].notna()]
    frame = pd.DataFrame({AXIS_COLUMN: rows[AXIS_COLUMN].astype(str).to_numpy()})
    frame[FILL_COLUMN] = _as_labels(rows[options.fill_by]) if options.fill_by else DUMMY_FILL
    if options.shade_by:
        frame[SHADE_COLUMN] = _as_labels(rows[options.shade_by])
    if options.split_by:
        frame[SPLIT_COLUMN] = _as_labels(rows[options.split_by])
    frame[ORDER_COLUMN] = np.arange(len(frame))

    if options.squares:
        frame[BLOCK_COLUMN] = np.arange(len(frame))
        frame[COUNT_COLUMN] = 1
    else:
        keys = [col for col in (AXIS_COLUMN, FILL_COLUMN, SHADE_COLUMN, SPLIT_COLUMN) if col in frame.columns]
        frame = (
            frame.groupby(keys, sort=False)
            .agg(**{COUNT_COLUMN: (ORDER_COLUMN, "size"), ORDER_COLUMN: (ORDER_COLUMN, "min")})
            .reset_index()
        )

    if options.split_by and levels:
        present = set(frame[SPLIT_COLUMN])
        unused = [lvl for lvl in category_levels(table[options.split_by]) if lvl not in present]
        if unused:
            filler = pd.DataFrame({SPLIT_COLUMN: unused})
            filler[AXIS_COLUMN] = levels[0]
            filler[FILL_COLUMN] = (
                category_levels(table[options.fill_by])[0] if options.fill_by else DUMMY_FILL
            )
            if options.shade_by:
                filler[SHADE_COLUMN] = category_levels(table[options.shade_by])[0]
            filler[ORDER_COLUMN] = -1
            filler[COUNT_COLUMN] = 0
            if options.squares:
                filler[BLOCK_COLUMN] = -1
            frame = pd.concat([frame, filler[frame.columns]], ignore_index=True)

    return frame


def max_stack(frame: pd.DataFrame) -> int:
    """Height of the tallest stacked bar in any panel."""
    if frame.empty:
        return 0
    keys = [col for col in (AXIS_COLUMN, SPLIT_COLUMN) if col in frame.columns]
    return int(frame.groupby(keys)[COUNT_COLUMN].sum().max())


def assemble_chart(bucketed: BucketedDates, options: EpicurveOptions) -> Any:
    """Stacked bar epicurve over the full bucket axis.

    Returns an Altair chart (faceted by row when ``split_by`` is set) with
    styling applied; call ``to_dict()`` for the Vega-Lite spec.
    """
    levels = bucketed.levels
    table = sort_for_stacking(bucketed.table, options.fill_by, options.shade_by)
    frame = build_plot_frame(table, levels, options)

    fill_levels = category_levels(table[options.fill_by]) if options.fill_by else [DUMMY_FILL]
    colours = fill_colours(resolve_palette(options.palette), len(fill_levels))
    breaks = y_breaks(max_stack(frame))

    encodings: Dict[str, Any] = {
        "x": alt.X(
            f"{AXIS_COLUMN}:O",
            title=bucketed.x_label,
            sort=levels,
            scale=alt.Scale(domain=levels),
            axis=alt.Axis(values=thin_labels(levels, options.label_breaks), labelAngle=-options.angle),
        ),
        "y": alt.Y(
            f"{COUNT_COLUMN}:Q",
            title=options.y_label,
            stack="zero",
            scale=alt.Scale(domain=[0, max(breaks[-1], 1)], nice=False, zero=True),
            axis=alt.Axis(values=breaks, format="d"),
        ),
        "color": alt.Color(
            f"{FILL_COLUMN}:N",
            scale=alt.Scale(domain=fill_levels, range=colours),
            legend=alt.Legend(title=options.fill_legend_title) if options.fill_by else None,
        ),
        "order": alt.Order(f"{ORDER_COLUMN}:Q", sort="ascending"),
        "tooltip": [
            alt.Tooltip(f"{AXIS_COLUMN}:O", title=bucketed.x_label),
            alt.Tooltip(f"{COUNT_COLUMN}:Q", title=options.y_label),
        ],
    }
    if options.fill_by:
        encodings["tooltip"].insert(1, alt.Tooltip(f"{FILL_COLUMN}:N", title=options.fill_by))
    if options.squares:
        encodings["detail"] = alt.Detail(f"{BLOCK_COLUMN}:N")
    if options.shade_by:
        shade_levels = category_levels(table[options.shade_by])
        opacities = [float(v) for v in np.linspace(SHADE_RANGE[0], SHADE_RANGE[1], len(shade_levels))]
        encodings["fillOpacity"] = alt.FillOpacity(
            f"{SHADE_COLUMN}:N",
            scale=alt.Scale(domain=shade_levels, range=opacities),
            legend=alt.Legend(title=options.shade_legend_title),
        )

    bars = alt.Chart().mark_bar(stroke=BAR_OUTLINE, strokeWidth=0.5).encode(**encodings)
    baseline = alt.Chart().mark_rule(color="black").encode(y=alt.datum(0))
    chart: Any = alt.layer(bars, baseline, data=frame)

    if options.split_by:
        chart = chart.facet(
            row=alt.Row(
                f"{SPLIT_COLUMN}:N",
                sort=category_levels(table[options.split_by]),
                title=None,
                header=alt.Header(labelOrient="right"),
            )
        )
    return style_chart(chart, options.blank_background)


class EpicurveStrategy(IVisualizationStrategy):
    """Epidemic curve: case counts per time period as stacked bars.

    Data: {"linelist": DataFrame}

    Config:
      - date_col (str, required): column with case dates (or an already
        bucketed categorical when time_period="use_date_col_as_is").
      - any EpicurveOptions field: time_period, start, stop, fill_by / fill,
        split_by, shade_by, x_label, y_label, fill_legend_title,
        shade_legend_title, angle, palette, label_breaks, squares,
        blank_background, drop_missing.

    Filters: equality filters on existing columns, applied before bucketing.
    """

    def build(self, df: pd.DataFrame, config: Dict[str, Any], filters: Dict[str, Any]) -> Any:
        config = dict(config or {})
        date_col = config.pop("date_col", None)
        if not date_col:
            raise ValueError("date_col is required for the epicurve")
        if config.get("time_period") is not None:
            config["time_period"] = TimePeriod.parse(config["time_period"])
        options = EpicurveOptions.model_validate(config)

        missing = missing_columns(df, [date_col, *options.stratification_columns()])
        if missing:
            raise ValueError(f"Column(s) not found in dataset: {', '.join(missing)}")

        df = df.copy()
        for key, value in (filters or {}).items():
            if key in df.columns:
                df = df[df[key] == value]

        bucketed = bucket(
            df,
            date_col,
            time_period=options.time_period,
            start=options.start,
            stop=options.stop,
            drop_missing=options.drop_missing,
            x_label=options.x_label,
        )
        apply_theme()
        return assemble_chart(bucketed, options)

    def generate(
        self, data: Dict[str, pd.DataFrame], config: Dict[str, Any], filters: Dict[str, Any], settings: Any
    ) -> Dict[str, Any]:
        linelist = data.get("linelist")
        if linelist is None:
            raise ValueError("Line list data required for epicurve")
        return self.build(linelist, config, filters).to_dict()


def epicurve_chart(df: pd.DataFrame, date_col: str, filters: Optional[Dict[str, Any]] = None, **options: Any) -> Any:
    """Altair chart version of :func:`epicurve`, handy in notebooks."""
    return EpicurveStrategy().build(df, {"date_col": date_col, **options}, filters or {})


def epicurve(df: pd.DataFrame, date_col: str, filters: Optional[Dict[str, Any]] = None, **options: Any) -> Dict[str, Any]:
    """Vega-Lite spec of an epicurve for ``df``.

    >>> spec = epicurve(linelist, "onset", time_period="iso_year_week", fill_by="sex")
    """
    return EpicurveStrategy().generate(
        {"linelist": df}, {"date_col": date_col, **options}, filters or {}, default_settings
    )
