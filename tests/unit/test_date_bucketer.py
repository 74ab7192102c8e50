from datetime import date, timedelta

import pandas as pd
import pytest

from epiviz.schemas.epicurve import InvalidTimePeriod, TimePeriod
from epiviz.services.date_bucketer import (
    AXIS_COLUMN,
    CALENDAR_PERIODS,
    NotADateColumn,
    auto_time_period,
    axis_levels,
    bucket,
    derive_periods,
    period_label,
)


def _dates(*values):
    return pd.DataFrame({"onset": pd.to_datetime(list(values))})


def test_derive_periods_labels_are_zero_padded_and_year_first():
    # 2016-01-01 is a Friday and belongs to ISO week 53 of 2015.
    derived = derive_periods(pd.Series(pd.to_datetime(["2016-01-01"]), name="onset"))
    row = derived.iloc[0].to_dict()
    assert row == {
        "day": "2016-01-01",
        "year": "2016",
        "month": "01",
        "quarter": "01",
        "year_month": "201601",
        "year_quarter": "201601",
        "iso_year": "2015",
        "iso_week": "53",
        "iso_year_week": "201553",
    }


def test_derive_periods_leaves_missing_dates_missing():
    derived = derive_periods(pd.Series(pd.to_datetime(["2015-11-30", None]), name="onset"))
    assert derived.loc[0, "quarter"] == "04"
    assert derived.loc[0, "year_quarter"] == "201504"
    assert derived.iloc[1].isna().all()


@pytest.mark.parametrize("period", CALENDAR_PERIODS, ids=lambda p: p.value)
def test_axis_levels_are_every_label_in_range(period):
    start, stop = date(2014, 11, 20), date(2016, 2, 10)
    expected = {period_label(start + timedelta(days=i), period) for i in range((stop - start).days + 1)}
    levels = axis_levels(start, stop, period)
    assert set(levels) == expected
    assert len(levels) == len(expected)
    # zero-padded, year-first labels: chronological order equals text order
    assert levels == sorted(expected)


def test_empty_periods_still_appear_on_axis():
    df = _dates("2015-01-15", "2015-06-15")
    result = bucket(df, "onset", time_period="year_month", start="2015-01-01", stop="2015-06-30")
    assert result.levels == ["201501", "201502", "201503", "201504", "201505", "201506"]
    assert list(result.table[AXIS_COLUMN].astype(str)) == ["201501", "201506"]
    assert list(result.table[AXIS_COLUMN].cat.categories) == result.levels


def test_default_bounds_are_padded_by_five_days():
    df = _dates("2015-03-10", "2015-03-20")
    result = bucket(df, "onset", time_period="day")
    assert result.levels[0] == "2015-03-05"
    assert result.levels[-1] == "2015-03-25"
    assert len(result.levels) == 21
    assert result.excluded == 0


def test_two_year_line_list_by_year_month_covers_every_month():
    df = _dates("2014-01-01", "2014-07-19", "2016-04-01")
    result = bucket(df, "onset", time_period="year_month")
    # padded bounds: 2013-12-27 .. 2016-04-06
    assert result.levels[0] == "201312"
    assert result.levels[-1] == "201604"
    assert len(result.levels) == 29
    assert "201505" in result.levels


def test_month_is_month_of_year():
    df = _dates("2014-01-01", "2016-04-01")
    result = bucket(df, "onset", time_period="month")
    assert result.levels == [f"{m:02d}" for m in range(1, 13)]


@pytest.mark.parametrize(
    "n_days, expected",
    [
        (1, TimePeriod.DAY),
        (61, TimePeriod.DAY),
        (62, TimePeriod.ISO_YEAR_WEEK),
        (364, TimePeriod.ISO_YEAR_WEEK),
        (365, TimePeriod.YEAR_MONTH),
    ],
)
def test_auto_time_period_thresholds(n_days, expected):
    assert auto_time_period(n_days) is expected


def test_time_period_and_label_chosen_from_span():
    short = bucket(_dates("2015-01-10", "2015-01-20"), "onset")
    assert short.time_period is TimePeriod.DAY
    assert short.x_label == "Day"

    medium = bucket(_dates("2015-01-10", "2015-05-20"), "onset")
    assert medium.time_period is TimePeriod.ISO_YEAR_WEEK
    assert medium.x_label == "ISO Year Week"

    long = bucket(_dates("2015-01-10", "2016-05-20"), "onset", x_label="Onset")
    assert long.time_period is TimePeriod.YEAR_MONTH
    assert long.x_label == "Onset"


def test_out_of_range_and_missing_dates_are_counted_and_dropped():
    df = pd.DataFrame(
        {
            "onset": pd.to_datetime(["2015-01-01", "2015-01-10", "2015-02-01", None]),
            "id": [1, 2, 3, 4],
        }
    )
    result = bucket(df, "onset", time_period="day", start="2015-01-05", stop="2015-01-31")
    assert result.excluded == 3
    assert list(result.table["id"]) == [2]

    kept = bucket(df, "onset", time_period="day", start="2015-01-05", stop="2015-01-31", drop_missing=False)
    assert kept.excluded == 3
    assert len(kept.table) == 4
    assert int(kept.table[AXIS_COLUMN].isna().sum()) == 3


def test_bounds_are_inclusive():
    df = _dates("2015-01-05", "2015-01-31")
    result = bucket(df, "onset", time_period="day", start="2015-01-05", stop="2015-01-31")
    assert result.excluded == 0
    assert len(result.table) == 2


def test_date_objects_in_object_column_are_accepted():
    df = pd.DataFrame({"onset": [date(2015, 1, 1), None, date(2015, 1, 3)]})
    result = bucket(df, "onset", time_period="day", start=date(2015, 1, 1), stop=date(2015, 1, 3))
    assert result.levels == ["2015-01-01", "2015-01-02", "2015-01-03"]
    assert result.excluded == 1


def test_input_table_is_not_modified():
    df = _dates("2015-01-01", "2015-01-02")
    bucket(df, "onset", time_period="day")
    assert list(df.columns) == ["onset"]


def test_text_dates_are_rejected():
    df = pd.DataFrame({"onset": ["2015-01-01", "2015-01-02"]})
    with pytest.raises(NotADateColumn, match="onset"):
        bucket(df, "onset", time_period="day")


def test_unknown_time_period_is_fatal():
    with pytest.raises(InvalidTimePeriod, match="fortnight"):
        bucket(_dates("2015-01-01"), "onset", time_period="fortnight")


def test_dotted_time_period_names_are_accepted():
    result = bucket(_dates("2015-01-01"), "onset", time_period="iso.year.week")
    assert result.time_period is TimePeriod.ISO_YEAR_WEEK


def test_start_after_stop_is_rejected():
    with pytest.raises(ValueError, match="must not be after"):
        bucket(_dates("2015-01-01"), "onset", time_period="day", start="2015-02-01", stop="2015-01-01")


def test_column_without_dates_needs_explicit_bounds():
    df = pd.DataFrame({"onset": pd.to_datetime([None, None])})
    with pytest.raises(ValueError, match="no dates"):
        bucket(df, "onset", time_period="day")

    result = bucket(df, "onset", time_period="day", start="2015-01-01", stop="2015-01-02")
    assert result.levels == ["2015-01-01", "2015-01-02"]
    assert result.excluded == 2
    assert result.table.empty


def test_missing_date_column_is_reported():
    with pytest.raises(ValueError, match="not found"):
        bucket(_dates("2015-01-01"), "report_date")


def test_passthrough_uses_column_as_axis():
    df = pd.DataFrame(
        {"week": pd.Categorical(["w2", "w2", "w1"], categories=["w1", "w2", "w3"]), "id": [1, 2, 3]}
    )
    result = bucket(df, "week", time_period="use.date.col.as.is")
    assert result.time_period is TimePeriod.USE_DATE_COL_AS_IS
    assert result.levels == ["w1", "w2", "w3"]
    assert result.excluded == 0
    assert result.x_label == "week"
    assert list(result.table[AXIS_COLUMN].astype(str)) == ["w2", "w2", "w1"]


def test_passthrough_ignores_bounds_and_sorts_plain_values():
    df = pd.DataFrame({"week": ["2015_02", "2015_01", None]})
    result = bucket(df, "week", time_period="use_date_col_as_is", start="2020-01-01", stop="2020-01-02")
    assert result.levels == ["2015_01", "2015_02"]
    assert result.excluded == 1
    assert len(result.table) == 2
