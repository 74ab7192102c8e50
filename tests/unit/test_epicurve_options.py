from datetime import date

import pytest
from pydantic import ValidationError

from epiviz.schemas.epicurve import EpicurveOptions, FillByColumn, NoFill, TimePeriod


def test_defaults_follow_epicurve_conventions():
    options = EpicurveOptions()
    assert isinstance(options.fill, NoFill)
    assert options.fill_by is None
    assert options.y_label == "Number of cases"
    assert options.palette == "phe"
    assert options.angle == 90
    assert options.squares and options.blank_background and options.drop_missing


def test_fill_by_shorthand_becomes_tagged_fill():
    options = EpicurveOptions(fill_by="sex")
    assert options.fill == FillByColumn(column="sex")
    assert options.fill_by == "sex"
    assert EpicurveOptions(fill_by=None).fill == NoFill()


def test_explicit_fill_strategy():
    options = EpicurveOptions.model_validate({"fill": {"kind": "column", "column": "conf"}})
    assert options.fill_by == "conf"


def test_time_period_and_bounds_are_parsed():
    options = EpicurveOptions(time_period="year.quarter", start="2015-01-01", stop="2015-12-31")
    assert options.time_period is TimePeriod.YEAR_QUARTER
    assert options.start == date(2015, 1, 1)
    assert options.stop == date(2015, 12, 31)


def test_stratification_columns_skip_unset_options():
    options = EpicurveOptions(fill_by="sex", split_by="region")
    assert options.stratification_columns() == ["sex", "region"]


@pytest.mark.parametrize(
    "payload",
    [
        {"time_period": "fortnight"},
        {"start": "01/02/2015"},
        {"label_breaks": -1},
        {"fill_colour": "sex"},
    ],
)
def test_invalid_options_are_rejected(payload):
    with pytest.raises(ValidationError):
        EpicurveOptions.model_validate(payload)
