"""Epidemic curves and line-list helpers."""

from epiviz.services.date_bucketer import BucketedDates, NotADateColumn, bucket
from epiviz.services.nullify import set_to_na
from epiviz.schemas.epicurve import EpicurveOptions, InvalidTimePeriod, TimePeriod
from epiviz.viz.strategies.epicurve import epicurve, epicurve_chart

__all__ = [
    "BucketedDates",
    "EpicurveOptions",
    "InvalidTimePeriod",
    "NotADateColumn",
    "TimePeriod",
    "bucket",
    "epicurve",
    "epicurve_chart",
    "set_to_na",
]
