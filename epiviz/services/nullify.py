from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Iterable, Set

import numpy as np
import pandas as pd


def _as_text(value: Any) -> str:
    """Text form used for matching: 3.0 -> "3", midnight timestamps -> "2014-01-01"."""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, datetime) and value.time() == time.min:
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _is_missing(value: Any) -> bool:
    return pd.api.types.is_scalar(value) and pd.isna(value)


def _matches(value: Any, targets: Set[str]) -> bool:
    if _is_missing(value):
        return False
    return _as_text(value).lower() in targets


def set_to_na(data: pd.DataFrame, values: Iterable[Any]) -> pd.DataFrame:
    """Replace every cell equal (case-insensitively) to one of ``values`` with NA.

    Each column is handled independently and keeps its dtype where pandas can
    hold missing values in it (categoricals keep their categories); integer
    and boolean columns with a match become float / object.
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"set_to_na expects a pandas DataFrame, got {type(data).__name__}")
    if isinstance(values, (str, bytes)):
        values = [values]
    targets = {_as_text(v).lower() for v in values if not _is_missing(v)}

    out = data.copy()
    if not targets:
        return out
    for col in out.columns:
        series = out[col]
        mask = series.astype(object).map(lambda v: _matches(v, targets)).astype(bool)
        if mask.any():
            out[col] = series.mask(mask)
    return out
