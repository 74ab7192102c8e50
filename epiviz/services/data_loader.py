import csv
import io
import os
from typing import Optional, Sequence

import pandas as pd

from epiviz.config.observability import log_warning
from epiviz.config.settings import settings
from epiviz.services.validators import enforce_dimensions, unparsed_dates


class UnsupportedFileType(ValueError):
    pass


def _detect_separator(sample: str) -> str:
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=";,|\t")
        return dialect.delimiter
    except csv.Error:
        return ","


def parse_date_columns(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Parse yyyy-mm-dd columns in place; unreadable entries become NaT."""
    for col in columns:
        if col not in df.columns:
            continue
        bad = unparsed_dates(df, col)
        if bad:
            log_warning(
                "loader.unparsed_dates",
                f"{len(bad)} distinct value(s) in '{col}' are not yyyy-mm-dd dates",
                column=col,
                sample=bad[:5],
            )
        df[col] = pd.to_datetime(df[col], format="%Y-%m-%d", errors="coerce")
    return df


def read_bytes_to_df(
    data: bytes, filename: Optional[str], date_columns: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    extension = os.path.splitext(filename or "")[1].lower()
    buffer = io.BytesIO(data)
    if extension in {".xls", ".xlsx"}:
        df = pd.read_excel(buffer)
    elif extension in {".csv", ""}:
        sample = data[:1024].decode(errors="ignore")
        sep = _detect_separator(sample)
        df = pd.read_csv(io.BytesIO(data), sep=sep)
    else:
        raise UnsupportedFileType(f"Unsupported file type: {extension or 'unknown'}")
    enforce_dimensions(df, max_rows=settings.max_rows, max_columns=settings.max_columns)
    return parse_date_columns(df, date_columns or [])
