from typing import Iterable, List

import pandas as pd


def missing_columns(df: pd.DataFrame, required: Iterable[str]) -> List[str]:
    present = {str(col) for col in df.columns}
    return sorted({str(col) for col in required if col and str(col) not in present})


class DatasetTooLarge(ValueError):
    pass


def enforce_dimensions(df: pd.DataFrame, max_rows: int, max_columns: int) -> None:
    if len(df.index) > max_rows or len(df.columns) > max_columns:
        raise DatasetTooLarge(
            f"Dataset too large: rows={len(df.index)}, cols={len(df.columns)}, "
            f"limits rows<={max_rows}, cols<={max_columns}"
        )


def unparsed_dates(df: pd.DataFrame, column: str) -> List[str]:
    """Raw values of ``column`` that could not be read as yyyy-mm-dd dates."""
    if column not in df.columns:
        return [column]
    raw = df[column]
    parsed = pd.to_datetime(raw, format="%Y-%m-%d", errors="coerce")
    bad = raw[parsed.isna() & raw.notna()]
    return sorted({str(v) for v in bad})
