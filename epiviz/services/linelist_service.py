from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import UploadFile
from pydantic import ValidationError

from epiviz.config.observability import log_error, log_event, timed
from epiviz.config.settings import settings
from epiviz.schemas.epicurve import EpicurveOptions, InvalidTimePeriod, TimePeriod
from epiviz.schemas.errors import ErrorCode
from epiviz.schemas.visualize import ChartRequest
from epiviz.services import data_loader
from epiviz.services.date_bucketer import NotADateColumn
from epiviz.services.nullify import set_to_na
from epiviz.services.validators import DatasetTooLarge, missing_columns
from epiviz.viz.registry import UnknownChartKeyError, chart_registry
import epiviz.viz  # noqa: F401 ensures default strategies registered


class ValidationFailure(ValueError):
    def __init__(self, code: str, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or []


async def _read_upload(file: UploadFile) -> bytes:
    return await file.read()


async def _load_table(file: UploadFile, date_columns: Optional[List[str]] = None) -> pd.DataFrame:
    raw = await _read_upload(file)
    try:
        return data_loader.read_bytes_to_df(raw, file.filename, date_columns=date_columns)
    except data_loader.UnsupportedFileType as exc:
        raise ValidationFailure(
            code=ErrorCode.INVALID_FILE_TYPE, message="Unsupported file type", details=[str(exc)]
        ) from exc
    except DatasetTooLarge as exc:
        raise ValidationFailure(
            code=ErrorCode.DATASET_TOO_LARGE, message="Dataset too large", details=[str(exc)]
        ) from exc
    except ValueError as exc:
        # undecodable bytes or malformed CSV/Excel content
        raise ValidationFailure(
            code=ErrorCode.PAYLOAD_ERROR, message="Unreadable line list file", details=[str(exc)]
        ) from exc


def _parse_options(raw: Dict[str, Any]) -> EpicurveOptions:
    if raw.get("time_period") is not None:
        try:
            TimePeriod.parse(raw["time_period"])
        except InvalidTimePeriod as exc:
            raise ValidationFailure(
                code=ErrorCode.INVALID_TIME_PERIOD, message="Unknown time period", details=[str(exc)]
            ) from exc
    try:
        return EpicurveOptions.model_validate(raw)
    except ValidationError as exc:
        raise ValidationFailure(
            code=ErrorCode.INVALID_OPTIONS,
            message="Invalid epicurve options",
            details=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()],
        ) from exc


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


async def generate_epicurve(request: ChartRequest, linelist_file: UploadFile) -> Dict[str, Any]:
    try:
        strategy = chart_registry.require(request.chart_key)
    except UnknownChartKeyError:
        log_error("invalid_chart_key", f"Unsupported chart key: {request.chart_key}")
        raise

    raw_options = dict(request.options or {})
    options = _parse_options(raw_options)
    date_columns = None if options.time_period is TimePeriod.USE_DATE_COL_AS_IS else [request.date_col]

    with timed("load_linelist"):
        df = await _load_table(linelist_file, date_columns=date_columns)

    missing = missing_columns(df, [request.date_col, *options.stratification_columns()])
    if missing:
        raise ValidationFailure(
            code=ErrorCode.MISSING_REQUIRED_COLUMNS,
            message="Missing required line list columns",
            details=missing,
        )
    if date_columns and len(df.index) and df[request.date_col].isna().all():
        raise ValidationFailure(
            code=ErrorCode.INVALID_DATE_COLUMN,
            message="Date column has no yyyy-mm-dd dates",
            details=[request.date_col],
        )

    with timed("generate_spec"):
        try:
            spec = strategy.generate(
                data={"linelist": df},
                config={"date_col": request.date_col, **raw_options},
                filters=request.filters or {},
                settings=settings,
            )
        except NotADateColumn as exc:
            raise ValidationFailure(
                code=ErrorCode.INVALID_DATE_COLUMN, message="Date column is not a date", details=[str(exc)]
            ) from exc
        except ValueError as exc:
            raise ValidationFailure(
                code=ErrorCode.INVALID_OPTIONS, message="Cannot build epicurve", details=[str(exc)]
            ) from exc

    log_event("chart_generated", chart_key=request.chart_key, rows=len(df))
    return {
        "chart_key": request.chart_key,
        "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "spec": spec,
    }


async def nullify_upload(file: UploadFile, values: List[Any]) -> Dict[str, Any]:
    with timed("load_table"):
        df = await _load_table(file)
    with timed("set_to_na"):
        out = set_to_na(df, values)
    log_event("table_nullified", rows=len(out), values=len(values))
    return {"columns": [str(col) for col in out.columns], "rows": _records(out)}
