import json
from typing import Any, Optional

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from epiviz.config.observability import log_event
from epiviz.schemas.errors import ErrorCode
from epiviz.schemas.visualize import ChartRequest, VisualizationSpec
from epiviz.services import linelist_service
from epiviz.services.error_builder import build_error, error_from_failure
from epiviz.viz.registry import UnknownChartKeyError, chart_registry

router = APIRouter(tags=["visualize"])


def payload_error(exc: Exception) -> JSONResponse:
    error = build_error(
        code=ErrorCode.PAYLOAD_ERROR,
        message="Invalid JSON payload in form fields",
        details=[str(exc)],
        supported_keys=chart_registry.list_keys(),
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error)


def failure_response(exc: linelist_service.ValidationFailure) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_from_failure(exc))


@router.get("/visualize/supported-keys", response_model=list[str])
async def supported_keys() -> list[str]:
    return chart_registry.list_keys()


@router.post("/epicurve", response_model=VisualizationSpec)
async def epicurve(
    linelist_file: UploadFile = File(...),
    date_col: str = Form(...),
    filters: Optional[str] = Form(None),
    options: Optional[str] = Form(None),
    chart_key: str = Form("epicurve"),
) -> Any:
    try:
        parsed_filters = json.loads(filters) if filters else None
        parsed_options = json.loads(options) if options else None
    except json.JSONDecodeError as exc:
        return payload_error(exc)

    log_event("epicurve.request_parsed", chart_key=chart_key, date_col=date_col, options=parsed_options)

    request = ChartRequest(
        chart_key=chart_key,
        date_col=date_col,
        filters=parsed_filters,
        options=parsed_options,
    )
    try:
        return await linelist_service.generate_epicurve(request=request, linelist_file=linelist_file)
    except UnknownChartKeyError as exc:
        error = build_error(
            code=ErrorCode.INVALID_CHART_KEY,
            message=str(exc.args[0]),
            details=[],
            supported_keys=chart_registry.list_keys(),
        )
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=error)
    except linelist_service.ValidationFailure as exc:
        return failure_response(exc)
