import json
from typing import Any

from fastapi import APIRouter, File, Form, UploadFile

from epiviz.api.visualize import failure_response, payload_error
from epiviz.schemas.visualize import NullifiedTable
from epiviz.services import linelist_service

router = APIRouter(tags=["tables"])


@router.post("/set-to-na", response_model=NullifiedTable)
async def set_to_na(
    file: UploadFile = File(...),
    values: str = Form(..., description="JSON list of values to recode as missing"),
) -> Any:
    try:
        parsed_values = json.loads(values)
    except json.JSONDecodeError as exc:
        return payload_error(exc)
    if isinstance(parsed_values, str):
        parsed_values = [parsed_values]
    if not isinstance(parsed_values, list):
        return payload_error(TypeError("values must be a JSON list"))

    try:
        return await linelist_service.nullify_upload(file, parsed_values)
    except linelist_service.ValidationFailure as exc:
        return failure_response(exc)
