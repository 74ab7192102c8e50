from typing import Any, List, Optional

from epiviz.schemas.errors import ErrorResponse
from epiviz.viz.registry import chart_registry


def build_error(
    code: str,
    message: str,
    details: Optional[List[str]] = None,
    supported_keys: Optional[List[str]] = None,
) -> dict:
    return ErrorResponse(
        code=code,
        message=message,
        details=details or [],
        supported_chart_keys=supported_keys,
    ).model_dump()


def error_from_failure(failure: Any) -> dict:
    """Error payload for a service ValidationFailure, listing the registered chart keys."""
    return build_error(
        code=failure.code,
        message=failure.message,
        details=list(failure.details),
        supported_keys=chart_registry.list_keys(),
    )
