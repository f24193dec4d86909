"""Shared utility functions."""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.shared.schemas import ApiResponse


def success_response(
    data: Any,
    message: str | None = None,
    status_code: int = 200,
) -> JSONResponse:
    """Wrap a payload in the success envelope with an explicit status code.

    For routes whose status depends on the outcome (200 vs 207), where a
    fixed ``response_model``/``status_code`` pair does not fit.

    Args:
        data: Pydantic model or JSON-compatible payload.
        message: Human-readable outcome.
        status_code: HTTP status code.

    Returns:
        JSONResponse with camelCase keys.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    envelope = ApiResponse[Any](success=True, message=message, data=data)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True),
    )
