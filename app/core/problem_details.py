"""Error response bodies.

Errors are RFC 7807 problem documents (``application/problem+json``) that
also carry the service's envelope fields, ``success: false`` and ``error``:

    {"type": "/errors/not-found", "title": "Not Found", "status": 404,
     "detail": "No data found for batch_id: 9", "success": false,
     "error": "No data found for batch_id: 9", "code": "NOT_FOUND",
     "request_id": "..."}

See https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from app.core.logging import request_id_ctx

PROBLEM_TYPE_PREFIX = "/errors"

# Error code -> slug of its problem type URI.
PROBLEM_SLUGS: dict[str, str] = {
    "NOT_FOUND": "not-found",
    "VALIDATION_ERROR": "validation",
    "PAYLOAD_TOO_LARGE": "payload-too-large",
    "DATABASE_ERROR": "database",
    "ALLOCATION_INVARIANT_VIOLATED": "allocation-invariant",
    "SERVICE_UNAVAILABLE": "service-unavailable",
    "INTERNAL_ERROR": "internal",
}


def problem_type_uri(code: str) -> str:
    """Relative type URI for an error code; unknown codes get a derived slug."""
    slug = PROBLEM_SLUGS.get(code, code.lower().replace("_", "-"))
    return f"{PROBLEM_TYPE_PREFIX}/{slug}"


class ProblemDetail(BaseModel):
    """Problem document with the service's envelope fields.

    ``extra="allow"`` keeps RFC 7807 extension members.
    """

    model_config = ConfigDict(extra="allow")

    type: str = "about:blank"
    title: str
    status: int
    detail: str | None = None
    instance: str | None = None
    success: bool = False
    error: str
    code: str | None = None
    errors: list[dict[str, Any]] | None = None
    request_id: str | None = None


class ProblemDetailResponse(JSONResponse):
    media_type = "application/problem+json"


def problem_response(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    error: str | None = None,
) -> ProblemDetailResponse:
    """Build a problem response for the current request.

    Args:
        status: HTTP status code.
        title: Short summary of the problem type.
        detail: Explanation of this occurrence.
        error_code: Machine-readable code; selects the type URI.
        errors: Per-field problems for request validation failures.
        error: Envelope error string; falls back to ``detail``, then ``title``.

    Returns:
        Response with the ``application/problem+json`` media type. Unset
        members are omitted from the body.
    """
    request_id = request_id_ctx.get()
    problem = ProblemDetail(
        type=problem_type_uri(error_code),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        error=error or detail or title,
        code=error_code,
        errors=errors,
        request_id=request_id,
    )
    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
    )
