"""Request middleware: correlation ids, access logging and the body size ceiling."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.logging import get_logger, request_id_ctx
from app.core.problem_details import problem_response

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

CallNext = Callable[[Request], Awaitable[Response]]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and log its outcome.

    A client-supplied ``X-Request-ID`` is reused; otherwise a UUID4 is
    generated. The id is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            logger.info(
                "http.request_started",
                method=request.method,
                path=path,
                content_length=request.headers.get("content-length"),
            )

            response = await call_next(request)

            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                "http.request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds the ceiling.

    Only the header is checked; the body is never read here.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdecimal() and int(declared) > self.max_body_bytes:
            logger.warning(
                "http.request_too_large",
                path=request.url.path,
                content_length=int(declared),
                limit=self.max_body_bytes,
            )
            limit_mb = self.max_body_bytes / (1024 * 1024)
            message = (
                f"Request body exceeds the {limit_mb:g} MB limit. "
                "Split the upload into smaller submissions."
            )
            return problem_response(
                status=413,
                title="Payload Too Large",
                detail=message,
                error_code="PAYLOAD_TOO_LARGE",
            )

        return await call_next(request)
