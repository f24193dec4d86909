"""Service exceptions, storage error mapping and FastAPI exception handlers.

Every error leaving the API is a problem document built by
``app.core.problem_details.problem_response``.
"""

from typing import Any, ClassVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.core.logging import get_logger
from app.core.problem_details import ProblemDetailResponse, problem_response

logger = get_logger(__name__)


class SpartiError(Exception):
    """Base class for errors that map to an HTTP status.

    Subclasses set ``code``, ``status_code`` and ``default_message``. Raised
    directly it is an unclassified internal failure.
    """

    code: ClassVar[str] = "INTERNAL_ERROR"
    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def title(self) -> str:
        """Problem title derived from the code, e.g. ``Not Found``."""
        return self.code.replace("_", " ").title()


class NotFoundError(SpartiError):
    """Requested batch has no rows."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ValidationError(SpartiError):
    """Malformed, missing or empty input."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"


class StorageUnavailableError(SpartiError):
    """Database unreachable: refused connection, exhausted pool or timeout.

    Clients may retry after a delay.
    """

    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "Database connection failed"


class DatabaseError(SpartiError):
    """A query failed for a reason other than connectivity."""

    code = "DATABASE_ERROR"
    status_code = 500
    default_message = "Database operation failed"


class AllocationInvariantError(SpartiError):
    """Next batch id computed by the store is not a positive integer."""

    code = "ALLOCATION_INVARIANT_VIOLATED"
    status_code = 500
    default_message = "Invalid batch ID returned from database"


# --- storage failures --------------------------------------------------------


def describe_storage_error(exc: BaseException) -> str:
    """Short reason for a storage failure, without the SQL text and parameters.

    DBAPI errors carry the driver's message on ``orig``; the wrapper's own
    string embeds the statement and every bound parameter.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        message = str(exc.orig)
    else:
        message = str(exc)
    return message.strip() or type(exc).__name__


def is_connectivity_failure(exc: BaseException) -> bool:
    """Whether a storage failure means the database could not be reached."""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, (OperationalError, InterfaceError, PoolTimeoutError, OSError))


def storage_failure(exc: BaseException, operation: str) -> SpartiError:
    """Map a storage exception to the request-level error it surfaces as.

    Args:
        exc: Exception raised by SQLAlchemy or the driver.
        operation: What was being attempted, e.g. "Failed to fetch batch data".

    Returns:
        StorageUnavailableError for connectivity failures, DatabaseError otherwise.
    """
    reason = describe_storage_error(exc)
    details = {"operation": operation, "error": reason, "error_type": type(exc).__name__}
    error_class = StorageUnavailableError if is_connectivity_failure(exc) else DatabaseError
    return error_class(message=f"{operation}: {reason}", details=details)


# --- unclassified failures ---------------------------------------------------

CONNECTIVITY_KEYWORDS = ("econnrefused", "connection")
VALIDATION_KEYWORDS = ("validation", "invalid")


def classify_unhandled_error(exc: BaseException) -> tuple[int, str, str, str]:
    """Pick a response for an exception nothing else classified.

    Best effort: the decision is made from the message text and may
    misclassify.

    Returns:
        Tuple of (status, error, detail, error_code).
    """
    message = str(exc)
    lowered = message.lower()

    if is_connectivity_failure(exc) or any(word in lowered for word in CONNECTIVITY_KEYWORDS):
        return (
            StorageUnavailableError.status_code,
            StorageUnavailableError.default_message,
            "Unable to connect to the database. Please check your database configuration.",
            StorageUnavailableError.code,
        )

    if any(word in lowered for word in VALIDATION_KEYWORDS):
        return ValidationError.status_code, "Validation error", message, ValidationError.code

    return (
        SpartiError.status_code,
        SpartiError.default_message,
        "An unexpected error occurred. Please try again later.",
        SpartiError.code,
    )


# --- handlers ----------------------------------------------------------------


async def sparti_exception_handler(
    _request: Request,
    exc: SpartiError,
) -> ProblemDetailResponse:
    """Render a SpartiError; 5xx are logged as errors with traceback."""
    is_server_error = exc.status_code >= 500
    log = logger.error if is_server_error else logger.warning
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
        exc_info=is_server_error,
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request parsing failures (bad JSON, wrong body type) as 400.

    Args:
        request: Incoming request.
        exc: FastAPI's validation error.

    Returns:
        Problem response listing each failing field.
    """
    field_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        path=str(request.url.path),
        error_count=len(field_errors),
        fields=[e["field"] for e in field_errors],
    )

    first = field_errors[0]["message"] if field_errors else "Validation failed"
    return problem_response(
        status=ValidationError.status_code,
        title="Validation Error",
        detail=f"{len(field_errors)} field(s) failed validation; see 'errors'.",
        error_code=ValidationError.code,
        errors=field_errors,
        error=f"Invalid request body: {first}",
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Last-resort handler for exceptions no other handler matched."""
    status, error, detail, error_code = classify_unhandled_error(exc)

    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        classified_status=status,
        exc_info=True,
    )

    return problem_response(
        status=status,
        title=error,
        detail=detail,
        error_code=error_code,
        error=error,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem-document handlers on ``app``."""
    app.add_exception_handler(SpartiError, sparti_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
