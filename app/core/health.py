"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging import get_logger
from app.shared.schemas import ApiResponse
from app.shared.utils import success_response

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthData(BaseModel):
    """Health check payload."""

    status: Literal["healthy", "unhealthy"]
    database: Literal["connected", "disconnected"]


class LivenessResponse(BaseModel):
    """Liveness check response schema."""

    status: Literal["ok"]


@router.get(
    "/health",
    response_model=None,
    responses={
        200: {"model": ApiResponse[HealthData], "description": "Database reachable"},
        503: {"model": ApiResponse[HealthData], "description": "Database unreachable"},
    },
)
async def health_check(
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Health check including database connectivity.

    Args:
        db: Database session dependency.

    Returns:
        200 when the database answers, 503 otherwise.
    """
    logger.debug("health.check_started")

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
        )
        data = HealthData(status="unhealthy", database="disconnected")
        response = success_response(data, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    else:
        logger.debug("health.database_connected")
        data = HealthData(status="healthy", database="connected")
        response = success_response(data)

    return response


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """Process liveness; never touches the database.

    Returns:
        Static ok status.
    """
    return LivenessResponse(status="ok")
