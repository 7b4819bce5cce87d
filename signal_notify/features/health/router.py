"""Health check endpoint.

The database is required: when it is unreachable the endpoint answers 503.
A stopped queue processor only degrades the service, since cycles can still
be triggered through the admin API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text

from signal_notify.core.database import utcnow
from signal_notify.core.settings import get_app_settings, get_queue_settings
from signal_notify.features.health.schemas import HealthResponse
from signal_notify.features.notifications.dependencies import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    responses={503: {"description": "Database unavailable"}},
)
async def health_check(request: Request, response: Response, session: SessionDep) -> HealthResponse:
    app_settings = get_app_settings()

    try:
        await session.execute(text("SELECT 1"))
        database_ok = True
    except Exception as e:
        logger.warning("Health check database query failed", extra={"error": str(e)})
        database_ok = False

    processor = getattr(request.app.state, "queue_processor", None)
    processor_ok = processor is not None and (
        processor.running or not get_queue_settings().enabled
    )

    if not database_ok:
        health = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif not processor_ok:
        health = "degraded"
    else:
        health = "healthy"

    return HealthResponse(
        status=health,
        timestamp=utcnow(),
        service=app_settings.service_name,
        version=app_settings.version,
        checks={"database": database_ok, "queue_processor": processor_ok},
    )
