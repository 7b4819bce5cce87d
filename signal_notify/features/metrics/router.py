"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    Queue metrics (see features.notifications.metrics):
        - notification_enqueued_total, notification_attempts_total
        - notification_delivered_total by channel and status
        - notification_retries_scheduled_total, notification_exhausted_total
        - notification_delivery_duration_seconds
        - notification_processing_cycle_duration_seconds
        - notification_queue_due_items

    Process and platform collectors registered by prometheus_client.
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics")
async def metrics() -> Response:
    """Expose the default registry in the Prometheus text format."""
    data = generate_latest(REGISTRY)
    return Response(
        content=data,
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
