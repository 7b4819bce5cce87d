"""Prometheus metrics for notification queue monitoring.

This module provides metrics for tracking the delivery queue:
- Enqueue and attempt counters by channel
- Delivery outcomes by channel and status
- Retry scheduling and exhaustion
- Provider latency and processing cycle histograms

Usage:
    from signal_notify.features.notifications.metrics import (
        notification_attempts_total,
        notification_delivered_total,
    )

    notification_attempts_total.labels(channel="sms").inc()
    notification_delivered_total.labels(channel="sms", status="sent").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Queue Lifecycle Metrics
# =============================================================================

notification_enqueued_total = Counter(
    "notification_enqueued_total",
    "Total number of notifications enqueued",
    labelnames=["channel"],
)

notification_attempts_total = Counter(
    "notification_attempts_total",
    "Total number of delivery attempts started",
    labelnames=["channel"],
)
"""
Incremented once per successful pending -> processing claim.
"""

notification_delivered_total = Counter(
    "notification_delivered_total",
    "Total number of delivery attempts by channel and outcome",
    labelnames=["channel", "status"],
)
"""
Counter for attempt outcomes.

Labels:
    channel: email, sms, chat, push, webhook
    status: sent or failed
"""

notification_retries_scheduled_total = Counter(
    "notification_retries_scheduled_total",
    "Total number of failed attempts rescheduled with backoff",
    labelnames=["channel"],
)

notification_exhausted_total = Counter(
    "notification_exhausted_total",
    "Total number of notifications that failed permanently",
    labelnames=["channel"],
)

# =============================================================================
# Performance Metrics
# =============================================================================

notification_delivery_duration_seconds = Histogram(
    "notification_delivery_duration_seconds",
    "Wall time of one delivery attempt",
    labelnames=["channel"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

notification_processing_cycle_duration_seconds = Histogram(
    "notification_processing_cycle_duration_seconds",
    "Duration of one queue processing cycle",
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0),
)

notification_processing_cycles_skipped_total = Counter(
    "notification_processing_cycles_skipped_total",
    "Processing cycles skipped because a cycle was already running",
)

notification_queue_due_items = Gauge(
    "notification_queue_due_items",
    "Due items selected by the most recent processing cycle",
)
