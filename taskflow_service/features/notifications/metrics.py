"""Prometheus metrics for notification planning and push delivery.

Usage:
    from taskflow_service.features.notifications.metrics import (
        notification_scheduled_total,
        push_delivery_total,
    )

    notification_scheduled_total.labels(notification_type="deadline_reminder").inc(3)
    push_delivery_total.labels(status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Planning Metrics
# =============================================================================

notification_scheduled_total = Counter(
    "taskflow_notification_scheduled_total",
    "Total number of reminder events written by the planner",
    labelnames=["notification_type"],
)
"""
Counter for scheduled reminder events.

Labels:
    notification_type: deadline_reminder, overdue_alert, completion_reminder

Example:
    notification_scheduled_total.labels(notification_type="deadline_reminder").inc(2)
"""

notification_cancelled_total = Counter(
    "taskflow_notification_cancelled_total",
    "Total number of pending reminder events deleted by cancellation",
)
"""
Counter for cancelled (deleted while unsent) reminder events.
"""

# =============================================================================
# Delivery Metrics
# =============================================================================

push_delivery_total = Counter(
    "taskflow_push_delivery_total",
    "Total number of per-token push outcomes",
    labelnames=["status"],
)
"""
Counter for per-token delivery outcomes.

Labels:
    status: success or failure

Example:
    push_delivery_total.labels(status="failure").inc(report.failure_count)
"""

push_send_duration_seconds = Histogram(
    "taskflow_push_send_duration_seconds",
    "Time spent in one multicast send",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
"""
Histogram of multicast send durations, including provider timeouts.
"""

push_tokens_pruned_total = Counter(
    "taskflow_push_tokens_pruned_total",
    "Total number of device endpoints deactivated after invalid-token responses",
)
"""
Counter for device endpoints deactivated by token pruning.
"""

# =============================================================================
# Retry Metrics
# =============================================================================

notification_retry_total = Counter(
    "taskflow_notification_retry_total",
    "Total number of failed deliveries rescheduled for another attempt",
)
"""
Counter for rescheduled delivery attempts.
"""

notification_dead_lettered_total = Counter(
    "taskflow_notification_dead_lettered_total",
    "Total number of notifications moved to a terminal failed state",
    labelnames=["reason"],
)
"""
Counter for terminal failures.

Labels:
    reason: retries_exhausted, no_active_tokens, processing_error
"""
