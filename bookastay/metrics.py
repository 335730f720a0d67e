"""
Prometheus metrics for booking operations, calendar sync, gateway calls and the outbox.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., bookings confirmed)
    - Histogram: Observations bucketed by value (e.g., feed fetch latency)

Example:
    >>> from bookastay.metrics import sync_duration, sync_events
    >>> with sync_duration.labels(feed="entire").time():
    ...     counters = sync_feed(engine, feed)
    ...     sync_events.labels(feed="entire", action="insert").inc(counters.new)
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Calendar Sync Metrics
# =============================================================================

sync_runs = Counter(
    "bookastay_calendar_sync_runs_total",
    "Total number of calendar feed syncs (success and failure)",
    ["feed", "status"],
)
"""
Counter for calendar feed syncs.

Labels:
    feed: Feed name from CALENDAR_FEEDS
    status: success, partial (some events errored) or failure
"""

sync_duration = Histogram(
    "bookastay_calendar_sync_duration_seconds",
    "Duration of calendar feed syncs in seconds",
    ["feed"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, float("inf")),
)

sync_events = Counter(
    "bookastay_calendar_sync_events_total",
    "Calendar events processed, by reconciliation outcome",
    ["feed", "action"],
)
"""
Counter for reconciled calendar events.

Labels:
    feed: Feed name
    action: insert, update, skip or error
"""

# =============================================================================
# External API Metrics
# =============================================================================

api_requests = Counter(
    "bookastay_external_api_requests_total",
    "Total requests made to external services",
    ["service", "status_code"],
)
"""
Counter for outbound HTTP requests.

Labels:
    service: calendar_feed, paystack or shuftipro
    status_code: HTTP status code, or "error" when no response was received
"""

api_latency = Histogram(
    "bookastay_external_api_latency_seconds",
    "External service request latency in seconds",
    ["service"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)

# =============================================================================
# Booking Metrics
# =============================================================================

booking_operations = Counter(
    "bookastay_booking_operations_total",
    "Booking lifecycle operations by outcome",
    ["operation", "outcome"],
)
"""
Counter for booking lifecycle operations.

Labels:
    operation: create, confirm, block, cancel, delete
    outcome: success, conflict, invalid, payment_failed, error
"""

db_operations = Counter(
    "bookastay_db_operations_total",
    "Total database write operations performed",
    ["operation", "table"],
)

# =============================================================================
# Outbox Metrics
# =============================================================================

outbox_tasks = Counter(
    "bookastay_outbox_tasks_total",
    "Outbox task executions by outcome",
    ["kind", "outcome"],
)
"""
Counter for outbox task executions.

Labels:
    kind: start_identity_verification or send_booking_notifications
    outcome: done, retry or failed
"""
