"""Prometheus metrics for notification feeds, read-state writes and storage health"""

from prometheus_client import Counter, Histogram

# Feed metrics
notifications_projected_counter = Counter(
    "notifications_projected_total",
    "Notifications produced by feed projections",
    ["state"],  # read | unread
)

notifications_marked_read_counter = Counter(
    "notifications_marked_read_total",
    "Notification ids newly added to read-sets",
)

# Storage metrics
storage_failures_counter = Counter(
    "storage_failures_total",
    "Failed storage operations",
    ["operation"],  # list_obligations | list_purchases | load_read_ids | save_read_ids
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_feed(total: int, unread: int) -> None:
    """Record how many notifications a feed carried, split by read state"""
    notifications_projected_counter.labels(state="unread").inc(unread)
    notifications_projected_counter.labels(state="read").inc(total - unread)


def record_storage_failure(operation: str) -> None:
    storage_failures_counter.labels(operation=operation).inc()
