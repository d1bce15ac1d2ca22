"""Prometheus metrics for the creation and redirect paths."""

from prometheus_client import Counter, Histogram

__all__ = [
    "LINK_CREATION_REQUESTS_TOTAL",
    "CODE_COLLISIONS_TOTAL",
    "REDIRECT_REQUESTS_TOTAL",
    "REDIRECT_RESOLVE_DURATION",
    "CACHE_ERRORS_TOTAL",
    "BACKGROUND_TASKS_TOTAL",
    "BACKGROUND_TASK_FAILURES_TOTAL",
]

LINK_CREATION_REQUESTS_TOTAL = Counter(
    "shortlink_creation_requests_total",
    "Total link creation requests",
    ["status"],
)
CODE_COLLISIONS_TOTAL = Counter(
    "shortlink_code_collisions_total",
    "Short code collisions rejected by the store",
)
REDIRECT_REQUESTS_TOTAL = Counter(
    "shortlink_redirect_requests_total",
    "Total redirect resolutions",
    ["outcome", "cache_hit"],
)
REDIRECT_RESOLVE_DURATION = Histogram(
    "shortlink_redirect_resolve_duration_seconds",
    "Time taken to resolve a short code",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)
CACHE_ERRORS_TOTAL = Counter(
    "shortlink_cache_errors_total",
    "Cache operations that failed or timed out",
    ["operation"],
)
BACKGROUND_TASKS_TOTAL = Counter(
    "shortlink_background_tasks_total",
    "Deferred tasks submitted",
    ["kind"],
)
BACKGROUND_TASK_FAILURES_TOTAL = Counter(
    "shortlink_background_task_failures_total",
    "Deferred tasks that raised",
    ["kind"],
)
