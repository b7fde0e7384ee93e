"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Check-in metrics
check_in_attempts = Counter(
    'check_in_attempts_total',
    'Total attendance check-in submissions',
    ['outcome']  # success, duplicate, outside_radius, outside_window, ...
)

# QR token metrics
qr_token_verifications = Counter(
    'qr_token_verifications_total',
    'QR token verification results',
    ['result']  # valid, missing, expired, invalid_signature, ...
)

qr_tokens_issued = Counter(
    'qr_tokens_issued_total',
    'Rotating check-in tokens minted'
)

# Recurrence metrics
recurring_instances_generated = Histogram(
    'recurring_event_instances_generated',
    'Event instances produced per recurring pattern',
    buckets=[0, 1, 5, 10, 25, 50, 75, 100]
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/delete, hit/miss/error
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_check_in(outcome: str):
    """Record check-in outcome. Outcome: success or a rejection code."""
    check_in_attempts.labels(outcome=outcome).inc()


def record_token_verification(result: str):
    qr_token_verifications.labels(result=result).inc()


def record_token_issued():
    qr_tokens_issued.inc()


def record_instances_generated(count: int):
    recurring_instances_generated.observe(count)


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
