"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Token ledger metrics
ledger_operations = Counter(
    'token_ledger_operations_total',
    'Token ledger mutations',
    ['kind']  # purchase, usage, refund, admin_grant
)

ledger_tokens = Counter(
    'token_ledger_tokens_total',
    'Tokens moved through the ledger',
    ['kind']
)

ledger_rejections = Counter(
    'token_ledger_rejections_total',
    'Ledger operations rejected by a precondition',
    ['reason']  # insufficient_balance, invalid_package
)

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total trip booking attempts',
    ['status']  # success, no_seats, not_found
)

booking_cancellations = Counter(
    'booking_cancellations_total',
    'Total trip booking cancellations'
)

# Job marketplace metrics
job_transitions = Counter(
    'job_transitions_total',
    'Job and application state transitions',
    ['transition']  # posted, applied, accepted, rejected, closed, deleted
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

# HTTP metrics
request_latency = Histogram(
    'http_request_latency_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_ledger_operation(kind: str, amount: int):
    """Record a ledger mutation. Amount is counted as an absolute value."""
    ledger_operations.labels(kind=kind).inc()
    ledger_tokens.labels(kind=kind).inc(abs(amount))


def record_ledger_rejection(reason: str):
    ledger_rejections.labels(reason=reason).inc()


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, no_seats, not_found"""
    booking_attempts.labels(status=status).inc()


def record_job_transition(transition: str):
    job_transitions.labels(transition=transition).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
