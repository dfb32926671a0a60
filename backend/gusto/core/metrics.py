"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total registration submissions',
    ['outcome']  # success, invalid, conflict, error
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration transaction latency',
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Blob storage metrics
blob_upload_latency = Histogram(
    'blob_upload_latency_seconds',
    'Payment screenshot upload latency',
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Notification metrics
notifications = Counter(
    'notifications_total',
    'Confirmation notifications',
    ['result']  # sent, failed
)

# Submission gate metrics
submission_gate_requests = Counter(
    'submission_gate_requests_total',
    'In-flight submission gate decisions',
    ['result']  # admitted, rejected
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration_attempt(outcome: str):
    """Record registration outcome: success, invalid, conflict, error"""
    registration_attempts.labels(outcome=outcome).inc()


def record_notification(sent: bool):
    result = "sent" if sent else "failed"
    notifications.labels(result=result).inc()


def record_gate_decision(admitted: bool):
    result = "admitted" if admitted else "rejected"
    submission_gate_requests.labels(result=result).inc()
