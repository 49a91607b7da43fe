"""
Prometheus metrics for the gateway.

Tracks:
- IPN requests by outcome
- Best-effort side effects by step and status
- Form relay requests by endpoint and outcome
- IPN processing duration
"""
from prometheus_client import Counter, Histogram

ipn_requests_total = Counter(
    "ipn_requests_total",
    "Total number of IPN requests",
    ["outcome"],  # processed, invalid_signature, invalid_format, validation_error, internal_error
)

ipn_processing_duration_seconds = Histogram(
    "ipn_processing_duration_seconds",
    "IPN processing duration in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 10.0),
)

side_effects_total = Counter(
    "side_effects_total",
    "Best-effort side effects by step and status",
    ["step", "status"],  # step: notification, archive, success_hook
)

form_requests_total = Counter(
    "form_requests_total",
    "Total form relay requests",
    ["endpoint", "outcome"],
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_ipn(outcome: str) -> None:
        """Record an IPN request outcome."""
        ipn_requests_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_ipn_duration(duration_seconds: float) -> None:
        ipn_processing_duration_seconds.observe(duration_seconds)

    @staticmethod
    def record_side_effect(step: str, status: str) -> None:
        """Record a best-effort side effect result."""
        side_effects_total.labels(step=step, status=status).inc()

    @staticmethod
    def record_form_request(endpoint: str, outcome: str) -> None:
        form_requests_total.labels(endpoint=endpoint, outcome=outcome).inc()


metrics = MetricsCollector()
