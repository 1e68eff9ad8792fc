"""Prometheus metrics for admission control and authorization."""

from prometheus_client import Counter, Histogram

admission_decisions_total = Counter(
    "admission_decisions_total",
    "Reservation admission decisions",
    ["outcome", "reason"],
)

admission_lock_wait_ms = Histogram(
    "admission_lock_wait_ms",
    "Time spent waiting for the (tenant, date) admission lock in milliseconds",
    buckets=[1, 5, 10, 50, 100, 250, 500, 1000, 2500, 5000],
)

authorization_denials_total = Counter(
    "authorization_denials_total",
    "Operations rejected by the role authorizer",
    ["operation"],
)


class PrometheusAdmissionMetrics:
    """Prometheus-based admission metrics implementation."""

    def record_decision(self, outcome: str, reason: str) -> None:
        """Count one admission decision."""
        admission_decisions_total.labels(outcome=outcome, reason=reason).inc()

    def record_lock_wait(self, wait_ms: float) -> None:
        """Record how long a request waited for its admission lock."""
        admission_lock_wait_ms.observe(wait_ms)

    def inc_denial(self, operation: str) -> None:
        """Count an authorization rejection."""
        authorization_denials_total.labels(operation=operation).inc()
