"""Prometheus metrics for the failover retry scheduler.

Alert rules worth configuring:
- retry_invocations_total{outcome="exhausted"} (all servers unreachable)
- address_resolution_failures_total (DNS trouble)
- attempt_latency_seconds (key servers getting slow)
"""

from prometheus_client import Counter, Histogram

from failover_retry.config import settings

# === Attempt Metrics ===

retry_attempts_total = Counter(
    "failover_retry_attempts_total",
    "Total action attempts by outcome",
    ["outcome"],
)
"""
Attempt counter by outcome.

Labels:
- outcome: success, retry_signal, not_found, connect_failure, retried,
  declined, fatal
"""

attempt_latency_seconds = Histogram(
    "failover_retry_attempt_latency_seconds",
    "Wall-clock duration of a single action attempt",
    ["outcome"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 10.0, 30.0, 120.0],
)

# === Invocation Metrics ===

retry_invocations_total = Counter(
    "failover_retry_invocations_total",
    "Total invocations by terminal outcome",
    ["outcome"],
)
"""
Invocation counter by terminal outcome.

Labels:
- outcome: success, not_found, exhausted, failed

Alert thresholds:
- WARN: exhausted rate > 5% of invocations
"""

# === DNS Metrics ===

address_resolution_failures_total = Counter(
    "failover_retry_address_resolution_failures_total",
    "Endpoint host resolution failures",
)


def record_attempt(outcome: str, duration_seconds: float) -> None:
    if not settings.PROMETHEUS_ENABLED:
        return
    retry_attempts_total.labels(outcome=outcome).inc()
    attempt_latency_seconds.labels(outcome=outcome).observe(duration_seconds)


def record_invocation(outcome: str) -> None:
    if not settings.PROMETHEUS_ENABLED:
        return
    retry_invocations_total.labels(outcome=outcome).inc()


def record_resolution_failure() -> None:
    if not settings.PROMETHEUS_ENABLED:
        return
    address_resolution_failures_total.inc()
