"""Prometheus metrics for the failover retry scheduler."""

from failover_retry.monitoring.metrics import (
    address_resolution_failures_total,
    attempt_latency_seconds,
    record_attempt,
    record_invocation,
    record_resolution_failure,
    retry_attempts_total,
    retry_invocations_total,
)

__all__ = [
    "retry_attempts_total",
    "retry_invocations_total",
    "address_resolution_failures_total",
    "attempt_latency_seconds",
    "record_attempt",
    "record_invocation",
    "record_resolution_failure",
]
