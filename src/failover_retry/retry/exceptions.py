"""
Failover retry exceptions and failure classification.

The engine sorts every failure raised by an action into one of these
buckets, in this order:

1. FATAL_ERRORS: propagated immediately, the address is not rescheduled
2. CONNECT_ERRORS: always retried, grow the address's adaptive timeout
3. Anything else: handed to the action's registered retry predicates
"""

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from failover_retry.retry.metadata import InvocationSummary


FATAL_ERRORS: tuple[type[BaseException], ...] = (
    MemoryError,
    RecursionError,
    SystemError,
)

CONNECT_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.ConnectError,
    httpx.TimeoutException,
)


class FailoverRetryError(Exception):
    """Base exception for all failover retry errors."""


class ResolutionError(FailoverRetryError):
    """
    Raised when an endpoint host cannot be resolved to any address.

    The scheduling queue catches this and reschedules the resolution task
    with backoff, so it never escapes an invocation.
    """

    def __init__(self, host: str, reason: str = "") -> None:
        self.host = host
        self.reason = reason
        message = f"Unable to resolve host {host!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RetryBudgetExhausted(FailoverRetryError):
    """
    Raised when neither a success nor a "not found" answer was obtained
    before the attempt ceiling or the deadline was reached.

    Attributes:
        description: Human-readable description of the invocation
        summary: Attempt count and elapsed time of the invocation
    """

    def __init__(self, description: str, summary: "InvocationSummary") -> None:
        self.description = description
        self.summary = summary

        super().__init__(
            f"Stopping retry attempts for <<{description}>> after "
            f"{summary.attempts} iterations and {summary.elapsed_seconds * 1000:.0f}ms"
        )

    @property
    def attempts(self) -> int:
        return self.summary.attempts

    @property
    def elapsed_seconds(self) -> float:
        return self.summary.elapsed_seconds
