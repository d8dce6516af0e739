"""
Per-attempt contract between the engine and the caller's action.

An action receives a fresh AttemptContext for every attempt. It uses the
context to learn where to connect (``uri``, ``address``, ``timeout``) and
to tell the engine how to treat failures:

- ``retry_if(predicate)`` registers a classifier for unexpected errors
- ``return ctx.retry(reason, status_code)`` asks for a retry explicitly
- ``ctx.latency = ...`` reports how fast the address answered
"""

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Callable

RetryPredicate = Callable[[Exception], bool | None]


@dataclass(frozen=True)
class RetrySignal:
    """
    Result value meaning "retry this attempt".

    Returned by an action instead of a result. Being a value rather than an
    exception, it cannot be swallowed by unrelated ``except`` clauses.

    Attributes:
        reason: Human-readable reason, logged by the engine
        status_code: Protocol status behind the retry (e.g. HTTP 404)
    """

    reason: str
    status_code: int | None = None

    @property
    def is_not_found(self) -> bool:
        return self.status_code == HTTPStatus.NOT_FOUND


@dataclass
class AttemptContext:
    """
    Everything an action needs for exactly one attempt.

    Attributes:
        attempt: Attempt number within the invocation (1-indexed)
        retry_count: Attempt ceiling of the invocation
        uri: Endpoint URI being contacted
        address: Resolved network address to connect to
        timeout: Adaptive timeout for this address, in seconds
        latency: Set by the action on success; orders equally-due addresses
    """

    attempt: int
    retry_count: int
    uri: str
    address: str
    timeout: float
    latency: float = 0.0
    _predicates: list[RetryPredicate] = field(default_factory=list, repr=False)

    def retry_if(self, predicate: RetryPredicate) -> None:
        """
        Register a retry classifier.

        Predicates run in registration order; the first one returning
        True or False decides, None means "no opinion".
        """
        self._predicates.append(predicate)

    def retry(self, reason: str, status_code: int | None = None) -> RetrySignal:
        """Build the signal an action returns to request a retry."""
        return RetrySignal(reason, status_code)

    def should_retry(self, error: Exception) -> bool:
        for predicate in self._predicates:
            decision = predicate(error)
            if decision is not None:
                return decision
        return True
