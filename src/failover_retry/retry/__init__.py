"""
Failover retry scheduling.

Resolves endpoint URIs to addresses and retries a caller-supplied action
against them with per-address exponential backoff:

1. **Resolution**: endpoint hosts resolve to shuffled addresses; DNS
   failures back off like any other failure
2. **Attempt**: the action runs against the earliest-due address
3. **Reschedule**: success makes the address immediately eligible again,
   failure pushes it back by the current backoff delay
4. **Exhaustion**: None if servers said "not found", otherwise
   RetryBudgetExhausted

Main Components:
    - FailoverRetry: Orchestrates attempts, deadline and attempt ceiling
    - SchedulingQueue: Due-time ordered queue of resolution/attempt tasks
    - AttemptContext: Per-attempt contract handed to the action
    - RetrySignal: Result value an action returns to request a retry

Usage:
    >>> from failover_retry.retry import FailoverRetry
    >>> retry = FailoverRetry()
    >>> result = await retry.invoke("Fetch key", action)
"""

from failover_retry.retry.backoff import BackoffPolicy
from failover_retry.retry.clock import Clock, SystemClock
from failover_retry.retry.context import AttemptContext, RetryPredicate, RetrySignal
from failover_retry.retry.engine import DEFAULT_ENDPOINTS, FailoverRetry
from failover_retry.retry.exceptions import (
    CONNECT_ERRORS,
    FATAL_ERRORS,
    FailoverRetryError,
    ResolutionError,
    RetryBudgetExhausted,
)
from failover_retry.retry.metadata import InvocationSummary
from failover_retry.retry.queue import SchedulingQueue
from failover_retry.retry.resolver import Resolver, SystemResolver
from failover_retry.retry.tasks import ScheduledTask, TaskKind

__all__ = [
    "AttemptContext",
    "BackoffPolicy",
    "Clock",
    "CONNECT_ERRORS",
    "DEFAULT_ENDPOINTS",
    "FATAL_ERRORS",
    "FailoverRetry",
    "FailoverRetryError",
    "InvocationSummary",
    "ResolutionError",
    "Resolver",
    "RetryBudgetExhausted",
    "RetryPredicate",
    "RetrySignal",
    "ScheduledTask",
    "SchedulingQueue",
    "SystemClock",
    "SystemResolver",
    "TaskKind",
]
