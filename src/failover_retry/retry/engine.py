"""
Failover retry engine.

FailoverRetry drives a caller-supplied action against a pool of
redundant endpoints until it succeeds, the attempt ceiling is reached or
the deadline passes.

Outcome classification (first match wins):
    1. Fatal error (MemoryError, ...): propagated, address not rescheduled
    2. RetrySignal result: retried; a 404 sets the sticky "not found" flag
    3. Connect/timeout error: retried; the address timeout grows x1.5
    4. Other error: retried unless a registered predicate declines it
    5. Plain result: success, returned to the caller

When attempts run out, the invocation returns None if any server said
"not found", otherwise it raises RetryBudgetExhausted.

A FailoverRetry instance owns its scheduling queue for its whole life:
backoff state, adaptive timeouts and latencies carry over from one
invoke() to the next. Keep one instance per endpoint pool.

Usage:
    retry = FailoverRetry(endpoints=["https://keys.openpgp.org"])
    key = await retry.invoke("Fetch key 0xCAFE", fetch_action)
"""

import random
from typing import Awaitable, Callable, Iterable, TypeVar

import structlog

from failover_retry.config import Settings
from failover_retry.monitoring.metrics import record_attempt, record_invocation
from failover_retry.retry.backoff import BackoffPolicy
from failover_retry.retry.clock import Clock, SystemClock
from failover_retry.retry.context import AttemptContext, RetrySignal
from failover_retry.retry.exceptions import (
    CONNECT_ERRORS,
    FATAL_ERRORS,
    RetryBudgetExhausted,
)
from failover_retry.retry.metadata import InvocationSummary
from failover_retry.retry.queue import SchedulingQueue, Shuffle
from failover_retry.retry.resolver import Resolver, host_of
from failover_retry.retry.tasks import (
    DEFAULT_ATTEMPT_TIMEOUT,
    MAX_ATTEMPT_TIMEOUT,
    ScheduledTask,
)

T = TypeVar("T")

Action = Callable[[AttemptContext], Awaitable[T | RetrySignal]]

DEFAULT_ENDPOINTS = (
    "https://keys.openpgp.org",
    "https://keyserver.ubuntu.com",
)

logger = structlog.get_logger(__name__)


class FailoverRetry:
    """
    Retry scheduler over a pool of redundant endpoints.

    Attributes:
        endpoints: Endpoint URIs, in the (shuffled) order they were seeded
        key_resolution_timeout: Deadline of one invoke() call, in seconds
        backoff_policy: Backoff bounds shared by every address
        retry_count: Attempt ceiling of one invoke() call
        min_loggable_timeout: Connect/timeout failures slower than this
            are logged as warnings, faster ones at debug level
        queue: Scheduling queue holding every resolution/attempt task
    """

    def __init__(
        self,
        endpoints: Iterable[str] = DEFAULT_ENDPOINTS,
        key_resolution_timeout: float = 40.0,
        backoff_policy: BackoffPolicy | None = None,
        retry_count: int = 30,
        min_loggable_timeout: float = 4.0,
        initial_attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
        max_attempt_timeout: float = MAX_ATTEMPT_TIMEOUT,
        slow_task_report_threshold: float = 1.0,
        resolver: Resolver | None = None,
        clock: Clock | None = None,
        shuffle: Shuffle = random.shuffle,
    ):
        """
        Initialize the scheduler and seed one resolution task per endpoint.

        Args:
            endpoints: Endpoint URIs; each must name a host
            key_resolution_timeout: Deadline of one invoke() call, in seconds
            backoff_policy: Per-address backoff bounds (default 0.1s to 10s)
            retry_count: Attempt ceiling of one invoke() call
            min_loggable_timeout: Threshold above which connect/timeout
                failures are logged as warnings, in seconds
            initial_attempt_timeout: Starting per-address attempt timeout
            max_attempt_timeout: Cap of the adaptive attempt timeout
            slow_task_report_threshold: Waits for a due address longer than
                this are logged, in seconds
            resolver: Host resolver (default: system DNS)
            clock: Time source (default: monotonic system clock)
            shuffle: In-place shuffle for endpoints and resolved addresses

        Raises:
            ValueError: On an empty endpoint list, an endpoint without a
                host, retry_count < 1 or a non-positive timeout
        """
        endpoints = list(endpoints)
        if not endpoints:
            raise ValueError("At least one endpoint is required")
        for uri in endpoints:
            host_of(uri)
        if retry_count < 1:
            raise ValueError("retry_count must be >= 1")
        if key_resolution_timeout <= 0:
            raise ValueError("key_resolution_timeout must be > 0")

        self.key_resolution_timeout = key_resolution_timeout
        self.backoff_policy = backoff_policy or BackoffPolicy()
        self.retry_count = retry_count
        self.min_loggable_timeout = min_loggable_timeout
        self.clock = clock or SystemClock()

        shuffle(endpoints)
        self.endpoints = endpoints
        self.queue = SchedulingQueue(
            (
                ScheduledTask.resolution(
                    uri,
                    self.backoff_policy,
                    timeout=initial_attempt_timeout,
                    max_timeout=max_attempt_timeout,
                )
                for uri in endpoints
            ),
            resolver=resolver,
            clock=self.clock,
            shuffle=shuffle,
            report_threshold=slow_task_report_threshold,
        )

        logger.debug(
            "FailoverRetry initialized",
            endpoints=endpoints,
            key_resolution_timeout=key_resolution_timeout,
            retry_count=retry_count,
            initial_delay=self.backoff_policy.initial_delay,
            maximum_delay=self.backoff_policy.maximum_delay,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "FailoverRetry":
        """Build an instance from application settings."""
        options = dict(
            endpoints=settings.KEYSERVER_URIS,
            key_resolution_timeout=settings.KEY_RESOLUTION_TIMEOUT,
            backoff_policy=BackoffPolicy(
                initial_delay=settings.RETRY_INITIAL_DELAY,
                maximum_delay=settings.RETRY_MAXIMUM_DELAY,
            ),
            retry_count=settings.RETRY_COUNT,
            min_loggable_timeout=settings.MIN_LOGGABLE_TIMEOUT,
            initial_attempt_timeout=settings.INITIAL_ATTEMPT_TIMEOUT,
            max_attempt_timeout=settings.MAX_ATTEMPT_TIMEOUT,
            slow_task_report_threshold=settings.SLOW_TASK_REPORT_THRESHOLD,
        )
        options.update(kwargs)
        return cls(**options)

    async def invoke(self, description: str, action: Action) -> T | None:
        """
        Run ``action`` against the endpoint pool until it succeeds.

        Args:
            description: Human-readable description used in logs and errors
            action: Async callable receiving an AttemptContext; returns the
                result, or a RetrySignal built with ``ctx.retry(...)``

        Returns:
            The action's result, or None when servers reported "not found"
            and no attempt succeeded

        Raises:
            RetryBudgetExhausted: Attempts or deadline exhausted without a
                success or a "not found" answer
            Exception: Whatever the action raised when a retry predicate
                declined it, or a fatal error
        """
        start_time = self.clock.monotonic()
        deadline = start_time + self.key_resolution_timeout
        attempt = 0
        saw_not_found = False

        while attempt < self.retry_count:
            attempt += 1
            attempt_start = self.clock.monotonic()
            task = await self.queue.borrow(deadline)
            if task is None:
                break

            context = AttemptContext(
                attempt=attempt,
                retry_count=self.retry_count,
                uri=task.uri,
                address=task.address,
                timeout=task.timeout,
            )
            log = logger.bind(
                description=description,
                attempt=attempt,
                retry_count=self.retry_count,
                address=task.address,
                uri=task.uri,
            )
            log.info("Attempting action")

            success = False
            try:
                result = await action(context)
            except FATAL_ERRORS:
                self._record(attempt_start, "fatal")
                record_invocation("failed")
                raise
            except CONNECT_ERRORS as e:
                self._on_connect_failure(task, e, attempt_start, log)
                task.reschedule(False, self.clock.monotonic())
            except Exception as e:
                task.reschedule(False, self.clock.monotonic())
                if not context.should_retry(e):
                    self._record(attempt_start, "declined")
                    record_invocation("failed")
                    log.debug("Retry declined", error_type=type(e).__name__)
                    raise
                self._record(attempt_start, "retried")
                log.info(
                    "Retrying after failure",
                    error_type=type(e).__name__,
                    error=str(e),
                )
            else:
                if isinstance(result, RetrySignal):
                    if result.is_not_found:
                        saw_not_found = True
                    self._record(
                        attempt_start, "not_found" if result.is_not_found else "retry_signal"
                    )
                    log.warning(
                        "Retrying action",
                        reason=result.reason,
                        status_code=result.status_code,
                    )
                else:
                    success = True
                    task.latency = context.latency
                    self._record(attempt_start, "success")
                task.reschedule(success, self.clock.monotonic())
            finally:
                # Fatal errors and cancellation return the task unchanged
                self.queue.put(task)

            if success:
                record_invocation("success")
                return result

        summary = InvocationSummary(
            description=description,
            attempts=attempt,
            elapsed_seconds=max(self.clock.monotonic() - start_time, 0.0),
            saw_not_found=saw_not_found,
        )

        if saw_not_found:
            logger.warning(
                "Assuming 404 NOT_FOUND",
                description=description,
                attempts=summary.attempts,
                elapsed_ms=int(summary.elapsed_seconds * 1000),
            )
            record_invocation("not_found")
            return None

        logger.error(
            "Retry budget exhausted",
            description=description,
            attempts=summary.attempts,
            elapsed_ms=int(summary.elapsed_seconds * 1000),
        )
        record_invocation("exhausted")
        raise RetryBudgetExhausted(description, summary)

    def _on_connect_failure(
        self,
        task: ScheduledTask,
        error: BaseException,
        attempt_start: float,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        attempt_duration = self.clock.monotonic() - attempt_start
        previous_timeout = task.timeout
        task.grow_timeout()
        self._record(attempt_start, "connect_failure")

        fields = dict(
            error_type=type(error).__name__,
            timeout_seconds=previous_timeout,
            next_timeout_seconds=task.timeout,
            attempt_duration_ms=int(attempt_duration * 1000),
        )
        if attempt_duration >= self.min_loggable_timeout:
            log.warning("Connection failed", **fields)
        else:
            log.debug("Connection failed", **fields)

    def _record(self, attempt_start: float, outcome: str) -> None:
        record_attempt(outcome, max(self.clock.monotonic() - attempt_start, 0.0))
