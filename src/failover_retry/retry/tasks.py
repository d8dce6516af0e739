"""
Scheduled tasks held by the scheduling queue.

A task is either a RESOLUTION task (turn an endpoint URI into addresses)
or an ATTEMPT task (run the action against one resolved address). Both
kinds share the same due-time/backoff bookkeeping and live in one queue,
ordered by due time and then by last observed latency.
"""

import enum
from dataclasses import dataclass, field

from failover_retry.retry.backoff import BackoffPolicy

DEFAULT_ATTEMPT_TIMEOUT = 0.5  # seconds
MAX_ATTEMPT_TIMEOUT = 120.0  # seconds
TIMEOUT_GROWTH_FACTOR = 1.5

# Due time of a task that may run right away
IMMEDIATELY = 0.0


class TaskKind(str, enum.Enum):
    RESOLUTION = "resolution"
    ATTEMPT = "attempt"


@dataclass(eq=False)
class ScheduledTask:
    """
    One entry of the scheduling queue.

    Attributes:
        kind: RESOLUTION or ATTEMPT
        uri: Endpoint URI this task belongs to
        policy: Backoff bounds, shared by all tasks of one FailoverRetry
        due_time: Monotonic instant after which the task may run
        address: Resolved network address (ATTEMPT tasks only)
        next_delay: Delay applied on the next failure
        latency: Last latency reported by a successful attempt, in seconds
        timeout: Adaptive timeout the action should use for this address
        max_timeout: Upper bound for ``timeout``
    """

    kind: TaskKind
    uri: str
    policy: BackoffPolicy
    due_time: float = IMMEDIATELY
    address: str | None = None
    next_delay: float = field(init=False)
    latency: float = 0.0
    timeout: float = DEFAULT_ATTEMPT_TIMEOUT
    max_timeout: float = MAX_ATTEMPT_TIMEOUT

    def __post_init__(self) -> None:
        self.next_delay = self.policy.initial_delay
        if self.kind is TaskKind.ATTEMPT and self.address is None:
            raise ValueError("ATTEMPT tasks require an address")

    @classmethod
    def resolution(
        cls, uri: str, policy: BackoffPolicy, due_time: float = IMMEDIATELY, **kwargs
    ) -> "ScheduledTask":
        return cls(TaskKind.RESOLUTION, uri, policy, due_time, **kwargs)

    @classmethod
    def attempt(
        cls,
        uri: str,
        address: str,
        policy: BackoffPolicy,
        due_time: float = IMMEDIATELY,
        **kwargs,
    ) -> "ScheduledTask":
        return cls(TaskKind.ATTEMPT, uri, policy, due_time, address=address, **kwargs)

    @property
    def sort_key(self) -> tuple[float, float]:
        return (self.due_time, self.latency)

    def delay(self, now: float) -> float:
        """Seconds until the task becomes due (negative when overdue)."""
        return self.due_time - now

    def reschedule(self, success: bool, now: float) -> None:
        """Update due time and backoff after the task ran."""
        if success:
            self.due_time = IMMEDIATELY
            self.next_delay = self.policy.initial_delay
        else:
            self.due_time = now + max(self.next_delay, self.policy.initial_delay)
            self.next_delay = self.policy.next_after(self.next_delay)

    def grow_timeout(self) -> float:
        """Widen the adaptive timeout after a connect or timeout failure."""
        self.timeout = min(self.max_timeout, self.timeout * TIMEOUT_GROWTH_FACTOR)
        return self.timeout

    def spawn_attempts(self, addresses: list[str]) -> list["ScheduledTask"]:
        """Build one ATTEMPT task per address, due when this task was due."""
        if self.kind is not TaskKind.RESOLUTION:
            raise TypeError(f"Only RESOLUTION tasks spawn attempts, got {self!r}")
        return [
            ScheduledTask.attempt(
                self.uri,
                address,
                self.policy,
                self.due_time,
                timeout=self.timeout,
                max_timeout=self.max_timeout,
            )
            for address in addresses
        ]

    def __repr__(self) -> str:
        if self.kind is TaskKind.ATTEMPT:
            return f"AttemptTask(address={self.address}, uri={self.uri})"
        return f"ResolutionTask(uri={self.uri})"
