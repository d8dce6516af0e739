"""
Time-ordered scheduling queue for resolution and attempt tasks.

The queue owns every live task of one FailoverRetry. The engine borrows
one ATTEMPT task at a time, runs the action against it and puts it back
after rescheduling. RESOLUTION tasks never leave the queue through
borrow(): they are resolved in place into ATTEMPT tasks.

Callers of borrow() sleeping until the head task is due are woken when
put() inserts a task that becomes the new head.
"""

import asyncio
import heapq
import itertools
import random
from typing import Callable, Iterable

import structlog

from failover_retry.monitoring.metrics import record_resolution_failure
from failover_retry.retry.clock import Clock, SystemClock
from failover_retry.retry.exceptions import ResolutionError
from failover_retry.retry.resolver import Resolver, SystemResolver, host_of
from failover_retry.retry.tasks import ScheduledTask, TaskKind

logger = structlog.get_logger(__name__)

Shuffle = Callable[[list], None]


class SchedulingQueue:
    """
    Priority queue of ScheduledTask ordered by (due_time, latency).

    Attributes:
        resolver: Resolver used for RESOLUTION tasks
        clock: Time source for due times and waiting
        shuffle: In-place shuffle applied to resolved addresses
        report_threshold: Waits longer than this are logged, in seconds
    """

    def __init__(
        self,
        tasks: Iterable[ScheduledTask] = (),
        resolver: Resolver | None = None,
        clock: Clock | None = None,
        shuffle: Shuffle = random.shuffle,
        report_threshold: float = 1.0,
    ):
        self.resolver = resolver or SystemResolver()
        self.clock = clock or SystemClock()
        self.shuffle = shuffle
        self.report_threshold = report_threshold

        self._heap: list[tuple[float, float, int, ScheduledTask]] = []
        self._counter = itertools.count()
        self._head_changed = asyncio.Event()

        for task in tasks:
            self._push(task)

    def __len__(self) -> int:
        return len(self._heap)

    def _push(self, task: ScheduledTask) -> None:
        due_time, latency = task.sort_key
        heapq.heappush(self._heap, (due_time, latency, next(self._counter), task))

    def put(self, task: ScheduledTask) -> None:
        """Insert (or return) a task, waking borrowers if it is now first."""
        self._push(task)
        if self._heap[0][3] is task:
            self._head_changed.set()

    def peek(self) -> ScheduledTask | None:
        """Return the earliest task without removing it."""
        return self._heap[0][3] if self._heap else None

    def tasks(self) -> list[ScheduledTask]:
        """Snapshot of queued tasks in scheduling order."""
        return [entry[3] for entry in sorted(self._heap)]

    def _pop_due(self, now: float) -> ScheduledTask | None:
        # No await between check and pop: atomic on the event loop
        if self._heap and self._heap[0][3].due_time <= now:
            return heapq.heappop(self._heap)[3]
        return None

    async def borrow(self, deadline: float) -> ScheduledTask | None:
        """
        Take the earliest ATTEMPT task once it is due.

        Resolves RESOLUTION tasks on the way. Returns None when the
        deadline passes before any address becomes available.
        """
        while True:
            now = self.clock.monotonic()
            task = self._pop_due(now)

            if task is None:
                remaining = deadline - now
                if remaining <= 0:
                    return None

                head = self.peek()
                if head is None:
                    wait = remaining
                else:
                    wait = head.delay(now)
                    if wait > self.report_threshold:
                        logger.info(
                            "Next attempt requires a delay",
                            delay_seconds=round(wait, 3),
                            task=repr(head),
                        )
                    wait = min(wait, remaining)
                await self._wait(wait)
                continue

            if task.kind is TaskKind.ATTEMPT:
                return task
            elif task.kind is TaskKind.RESOLUTION:
                await self._resolve(task)
            else:
                raise TypeError(f"Unsupported task in scheduling queue: {task!r}")

    async def _wait(self, seconds: float) -> None:
        """Sleep up to ``seconds``, returning early if the head task changes."""
        self._head_changed.clear()
        sleeper = asyncio.ensure_future(self.clock.sleep(seconds))
        waker = asyncio.ensure_future(self._head_changed.wait())
        try:
            await asyncio.wait({sleeper, waker}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waker.cancel()
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()

    async def _resolve(self, task: ScheduledTask) -> None:
        host = host_of(task.uri)
        try:
            addresses = await self.resolver.resolve(host)
            if not addresses:
                raise ResolutionError(host, "no addresses returned")
        except ResolutionError as e:
            task.reschedule(False, self.clock.monotonic())
            record_resolution_failure()
            logger.info(
                "Host resolution failed, will retry later",
                uri=task.uri,
                error=str(e),
                retry_in_seconds=round(task.delay(self.clock.monotonic()), 3),
            )
            self.put(task)
            return
        except BaseException:
            # Cancelled mid-lookup: the endpoint stays in the pool
            self.put(task)
            raise

        self.shuffle(addresses)
        for attempt_task in task.spawn_attempts(addresses):
            self.put(attempt_task)
        logger.debug("Resolved endpoint", uri=task.uri, addresses=addresses)
