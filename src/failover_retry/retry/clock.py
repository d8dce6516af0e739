"""Clock abstraction for deadline and backoff logic.

Production code uses SystemClock (the default). Tests inject a clock
whose sleep() advances virtual time instead of waiting.
"""

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Abstract clock used by the scheduling queue and the engine."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``."""
        ...


class SystemClock:
    """Production clock using time.monotonic() and asyncio.sleep()."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(seconds, 0.0))
