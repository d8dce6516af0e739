"""
Backoff policy shared by every scheduled task of one FailoverRetry.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Bounds of the exponential backoff sequence, in seconds.

    The first failure delays an address by ``initial_delay``; each
    further consecutive failure doubles the delay up to ``maximum_delay``.
    A success resets the sequence.
    """

    initial_delay: float = 0.1
    maximum_delay: float = 10.0

    def __post_init__(self) -> None:
        if self.initial_delay <= 0:
            raise ValueError("initial_delay must be > 0")
        if self.maximum_delay < self.initial_delay:
            raise ValueError(
                f"maximum_delay ({self.maximum_delay}) must be >= "
                f"initial_delay ({self.initial_delay})"
            )

    def next_after(self, delay: float) -> float:
        """Return the delay that follows ``delay`` after another failure."""
        return min(self.maximum_delay, delay * 2)
