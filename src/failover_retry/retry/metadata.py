"""
Invocation metadata tracking.

This module defines the InvocationSummary dataclass that captures how an
invocation ended, for logging and for RetryBudgetExhausted.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class InvocationSummary:
    """
    Outcome of one FailoverRetry.invoke call.

    Attributes:
        description: Caller-supplied description of the action
        attempts: Attempts started (borrowing an address counts as starting)
        elapsed_seconds: Time from invocation start to the final outcome
        saw_not_found: Whether any attempt reported "not found"
    """

    description: str
    attempts: int
    elapsed_seconds: float
    saw_not_found: bool = False

    def __post_init__(self) -> None:
        """Validate summary invariants."""
        if self.attempts < 0:
            raise ValueError("attempts must be >= 0")

        if self.elapsed_seconds < 0:
            raise ValueError("elapsed_seconds must be >= 0")
