"""
Unit tests for BackoffPolicy and task rescheduling.

Covers the exponential backoff recurrence (floor, doubling, ceiling,
reset on success) and the adaptive per-address timeout.
"""

from dataclasses import FrozenInstanceError

import pytest

from failover_retry.retry.backoff import BackoffPolicy
from failover_retry.retry.tasks import IMMEDIATELY, ScheduledTask


# ============================================================================
# BackoffPolicy
# ============================================================================


def test_backoff_policy_defaults():
    """Test default bounds are 100ms and 10s."""
    policy = BackoffPolicy()

    assert policy.initial_delay == 0.1
    assert policy.maximum_delay == 10.0


@pytest.mark.parametrize("initial_delay", [0.0, -1.0])
def test_backoff_policy_rejects_non_positive_initial_delay(initial_delay):
    """Test initial_delay must be strictly positive."""
    with pytest.raises(ValueError, match="initial_delay"):
        BackoffPolicy(initial_delay=initial_delay, maximum_delay=1.0)


def test_backoff_policy_rejects_maximum_below_initial():
    """Test maximum_delay may not be smaller than initial_delay."""
    with pytest.raises(ValueError, match="maximum_delay"):
        BackoffPolicy(initial_delay=2.0, maximum_delay=1.0)


def test_backoff_policy_is_immutable():
    """Test the policy cannot be mutated once shared across tasks."""
    policy = BackoffPolicy()

    with pytest.raises(FrozenInstanceError):
        policy.initial_delay = 1.0


def test_next_after_doubles_and_caps():
    """Test next_after doubles the delay without exceeding the maximum."""
    policy = BackoffPolicy(initial_delay=1.0, maximum_delay=5.0)

    assert policy.next_after(1.0) == 2.0
    assert policy.next_after(2.0) == 4.0
    assert policy.next_after(4.0) == 5.0
    assert policy.next_after(5.0) == 5.0


# ============================================================================
# Reschedule Recurrence
# ============================================================================


def test_failure_pushes_due_time_by_current_delay():
    """Test a failure delays the task by next_delay and doubles next_delay."""
    task = ScheduledTask.attempt(
        "https://a.example", "10.0.0.1", BackoffPolicy(initial_delay=0.5, maximum_delay=8.0)
    )

    task.reschedule(False, now=100.0)
    assert task.due_time == pytest.approx(100.5)
    assert task.next_delay == 1.0

    task.reschedule(False, now=200.0)
    assert task.due_time == pytest.approx(201.0)
    assert task.next_delay == 2.0


def test_next_delay_is_monotonic_and_capped():
    """Test next_delay never shrinks across failures and never exceeds the maximum."""
    policy = BackoffPolicy(initial_delay=0.1, maximum_delay=1.0)
    task = ScheduledTask.attempt("https://a.example", "10.0.0.1", policy)

    delays = [task.next_delay]
    for now in range(20):
        task.reschedule(False, now=float(now))
        delays.append(task.next_delay)

    assert delays == sorted(delays)
    assert max(delays) == policy.maximum_delay
    assert delays[-1] == policy.maximum_delay


def test_success_resets_backoff():
    """Test success makes the task immediately eligible with the initial delay."""
    policy = BackoffPolicy(initial_delay=0.1, maximum_delay=1.0)
    task = ScheduledTask.attempt("https://a.example", "10.0.0.1", policy)
    for now in range(5):
        task.reschedule(False, now=float(now))
    assert task.next_delay > policy.initial_delay

    task.reschedule(True, now=50.0)

    assert task.due_time == IMMEDIATELY
    assert task.next_delay == policy.initial_delay


def test_failure_delay_has_initial_floor():
    """Test the failure delay is never below initial_delay."""
    policy = BackoffPolicy(initial_delay=0.3, maximum_delay=1.0)
    task = ScheduledTask.attempt("https://a.example", "10.0.0.1", policy)
    task.next_delay = 0.01

    task.reschedule(False, now=10.0)

    assert task.due_time == pytest.approx(10.3)


# ============================================================================
# Adaptive Timeout
# ============================================================================


def test_timeout_grows_by_half_and_caps_at_120_seconds():
    """Test the adaptive timeout grows x1.5 per failure up to 120s."""
    task = ScheduledTask.attempt("https://a.example", "10.0.0.1", BackoffPolicy())
    assert task.timeout == 0.5

    assert task.grow_timeout() == pytest.approx(0.75)
    assert task.grow_timeout() == pytest.approx(1.125)

    timeouts = [task.timeout]
    for _ in range(30):
        timeouts.append(task.grow_timeout())

    assert timeouts == sorted(timeouts)
    assert timeouts[-1] == 120.0


def test_timeout_growth_is_independent_of_backoff():
    """Test growing the timeout leaves due time and next delay untouched."""
    task = ScheduledTask.attempt("https://a.example", "10.0.0.1", BackoffPolicy())

    task.grow_timeout()

    assert task.due_time == IMMEDIATELY
    assert task.next_delay == 0.1
