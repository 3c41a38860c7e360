"""Tests for the push retry controller."""

import logging
import threading
from unittest.mock import MagicMock

import pytest

from streak_booster.process import NonZeroExitError, ProcessLaunchError
from streak_booster.retry import RetryPolicy, push_with_retries

PUSH_FAILURE = NonZeroExitError(["git", "push"], 1)


def test_push_succeeds_first_time() -> None:
    """Verifies that a successful push is attempted exactly once."""
    push = MagicMock()

    assert push_with_retries(push, RetryPolicy(max_retries=2, delay=0)) is True
    assert push.call_count == 1


def test_push_always_failing_uses_every_attempt(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Verifies that max_retries=N yields exactly N+1 attempts before giving up."""
    push = MagicMock(side_effect=PUSH_FAILURE)

    assert push_with_retries(push, RetryPolicy(max_retries=2, delay=0)) is False
    assert push.call_count == 3
    assert "Git push failed (Attempt 3/3)" in caplog.text


def test_push_succeeds_after_failures() -> None:
    """Verifies that retries stop as soon as an attempt succeeds."""
    push = MagicMock(side_effect=[PUSH_FAILURE, PUSH_FAILURE, None])

    assert push_with_retries(push, RetryPolicy(max_retries=5, delay=0)) is True
    assert push.call_count == 3


def test_zero_retries_means_single_attempt() -> None:
    """Verifies that max_retries=0 performs one attempt and never waits."""
    push = MagicMock(side_effect=PUSH_FAILURE)
    stop_event = MagicMock()

    result = push_with_retries(push, RetryPolicy(max_retries=0, delay=60), stop_event)

    assert result is False
    assert push.call_count == 1
    stop_event.wait.assert_not_called()


def test_waits_fixed_delay_between_attempts() -> None:
    """Verifies that the same delay is used before every retry and not after the last."""
    push = MagicMock(side_effect=PUSH_FAILURE)
    stop_event = MagicMock()
    stop_event.wait.return_value = False

    push_with_retries(push, RetryPolicy(max_retries=2, delay=60), stop_event)

    assert [c.args for c in stop_event.wait.call_args_list] == [(60,), (60,)]


def test_interrupted_wait_aborts_retries(caplog: pytest.LogCaptureFixture) -> None:
    """Verifies that a shutdown during the wait stops the loop and keeps the signal."""
    caplog.set_level(logging.INFO)
    push = MagicMock(side_effect=PUSH_FAILURE)
    stop_event = threading.Event()
    stop_event.set()

    result = push_with_retries(push, RetryPolicy(max_retries=5, delay=60), stop_event)

    assert result is False
    assert push.call_count == 1
    assert stop_event.is_set()
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Retry interrupted" in errors[0].getMessage()


def test_interrupt_from_another_thread_wakes_wait() -> None:
    """Verifies that a long delay ends promptly when shutdown is requested."""
    push = MagicMock(side_effect=PUSH_FAILURE)
    stop_event = threading.Event()
    timer = threading.Timer(0.05, stop_event.set)
    timer.start()
    try:
        result = push_with_retries(
            push, RetryPolicy(max_retries=3, delay=30), stop_event
        )
    finally:
        timer.cancel()

    assert result is False
    assert push.call_count == 1


def test_launch_failure_is_not_retried() -> None:
    """Verifies that a push command that cannot start propagates immediately."""
    push = MagicMock(side_effect=ProcessLaunchError(["git", "push"], "No such file"))

    with pytest.raises(ProcessLaunchError):
        push_with_retries(push, RetryPolicy(max_retries=2, delay=0))
    assert push.call_count == 1


@pytest.mark.parametrize(
    ("max_retries", "delay"),
    [(-1, 0), (0, -1.0)],
)
def test_retry_policy_rejects_negative_values(max_retries: int, delay: float) -> None:
    """Verifies that a policy cannot be built with negative bounds."""
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=max_retries, delay=delay)


def test_retry_policy_defaults() -> None:
    """Verifies the default policy: two retries, one minute apart."""
    policy = RetryPolicy()

    assert policy.max_retries == 2
    assert policy.delay == 60
    assert policy.attempts == 3
