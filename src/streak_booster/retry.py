import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .constants import APP_NAME, MAX_RETRIES, RETRY_DELAY
from .process import NonZeroExitError

logger = logging.getLogger(APP_NAME)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded, fixed-delay retry policy for the push.

    Attributes:
        max_retries (int): Retries after the first attempt, so
                           `max_retries + 1` attempts in total.
        delay (float): Seconds to wait between attempts.
    """

    max_retries: int = MAX_RETRIES
    delay: float = RETRY_DELAY

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")

    @property
    def attempts(self) -> int:
        return self.max_retries + 1


def push_with_retries(
    push: Callable[[], object],
    policy: RetryPolicy | None = None,
    stop_event: threading.Event | None = None,
) -> bool:
    """Runs `push` until it succeeds or the policy's attempts are used up.

    A failed attempt (nonzero exit) is followed by a fixed wait on
    `stop_event`. If the event is set while waiting, the loop is abandoned
    immediately and the event is left set for the caller to observe.

    Args:
        push (Callable[[], object]): Performs one push attempt. Signals failure
                                     by raising NonZeroExitError.
        policy (RetryPolicy | None, optional): Attempt bound and delay.
        stop_event (threading.Event | None, optional): Set by an external
                                                       shutdown request.

    Returns:
        bool: True on the first successful attempt, False if every attempt
              failed or the wait was interrupted.

    Raises:
        ProcessLaunchError: If the push command cannot be started. Launch
                            failures are not retried.
    """
    policy = policy or RetryPolicy()
    stop_event = stop_event or threading.Event()

    for attempt in range(policy.attempts):
        try:
            push()
            return True
        except NonZeroExitError as e:
            logger.warning(
                f"Git push failed (Attempt {attempt + 1}/{policy.attempts}): {e}"
            )

        if attempt < policy.max_retries:
            logger.info(f"Retrying push in {policy.delay:g}s...")
            if stop_event.wait(policy.delay):
                logger.error("Retry interrupted by shutdown request. Giving up on push.")
                return False

    return False
