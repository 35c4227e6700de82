"""
Retry driver with linear or exponential backoff using Tenacity.

Provides:
- BackoffWait: Tenacity wait strategy backed by delay_for()
- run_with_retry(): sequential bounded attempts until success or budget exhaustion
- RetryPolicy: reusable driver bound to one timeout and backoff policy

Failed attempts are returned as Failure outcomes rather than raised, so
Tenacity retries on the result and hands back the last failure once the
budget is spent.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from .backoff import BackoffPolicy, delay_for
from .outcome import Failure, RequestOutcome
from .timeout_manager import Operation, bounded_call

logger = logging.getLogger(__name__)

AttemptHook = Callable[[int, RequestOutcome, float], None]
Sleep = Callable[[float], Awaitable[None]]


class BackoffWait(wait_base):
    """Tenacity wait strategy that delegates to delay_for()."""

    def __init__(self, policy: BackoffPolicy) -> None:
        self.policy = policy

    def __call__(self, retry_state) -> float:  # type: ignore[override]
        # tenacity counts attempts from 1
        return delay_for(retry_state.attempt_number - 1, self.policy)


def _is_failure(outcome: RequestOutcome) -> bool:
    return isinstance(outcome, Failure)


def _last_outcome(retry_state) -> RequestOutcome:
    return retry_state.outcome.result()


async def run_with_retry(
    op: Operation,
    timeout_per_attempt: float,
    policy: BackoffPolicy,
    on_attempt: Optional[AttemptHook] = None,
    sleep: Sleep = asyncio.sleep,
) -> RequestOutcome:
    """
    Run `op` until it succeeds or `policy.max_retries + 1` attempts have failed.

    Args:
        op: Zero-argument callable returning an awaitable
        timeout_per_attempt: Deadline for each attempt in seconds
        policy: Retry budget and backoff shape
        on_attempt: Called as on_attempt(index, outcome, elapsed) after every attempt
        sleep: Coroutine used for the backoff wait

    Returns:
        The first Success, or the Failure of the last attempt

    Example:
        outcome = await run_with_retry(
            lambda: transport.issue(request),
            timeout_per_attempt=3.0,
            policy=BackoffPolicy(max_retries=2)
        )
    """
    attempt_index = 0

    async def attempt() -> RequestOutcome:
        nonlocal attempt_index
        index = attempt_index
        attempt_index += 1

        started = time.monotonic()
        outcome = await bounded_call(op, timeout_per_attempt)
        elapsed = time.monotonic() - started

        if isinstance(outcome, Failure):
            logger.debug(f"Attempt {index + 1}/{policy.total_attempts} failed after {elapsed:.3f}s: {outcome.reason}")
        if on_attempt is not None:
            try:
                on_attempt(index, outcome, elapsed)
            except Exception as e:
                logger.error(f"Attempt hook failed: {e}")
        return outcome

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.total_attempts),
        wait=BackoffWait(policy),
        retry=retry_if_result(_is_failure),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        retry_error_callback=_last_outcome,
        sleep=sleep,
    )
    return await retrying(attempt)


class RetryPolicy:
    """
    Retry driver bound to one per-attempt timeout and one backoff policy.

    Example:
        policy = RetryPolicy(timeout_per_attempt=3.0, backoff=BackoffPolicy(max_retries=2))
        outcome = await policy.run(fetch_cameras)
    """

    def __init__(
        self,
        timeout_per_attempt: float = 3.0,
        backoff: Optional[BackoffPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize retry policy.

        Args:
            timeout_per_attempt: Deadline for each attempt in seconds
            backoff: Retry budget and backoff shape
            sleep: Coroutine used for the backoff wait
        """
        if timeout_per_attempt <= 0:
            raise ValueError("timeout_per_attempt must be positive")
        self.timeout_per_attempt = timeout_per_attempt
        self.backoff = backoff or BackoffPolicy()
        self.sleep = sleep

    async def run(self, op: Operation, on_attempt: Optional[AttemptHook] = None) -> RequestOutcome:
        return await run_with_retry(
            op,
            self.timeout_per_attempt,
            self.backoff,
            on_attempt=on_attempt,
            sleep=self.sleep,
        )
