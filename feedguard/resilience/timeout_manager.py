"""
Timeout management for acquisition attempts.

Provides:
- bounded_call(): race one attempt against a hard deadline
- classify_failure(): map raised exceptions onto FailureReason
- TimeoutManager: per-source timeout lookup used by the failover controller

A timed-out attempt is cancelled on a best-effort basis. Its late result,
if it ever arrives, is consumed and dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from .outcome import Failure, FailureReason, RequestOutcome, Success

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]


@dataclass
class TimeoutConfig:
    """
    Timeouts for the two source roles.

    All times in seconds. `fallback=None` means the fallback attempt
    shares the primary per-attempt timeout.
    """
    per_attempt: float = 3.0
    fallback: Optional[float] = None

    def __post_init__(self):
        if self.per_attempt <= 0:
            raise ValueError("per_attempt timeout must be positive")
        if self.fallback is not None and self.fallback <= 0:
            raise ValueError("fallback timeout must be positive")


def classify_failure(error: BaseException) -> FailureReason:
    """
    Map an exception raised by an operation to a FailureReason.

    Anything carrying an integer status code becomes SERVER_REJECTED,
    cancellation becomes ABORTED, everything else TRANSPORT_ERROR.
    """
    if isinstance(error, asyncio.CancelledError):
        return FailureReason.aborted()

    if isinstance(error, httpx.HTTPStatusError):
        return FailureReason.server_rejected(error.response.status_code, str(error))

    status_code = getattr(error, 'status_code', None)
    if isinstance(status_code, int) and not isinstance(status_code, bool):
        detail = getattr(error, 'detail', None)
        return FailureReason.server_rejected(status_code, detail)

    detail = str(error) or type(error).__name__
    return FailureReason.transport_error(detail)


def _drain(task: "asyncio.Future[Any]") -> None:
    # Retrieve the abandoned task's outcome so asyncio does not warn about it
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Abandoned attempt finished with {type(error).__name__}: {error}")
    else:
        logger.debug("Abandoned attempt completed after its deadline; result dropped")


def _abandon(task: "asyncio.Future[Any]") -> None:
    try:
        task.cancel()
        task.add_done_callback(_drain)
    except Exception as e:
        logger.debug(f"Cancelling abandoned attempt failed: {e}")


async def bounded_call(op: Operation, timeout: float) -> RequestOutcome:
    """
    Run one attempt of `op` under a hard deadline.

    Args:
        op: Zero-argument callable returning an awaitable
        timeout: Deadline in seconds

    Returns:
        Success(value) or Failure(reason); never raises for failures of `op`

    Raises:
        asyncio.CancelledError: If the caller itself is cancelled

    Example:
        outcome = await bounded_call(lambda: transport.issue(request), 3.0)
        if outcome.ok:
            use(outcome.value)
    """
    if timeout <= 0:
        raise ValueError("timeout must be positive")

    try:
        task = asyncio.ensure_future(op())
    except Exception as e:
        return Failure(classify_failure(e))

    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        _abandon(task)
        raise

    if not done:
        _abandon(task)
        logger.debug(f"Attempt exceeded timeout of {timeout}s")
        return Failure(FailureReason.timeout(timeout))

    if task.cancelled():
        return Failure(FailureReason.aborted())

    error = task.exception()
    if error is not None:
        return Failure(classify_failure(error))

    return Success(task.result())


class TimeoutManager:
    """
    Resolves the deadline for each source role and runs bounded calls.

    Example:
        timeouts = TimeoutManager(TimeoutConfig(per_attempt=2.0))
        outcome = await timeouts.run_fallback(fetch_fixture)
    """

    def __init__(self, config: Optional[TimeoutConfig] = None):
        self.config = config or TimeoutConfig()

    @property
    def primary_timeout(self) -> float:
        return self.config.per_attempt

    @property
    def fallback_timeout(self) -> float:
        if self.config.fallback is None:
            return self.config.per_attempt
        return self.config.fallback

    async def run_fallback(self, op: Operation) -> RequestOutcome:
        """Single fallback attempt under the fallback deadline."""
        return await bounded_call(op, self.fallback_timeout)
