"""
Primary/fallback source failover.

The primary source runs through the retry driver. Once its budget is
spent, the fallback source gets exactly one attempt, bounded by the same
per-attempt timeout unless a separate fallback timeout is configured.
The controller keeps no state between acquisitions.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .config import AcquisitionOptions
from .observability.event_log import AcquisitionEventLog
from .observability.latency_tracker import AcquisitionBreakdown, LatencyTracker
from .observability.metrics_registry import MetricsRegistry
from .resilience.outcome import (
    BothSourcesFailed,
    Failure,
    PrimarySourceFailed,
    RequestOutcome,
    SourceOrigin,
    SourceResult,
)
from .resilience.retry_policy import RetryPolicy, Sleep
from .resilience.timeout_manager import TimeoutConfig, TimeoutManager

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Any]]


class SourceFailoverController:
    """
    Acquires a resource from a primary source with fallback.

    Example:
        controller = SourceFailoverController(AcquisitionOptions(max_retries=2))
        result = await controller.acquire(
            "scenario-1",
            fetch_primary=lambda: api.cameras("scenario-1"),
            fetch_fallback=lambda: fixtures.cameras("scenario-1")
        )
        if result.is_fallback:
            warn_stale()
    """

    def __init__(
        self,
        options: Optional[AcquisitionOptions] = None,
        metrics: Optional[MetricsRegistry] = None,
        event_log: Optional[AcquisitionEventLog] = None,
        fallback_timeout: Optional[float] = None,
        on_breakdown: Optional[Callable[[AcquisitionBreakdown], None]] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize failover controller.

        Args:
            options: Default acquisition options
            metrics: Prometheus metrics registry
            event_log: Acquisition event log
            fallback_timeout: Deadline for the fallback attempt, defaults to
                the per-attempt timeout
            on_breakdown: Called with the latency breakdown of every finished acquisition
            sleep: Coroutine used for backoff waits
        """
        self.options = options or AcquisitionOptions()
        self.metrics = metrics
        self.event_log = event_log
        self.fallback_timeout = fallback_timeout
        self.on_breakdown = on_breakdown
        self.sleep = sleep

    async def acquire(
        self,
        key: Any,
        fetch_primary: Fetch,
        fetch_fallback: Optional[Fetch] = None,
        options: Optional[AcquisitionOptions] = None,
    ) -> SourceResult:
        """
        Acquire `key` from the primary source, failing over when exhausted.

        Args:
            key: Resource identity, used for logging only
            fetch_primary: Zero-argument coroutine factory for the primary source
            fetch_fallback: Zero-argument coroutine factory for the fallback source
            options: Per-call override of the controller's options

        Returns:
            SourceResult tagged with the origin that answered

        Raises:
            PrimarySourceFailed: Primary exhausted, no fallback attempted
            BothSourcesFailed: Primary exhausted and the fallback attempt failed
        """
        options = options or self.options
        tracker = LatencyTracker()
        tracker.start(key)

        if self.metrics:
            self.metrics.increment_active()
        try:
            return await self._acquire(key, fetch_primary, fetch_fallback, options, tracker)
        finally:
            if self.metrics:
                self.metrics.decrement_active()

    async def _acquire(self, key, fetch_primary, fetch_fallback, options, tracker) -> SourceResult:
        timeouts = TimeoutManager(TimeoutConfig(
            per_attempt=options.timeout_per_attempt,
            fallback=self.fallback_timeout
        ))

        def on_primary_attempt(index: int, outcome: RequestOutcome, elapsed: float) -> None:
            self._record_attempt(key, SourceOrigin.PRIMARY, index, outcome, elapsed, tracker)

        retry_policy = RetryPolicy(timeouts.primary_timeout, options.backoff_policy(), sleep=self.sleep)
        primary = await retry_policy.run(fetch_primary, on_attempt=on_primary_attempt)
        if not isinstance(primary, Failure):
            return self._succeed(key, primary.value, SourceOrigin.PRIMARY, tracker)

        fallback_enabled = options.enable_fallback and fetch_fallback is not None
        logger.warning(f"Primary source failed for {key!r}: {primary.reason}")
        if self.event_log:
            self.event_log.log_primary_exhausted(key, primary.reason, fallback_enabled)

        if not fallback_enabled:
            raise self._fail(PrimarySourceFailed(key, primary.reason), tracker)

        started = time.monotonic()
        fallback = await timeouts.run_fallback(fetch_fallback)
        self._record_attempt(key, SourceOrigin.FALLBACK, 0, fallback, time.monotonic() - started, tracker)

        if isinstance(fallback, Failure):
            raise self._fail(BothSourcesFailed(key, primary.reason, fallback.reason), tracker)

        logger.info(f"Using fallback data for {key!r}")
        if self.event_log:
            self.event_log.log_fallback_used(key)
        return self._succeed(key, fallback.value, SourceOrigin.FALLBACK, tracker)

    def _record_attempt(self, key, source, index, outcome, elapsed, tracker) -> None:
        tracker.record_attempt(source, index, outcome, elapsed)
        if self.metrics:
            self.metrics.record_attempt(source, outcome, elapsed)
        if self.event_log and isinstance(outcome, Failure):
            self.event_log.log_attempt_failed(key, source, index, outcome.reason)

    def _succeed(self, key, value, origin: SourceOrigin, tracker: LatencyTracker) -> SourceResult:
        breakdown = self._finish(tracker, origin)
        if self.metrics:
            self.metrics.record_acquisition("success", origin, breakdown.total)
        if self.event_log:
            self.event_log.log_acquired(key, origin, breakdown.total)
        return SourceResult(value=value, origin=origin)

    def _fail(self, error, tracker: LatencyTracker):
        breakdown = self._finish(tracker, None)
        logger.error(str(error))
        if self.metrics:
            self.metrics.record_acquisition("error", None, breakdown.total)
        if self.event_log:
            self.event_log.log_acquisition_failed(error.key, error)
        return error

    def _finish(self, tracker: LatencyTracker, origin: Optional[SourceOrigin]) -> AcquisitionBreakdown:
        breakdown = tracker.finish(origin)
        if self.on_breakdown is not None:
            try:
                self.on_breakdown(breakdown)
            except Exception as e:
                logger.error(f"Breakdown hook failed: {e}")
        return breakdown
