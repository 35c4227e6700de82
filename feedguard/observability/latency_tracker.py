"""
Latency tracking for acquisitions.

Tracks, per acquisition:
- Each primary attempt and the fallback attempt
- Time spent waiting in backoff
- Total end-to-end time
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..resilience.outcome import Failure, RequestOutcome, SourceOrigin

logger = logging.getLogger(__name__)


@dataclass
class AttemptRecord:
    """One bounded call made during an acquisition."""
    source: SourceOrigin
    index: int
    elapsed: float
    ok: bool
    failure: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source.value,
            'index': self.index,
            'elapsed_seconds': self.elapsed,
            'ok': self.ok,
            'failure': self.failure,
        }


@dataclass
class AcquisitionBreakdown:
    """
    Latency breakdown for a single acquisition.

    All times in seconds. Backoff time is whatever part of the total
    was not spent inside an attempt.
    """
    key: Any = None
    attempts: List[AttemptRecord] = field(default_factory=list)
    total: float = 0.0
    origin: Optional[SourceOrigin] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def primary(self) -> float:
        return sum(a.elapsed for a in self.attempts if a.source is SourceOrigin.PRIMARY)

    @property
    def fallback(self) -> float:
        return sum(a.elapsed for a in self.attempts if a.source is SourceOrigin.FALLBACK)

    @property
    def backoff(self) -> float:
        return max(0.0, self.total - self.primary - self.fallback)

    def slowest_attempt(self) -> Optional[AttemptRecord]:
        if not self.attempts:
            return None
        return max(self.attempts, key=lambda a: a.elapsed)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            'key': str(self.key),
            'origin': self.origin.value if self.origin else None,
            'primary_seconds': self.primary,
            'backoff_seconds': self.backoff,
            'fallback_seconds': self.fallback,
            'total_seconds': self.total,
            'attempts': [a.to_dict() for a in self.attempts],
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
        }


class LatencyTracker:
    """
    Builds an AcquisitionBreakdown for one acquisition.

    Example:
        tracker = LatencyTracker()
        tracker.start("scenario-1")
        tracker.record_attempt(SourceOrigin.PRIMARY, 0, outcome, 0.12)
        breakdown = tracker.finish(SourceOrigin.PRIMARY)
    """

    def __init__(self):
        self.current: Optional[AcquisitionBreakdown] = None
        self._started_at: Optional[float] = None

    def start(self, key: Any) -> None:
        self.current = AcquisitionBreakdown(key=key, start_time=datetime.now(timezone.utc))
        self._started_at = time.monotonic()

    def record_attempt(
        self,
        source: SourceOrigin,
        index: int,
        outcome: RequestOutcome,
        elapsed: float
    ) -> None:
        if self.current is None:
            return
        failure = outcome.reason.describe() if isinstance(outcome, Failure) else None
        self.current.attempts.append(
            AttemptRecord(source=source, index=index, elapsed=elapsed, ok=failure is None, failure=failure)
        )

    def finish(self, origin: Optional[SourceOrigin] = None) -> Optional[AcquisitionBreakdown]:
        """
        End tracking and compute the total.

        Args:
            origin: Source that answered, None when the acquisition failed
        """
        if self.current is None:
            return None

        breakdown = self.current
        breakdown.total = time.monotonic() - self._started_at
        breakdown.end_time = datetime.now(timezone.utc)
        breakdown.origin = origin

        self.current = None
        self._started_at = None

        logger.debug(
            f"Acquisition {breakdown.key!r} took {breakdown.total:.3f}s "
            f"({len(breakdown.attempts)} attempts, backoff {breakdown.backoff:.3f}s)"
        )
        return breakdown
