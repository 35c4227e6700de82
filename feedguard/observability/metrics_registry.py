"""
Prometheus metrics registry for acquisition monitoring.

Collects and exposes metrics for:
- Acquisitions by origin and status
- Attempts by source and outcome
- Attempt and end-to-end latency
- Acquisitions currently in flight
"""

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from ..resilience.outcome import Failure, RequestOutcome, SourceOrigin

logger = logging.getLogger(__name__)


class MetricsRegistry:
    """
    Centralized metrics registry for acquisitions.

    Each instance owns a private CollectorRegistry so several registries
    can coexist in one process.

    Example:
        metrics = MetricsRegistry()
        metrics.record_attempt(SourceOrigin.PRIMARY, outcome, 0.2)
        metrics.record_acquisition(status="success", origin=SourceOrigin.FALLBACK, latency=1.1)
        text = metrics.export_metrics()
    """

    def __init__(self, namespace: str = "feedguard"):
        self.registry = CollectorRegistry()
        self.namespace = namespace

        self.acquisitions = Counter(
            f'{namespace}_acquisitions_total',
            'Acquisitions completed',
            ['origin', 'status'],  # primary/fallback/none, success/error
            registry=self.registry
        )

        self.attempts = Counter(
            f'{namespace}_attempts_total',
            'Bounded calls made against a source',
            ['source', 'outcome'],  # success, timeout, transport_error, ...
            registry=self.registry
        )

        self.attempt_latency = Histogram(
            f'{namespace}_attempt_latency_seconds',
            'Latency of a single bounded call',
            ['source'],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 3.0, 5.0],
            registry=self.registry
        )

        self.acquisition_latency = Histogram(
            f'{namespace}_acquisition_latency_seconds',
            'End-to-end acquisition latency including retries and fallback',
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0],
            registry=self.registry
        )

        self.active_acquisitions = Gauge(
            f'{namespace}_active_acquisitions',
            'Acquisitions currently in flight',
            registry=self.registry
        )

        logger.info("Prometheus metrics registry initialized")

    def record_attempt(self, source: SourceOrigin, outcome: RequestOutcome, latency: float) -> None:
        """
        Record one bounded call.

        Args:
            source: Source the call was made against
            outcome: Outcome of the call
            latency: Duration in seconds
        """
        label = outcome.reason.kind.value if isinstance(outcome, Failure) else "success"
        try:
            self.attempts.labels(source=source.value, outcome=label).inc()
            self.attempt_latency.labels(source=source.value).observe(latency)
        except Exception as e:
            logger.error(f"Failed to record attempt metrics: {e}")

    def record_acquisition(self, status: str, origin=None, latency: float = 0.0) -> None:
        """
        Record a finished acquisition.

        Args:
            status: success or error
            origin: SourceOrigin that answered, None on error
            latency: End-to-end duration in seconds
        """
        try:
            self.acquisitions.labels(
                origin=origin.value if origin else "none",
                status=status
            ).inc()
            self.acquisition_latency.observe(latency)
        except Exception as e:
            logger.error(f"Failed to record acquisition metrics: {e}")

    def increment_active(self) -> None:
        try:
            self.active_acquisitions.inc()
        except Exception as e:
            logger.error(f"Failed to increment active acquisitions: {e}")

    def decrement_active(self) -> None:
        try:
            self.active_acquisitions.dec()
        except Exception as e:
            logger.error(f"Failed to decrement active acquisitions: {e}")

    def sample(self, name: str, labels=None) -> float:
        """Current value of a sample, 0.0 when it has not been recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def export_metrics(self) -> bytes:
        """
        Export metrics in Prometheus format.

        Returns:
            Prometheus-formatted metrics text
        """
        try:
            return generate_latest(self.registry)
        except Exception as e:
            logger.error(f"Failed to export metrics: {e}")
            return b""

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST
