"""
Observability for acquisitions.

This module provides:
- Metrics collection with Prometheus
- Per-acquisition latency breakdowns
- A structured acquisition event log
"""

from .event_log import (
    AcquisitionEvent,
    AcquisitionEventLog,
    EventLogConfig,
    EventType,
    SeverityLevel,
)
from .latency_tracker import AcquisitionBreakdown, AttemptRecord, LatencyTracker
from .metrics_registry import MetricsRegistry

__all__ = [
    'AcquisitionEvent',
    'AcquisitionEventLog',
    'EventLogConfig',
    'EventType',
    'SeverityLevel',
    'AcquisitionBreakdown',
    'AttemptRecord',
    'LatencyTracker',
    'MetricsRegistry',
]
