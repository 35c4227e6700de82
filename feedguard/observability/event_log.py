"""
Acquisition event log.

Structured record of what happened during acquisitions: failed attempts,
fallback switches, terminal failures and superseded sessions.
"""

import logging
import logging.handlers
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from ..resilience.outcome import FailureReason, SourceOrigin


class EventType(Enum):
    """Types of acquisition events"""
    ATTEMPT_FAILED = "attempt_failed"
    PRIMARY_EXHAUSTED = "primary_exhausted"
    FALLBACK_USED = "fallback_used"
    ACQUIRED = "acquired"
    ACQUISITION_FAILED = "acquisition_failed"
    SUPERSEDED = "superseded"


class SeverityLevel(Enum):
    """Severity levels for acquisition events"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LEVELS = {
    SeverityLevel.DEBUG: logging.DEBUG,
    SeverityLevel.INFO: logging.INFO,
    SeverityLevel.WARNING: logging.WARNING,
    SeverityLevel.ERROR: logging.ERROR,
}


@dataclass
class AcquisitionEvent:
    """Acquisition event data structure"""
    timestamp: str
    event_type: str
    severity: str
    key: str
    message: str
    source: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EventLogConfig:
    """Configuration for the acquisition event log"""
    logger_name: str = "feedguard.events"
    log_dir: str = "logs"
    log_file: str = "acquisition.log"
    json_format: bool = True
    console_output: bool = False
    file_output: bool = False
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    log_attempts: bool = True


class AcquisitionEventLog:
    """
    Event log for acquisitions.

    Features:
    - Structured JSON file output (python-json-logger) with rotation
    - Optional console output
    - Events always propagate to the standard logging hierarchy
    - Per-type counters
    """

    def __init__(self, config: Optional[EventLogConfig] = None):
        """
        Initialize event log

        Args:
            config: Event log configuration (uses defaults if None)
        """
        self.config = config or EventLogConfig()

        self.logger = logging.getLogger(self.config.logger_name)
        self.logger.setLevel(logging.DEBUG)
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if self.config.file_output:
            os.makedirs(self.config.log_dir, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                os.path.join(self.config.log_dir, self.config.log_file),
                maxBytes=self.config.max_file_size,
                backupCount=self.config.backup_count
            )
            if self.config.json_format:
                formatter = JsonFormatter(
                    '%(asctime)s %(levelname)s %(name)s %(message)s'
                )
            else:
                formatter = logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if self.config.console_output:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            self.logger.addHandler(console_handler)

        self.event_counts = {event_type.value: 0 for event_type in EventType}
        self.total_events = 0

    def log_event(self,
                  event_type: EventType,
                  severity: SeverityLevel,
                  key: Any,
                  message: str,
                  source: Optional[SourceOrigin] = None,
                  metadata: Optional[Dict[str, Any]] = None) -> AcquisitionEvent:
        """
        Log an acquisition event

        Args:
            event_type: Type of event
            severity: Severity level
            key: Resource key the acquisition was for
            message: Human-readable message
            source: Source involved, if any
            metadata: Additional metadata
        """
        event = AcquisitionEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event_type=event_type.value,
            severity=severity.value,
            key=str(key),
            message=message,
            source=source.value if source else None,
            metadata=metadata
        )

        if self.config.json_format:
            self.logger.log(_LEVELS[severity], message, extra={'event': event.to_dict()})
        else:
            self.logger.log(_LEVELS[severity], f"[{event.event_type}] {event.key} - {message}")

        self.event_counts[event_type.value] += 1
        self.total_events += 1
        return event

    def log_attempt_failed(self, key: Any, source: SourceOrigin, index: int, reason: FailureReason):
        if not self.config.log_attempts:
            return
        self.log_event(
            event_type=EventType.ATTEMPT_FAILED,
            severity=SeverityLevel.DEBUG,
            key=key,
            message=f"{source.value} attempt {index + 1} failed: {reason.describe()}",
            source=source,
            metadata={'attempt': index, 'reason': reason.to_dict()}
        )

    def log_primary_exhausted(self, key: Any, reason: FailureReason, fallback_available: bool):
        self.log_event(
            event_type=EventType.PRIMARY_EXHAUSTED,
            severity=SeverityLevel.WARNING,
            key=key,
            message=f"Primary source exhausted: {reason.describe()}",
            source=SourceOrigin.PRIMARY,
            metadata={'reason': reason.to_dict(), 'fallback_available': fallback_available}
        )

    def log_fallback_used(self, key: Any):
        self.log_event(
            event_type=EventType.FALLBACK_USED,
            severity=SeverityLevel.INFO,
            key=key,
            message="Using fallback data",
            source=SourceOrigin.FALLBACK
        )

    def log_acquired(self, key: Any, origin: SourceOrigin, latency: float):
        self.log_event(
            event_type=EventType.ACQUIRED,
            severity=SeverityLevel.DEBUG,
            key=key,
            message=f"Acquired from {origin.value} in {latency:.3f}s",
            source=origin,
            metadata={'latency_seconds': latency}
        )

    def log_acquisition_failed(self, key: Any, error: Exception):
        self.log_event(
            event_type=EventType.ACQUISITION_FAILED,
            severity=SeverityLevel.ERROR,
            key=key,
            message=str(error),
            metadata={
                'error_type': type(error).__name__,
                'reasons': error.reasons() if hasattr(error, 'reasons') else None
            }
        )

    def log_superseded(self, key: Any, generation: int):
        self.log_event(
            event_type=EventType.SUPERSEDED,
            severity=SeverityLevel.DEBUG,
            key=key,
            message=f"Dropped result of superseded generation {generation}",
            metadata={'generation': generation}
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            'total_events': self.total_events,
            'events_by_type': dict(self.event_counts),
            'log_file': os.path.join(self.config.log_dir, self.config.log_file) if self.config.file_output else None,
            'json_format': self.config.json_format,
        }
