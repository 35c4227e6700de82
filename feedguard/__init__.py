"""
Feed acquisition components
Timeout, retry and primary/fallback failover for dashboard data sources
"""

from .config import AcquisitionOptions, ConfigurationError, SourceConfig
from .failover import SourceFailoverController
from .resilience import (
    AcquisitionAborted,
    AcquisitionError,
    BackoffKind,
    BackoffPolicy,
    BothSourcesFailed,
    Failure,
    FailureKind,
    FailureReason,
    PrimarySourceFailed,
    ServerRejectedError,
    SourceOrigin,
    SourceResult,
    Success,
    TransportError,
    bounded_call,
    delay_for,
    run_with_retry,
)
from .session import AcquisitionSession, SessionState, SessionStatus

__version__ = "0.1.0"

__all__ = [
    'AcquisitionOptions',
    'ConfigurationError',
    'SourceConfig',
    'SourceFailoverController',
    'AcquisitionAborted',
    'AcquisitionError',
    'BackoffKind',
    'BackoffPolicy',
    'BothSourcesFailed',
    'Failure',
    'FailureKind',
    'FailureReason',
    'PrimarySourceFailed',
    'ServerRejectedError',
    'SourceOrigin',
    'SourceResult',
    'Success',
    'TransportError',
    'bounded_call',
    'delay_for',
    'run_with_retry',
    'AcquisitionSession',
    'SessionState',
    'SessionStatus',
]
