"""
Resilience primitives for data acquisition.

This module provides:
- Backoff policies and the delay scheduler
- Bounded calls (one attempt under a hard deadline)
- The retry driver (Tenacity)
- Outcome and failure types
"""

from .backoff import BackoffKind, BackoffPolicy, delay_for
from .outcome import (
    AcquisitionAborted,
    AcquisitionError,
    BothSourcesFailed,
    Failure,
    FailureKind,
    FailureReason,
    PrimarySourceFailed,
    RequestOutcome,
    ServerRejectedError,
    SourceOrigin,
    SourceResult,
    Success,
    TransportError,
)
from .retry_policy import BackoffWait, RetryPolicy, run_with_retry
from .timeout_manager import TimeoutConfig, TimeoutManager, bounded_call, classify_failure

__all__ = [
    'BackoffKind',
    'BackoffPolicy',
    'delay_for',
    'AcquisitionAborted',
    'AcquisitionError',
    'BothSourcesFailed',
    'Failure',
    'FailureKind',
    'FailureReason',
    'PrimarySourceFailed',
    'RequestOutcome',
    'ServerRejectedError',
    'SourceOrigin',
    'SourceResult',
    'Success',
    'TransportError',
    'BackoffWait',
    'RetryPolicy',
    'run_with_retry',
    'TimeoutConfig',
    'TimeoutManager',
    'bounded_call',
    'classify_failure',
]
