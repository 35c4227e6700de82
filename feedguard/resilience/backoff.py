"""
Backoff policies and the delay scheduler.

delay_for() is pure: no I/O, no clock, same answer for the same inputs.
"""

import math
from dataclasses import dataclass
from enum import Enum


class BackoffKind(str, Enum):
    """Growth rule for the wait between attempts."""
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Immutable retry budget and backoff shape.

    All durations in seconds.
    """
    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 3.0
    kind: BackoffKind = BackoffKind.EXPONENTIAL

    def __post_init__(self):
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise TypeError("max_retries must be an integer")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        for name in ('base_delay', 'max_delay'):
            value = getattr(self, name)
            if math.isnan(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative number")
        if self.base_delay > self.max_delay:
            raise ValueError("base_delay must not exceed max_delay")
        object.__setattr__(self, 'kind', BackoffKind(self.kind))

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1


def delay_for(attempt: int, policy: BackoffPolicy) -> float:
    """
    Seconds to wait after attempt `attempt` failed, before the next one.

    Args:
        attempt: Zero-based index of the attempt that just failed
        policy: Backoff policy

    Returns:
        Delay clamped to [0, policy.max_delay]
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")

    if policy.base_delay == 0:
        return 0.0

    try:
        if policy.kind is BackoffKind.EXPONENTIAL:
            delay = policy.base_delay * math.ldexp(1.0, attempt)
        else:
            delay = policy.base_delay * (attempt + 1)
    except OverflowError:
        return policy.max_delay

    if math.isinf(delay) or math.isnan(delay):
        return policy.max_delay
    return max(0.0, min(delay, policy.max_delay))
