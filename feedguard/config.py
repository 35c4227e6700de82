"""
Acquisition configuration.

Options can be built in code or read from the environment (a `.env`
file is loaded first when present):

    FEEDGUARD_TIMEOUT_PER_ATTEMPT   seconds, default 3.0
    FEEDGUARD_MAX_RETRIES           default 2
    FEEDGUARD_BASE_DELAY            seconds, default 0.5
    FEEDGUARD_MAX_DELAY             seconds, default 3.0
    FEEDGUARD_BACKOFF_KIND          linear | exponential
    FEEDGUARD_ENABLE_FALLBACK       true | false
    FEEDGUARD_API_BASE              primary API base URL
    FEEDGUARD_FALLBACK_BASE         fallback base URL or fixtures directory
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from .resilience.backoff import BackoffKind, BackoffPolicy

logger = logging.getLogger(__name__)

ENV_PREFIX = "FEEDGUARD_"

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}

V = TypeVar("V")


class ConfigurationError(ValueError):
    """Raised when an option has an invalid value."""
    pass


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean, got {raw!r}")


@dataclass(frozen=True)
class AcquisitionOptions:
    """
    Options recognised by the failover controller and sessions.

    All durations in seconds.
    """
    timeout_per_attempt: float = 3.0
    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 3.0
    backoff_kind: BackoffKind = BackoffKind.EXPONENTIAL
    enable_fallback: bool = True

    def __post_init__(self):
        if self.timeout_per_attempt <= 0:
            raise ConfigurationError("timeout_per_attempt must be positive")
        try:
            object.__setattr__(self, 'backoff_kind', BackoffKind(self.backoff_kind))
            self.backoff_policy()
        except (TypeError, ValueError) as e:
            raise ConfigurationError(str(e)) from e

    def backoff_policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            kind=self.backoff_kind,
        )

    def replace(self, **overrides) -> "AcquisitionOptions":
        """Copy with some options overridden."""
        return dataclasses.replace(self, **overrides)

    def to_dict(self) -> dict:
        return {
            'timeout_per_attempt': self.timeout_per_attempt,
            'max_retries': self.max_retries,
            'base_delay': self.base_delay,
            'max_delay': self.max_delay,
            'backoff_kind': self.backoff_kind.value,
            'enable_fallback': self.enable_fallback,
        }

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "AcquisitionOptions":
        """
        Build options from environment variables.

        Args:
            prefix: Variable name prefix
            environ: Mapping to read instead of os.environ
            dotenv: Load a `.env` file into os.environ first

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        parsers = {
            'timeout_per_attempt': float,
            'max_retries': int,
            'base_delay': float,
            'max_delay': float,
            'backoff_kind': lambda raw: BackoffKind(raw.strip().lower()),
            'enable_fallback': _parse_bool,
        }

        values = {}
        for field_name, parser in parsers.items():
            value = _read(environ, f"{prefix}{field_name.upper()}", parser)
            if value is not None:
                values[field_name] = value

        options = cls(**values)
        logger.debug(f"Acquisition options loaded from environment: {options.to_dict()}")
        return options


def _read(environ: Mapping[str, str], name: str, parser: Callable[[str], V]) -> Optional[V]:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return parser(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name}: {e}") from e


@dataclass(frozen=True)
class SourceConfig:
    """Where the primary and fallback camera sources live."""
    api_base: str = "http://localhost:8000/api"
    fallback_base: str = "data"

    @property
    def fallback_is_remote(self) -> bool:
        return self.fallback_base.startswith(('http://', 'https://'))

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "SourceConfig":
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ
        defaults = cls()
        return cls(
            api_base=environ.get(f"{prefix}API_BASE") or defaults.api_base,
            fallback_base=environ.get(f"{prefix}FALLBACK_BASE") or defaults.fallback_base,
        )
