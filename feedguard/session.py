"""
Acquisition sessions.

A session is the state a view binds to while it asks for one resource:

    IDLE -> LOADING -> LOADED (primary or fallback)
                    -> FAILED

Every sequence a session starts is stamped with a generation number.
A result is applied only if its generation is still the session's
current one, so a superseded request can never overwrite newer state.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from .config import AcquisitionOptions
from .failover import SourceFailoverController
from .observability.event_log import AcquisitionEventLog
from .resilience.outcome import AcquisitionAborted, AcquisitionError, SourceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyedFetch = Callable[[Any], Awaitable[Any]]
Listener = Callable[["SessionState"], None]
MessageFactory = Callable[[BaseException, bool], str]

DEFAULT_FAILURE_MESSAGE = "Unable to load data. Check the network connection or contact an administrator."
DEFAULT_NO_FALLBACK_MESSAGE = "Unable to connect to the server. Please try again later."


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionState(Generic[T]):
    """
    Snapshot of a session.

    Only the fields belonging to `status` are set: `result` for LOADED,
    `message` and `error` for FAILED.
    """
    status: SessionStatus
    key: Any = None
    result: Optional[SourceResult] = None
    message: Optional[str] = None
    error: Optional[BaseException] = None
    generation: int = 0

    @classmethod
    def idle(cls) -> "SessionState":
        return cls(SessionStatus.IDLE)

    @classmethod
    def loading(cls, key: Any, generation: int) -> "SessionState":
        return cls(SessionStatus.LOADING, key=key, generation=generation)

    @classmethod
    def loaded(cls, key: Any, result: SourceResult, generation: int) -> "SessionState":
        return cls(SessionStatus.LOADED, key=key, result=result, generation=generation)

    @classmethod
    def failed(cls, key: Any, message: str, error: BaseException, generation: int) -> "SessionState":
        return cls(SessionStatus.FAILED, key=key, message=message, error=error, generation=generation)

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.LOADING

    @property
    def is_using_fallback(self) -> bool:
        return self.result is not None and self.result.is_fallback

    @property
    def value(self) -> Optional[T]:
        return self.result.value if self.result is not None else None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'status': self.status.value,
            'key': self.key,
            'generation': self.generation,
        }
        if self.result is not None:
            data['origin'] = self.result.origin.value
        if self.status is SessionStatus.FAILED:
            data['message'] = self.message
            data['error'] = str(self.error)
            if isinstance(self.error, AcquisitionError):
                data['reasons'] = self.error.reasons()
        return data


def default_failure_message(error: BaseException, fallback_enabled: bool) -> str:
    return DEFAULT_FAILURE_MESSAGE if fallback_enabled else DEFAULT_NO_FALLBACK_MESSAGE


class AcquisitionSession(Generic[T]):
    """
    Per-view acquisition state machine with manual retry.

    Must be driven from a running event loop.

    Example:
        session = AcquisitionSession(api.cameras, fixtures.cameras)
        session.subscribe(render)
        session.start_or_restart("scenario-1")
        ...
        if session.state.status is SessionStatus.FAILED:
            session.retry()
    """

    def __init__(
        self,
        fetch_primary: KeyedFetch,
        fetch_fallback: Optional[KeyedFetch] = None,
        controller: Optional[SourceFailoverController] = None,
        options: Optional[AcquisitionOptions] = None,
        event_log: Optional[AcquisitionEventLog] = None,
        failure_message: MessageFactory = default_failure_message,
        cancel_superseded: bool = True,
    ):
        """
        Initialize session.

        Args:
            fetch_primary: Coroutine function taking the key, primary source
            fetch_fallback: Coroutine function taking the key, fallback source
            controller: Failover controller, a default one is built if None
            options: Acquisition options passed to every acquire() call
            event_log: Acquisition event log
            failure_message: Builds the user-facing message for FAILED
            cancel_superseded: Cancel the in-flight task when a newer request arrives
        """
        self.fetch_primary = fetch_primary
        self.fetch_fallback = fetch_fallback
        self.controller = controller or SourceFailoverController(options, event_log=event_log)
        self.options = options or self.controller.options
        self.event_log = event_log
        self.failure_message = failure_message
        self.cancel_superseded = cancel_superseded

        self._state: SessionState = SessionState.idle()
        self._key: Any = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def key(self) -> Any:
        return self._key

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with every new state.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def start_or_restart(self, key: Any) -> asyncio.Task:
        """
        Start acquiring `key`, superseding whatever is in flight.

        Returns:
            Task running the new sequence
        """
        loop = asyncio.get_running_loop()

        previous = self._task
        if previous is not None and not previous.done():
            if self.event_log:
                self.event_log.log_superseded(self._key, self._generation)
            if self.cancel_superseded:
                previous.cancel()

        self._generation += 1
        generation = self._generation
        self._key = key
        self._set_state(SessionState.loading(key, generation))

        self._task = loop.create_task(self._run(key, generation))
        self._task.add_done_callback(functools.partial(self._on_done, key, generation))
        return self._task

    def retry(self) -> Optional[asyncio.Task]:
        """
        Restart the current key from attempt 0.

        No-op while a sequence is in flight or before any key was requested.
        """
        if self._state.is_loading and self._task is not None and not self._task.done():
            logger.debug(f"Retry ignored, {self._key!r} is already loading")
            return None
        if self._state.status is SessionStatus.IDLE:
            return None
        return self.start_or_restart(self._key)

    async def wait(self) -> SessionState:
        """Wait until the latest sequence has settled and return the state."""
        while True:
            task = self._task
            if task is None or task.done():
                return self._state
            await asyncio.wait({task})

    def close(self) -> None:
        """
        Cancel the in-flight sequence and drop any late result.

        A session closed while loading is left FAILED, so retry() can restart it.
        """
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._listeners.clear()
        if self._state.is_loading:
            self._set_state(self._aborted(self._state.key, self._generation))

    async def _run(self, key: Any, generation: int) -> None:
        fetch_fallback = None
        if self.fetch_fallback is not None:
            fetch_fallback = functools.partial(self.fetch_fallback, key)

        try:
            result = await self.controller.acquire(
                key,
                functools.partial(self.fetch_primary, key),
                fetch_fallback,
                self.options,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not isinstance(e, AcquisitionError):
                logger.error(f"Unexpected error acquiring {key!r}: {e}")
            message = self.failure_message(e, self._fallback_enabled())
            self._apply(generation, SessionState.failed(key, message, e, generation))
            return

        self._apply(generation, SessionState.loaded(key, result, generation))

    def _on_done(self, key: Any, generation: int, task: asyncio.Task) -> None:
        # A cancelled current sequence must not leave the session LOADING
        if task.cancelled() and generation == self._generation and self._state.is_loading:
            self._set_state(self._aborted(key, generation))

    def _fallback_enabled(self) -> bool:
        return self.options.enable_fallback and self.fetch_fallback is not None

    def _aborted(self, key: Any, generation: int) -> SessionState:
        error = AcquisitionAborted(key)
        logger.warning(str(error))
        message = self.failure_message(error, self._fallback_enabled())
        return SessionState.failed(key, message, error, generation)

    def _apply(self, generation: int, state: SessionState) -> bool:
        if generation != self._generation:
            logger.debug(f"Dropping result for {state.key!r} from stale generation {generation}")
            if self.event_log:
                self.event_log.log_superseded(state.key, generation)
            return False
        self._set_state(state)
        return True

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    def __repr__(self) -> str:
        return f"<AcquisitionSession key={self._key!r} status={self._state.status.value} generation={self._generation}>"
