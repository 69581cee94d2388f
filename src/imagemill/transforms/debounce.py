"""Trailing-edge debouncing of field edits."""

import threading
from collections.abc import Callable
from typing import Any, Protocol

from imagemill.logging_config import get_logger

logger = get_logger(__name__)


class TimerHandle(Protocol):
    """The slice of threading.Timer the debouncer relies on."""

    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class ChangeDebouncer:
    """Collapse bursts of calls into one trailing invocation.

    Each call cancels the pending invocation (if any) and schedules a new
    one `delay_ms` later. Only the last call's arguments reach `callback`;
    superseded calls are dropped, not queued.

    Example:
        stage = ChangeDebouncer(controller_stage, delay_ms=1000)
        stage("prompt", "s")
        stage("prompt", "sky")   # only this one fires, one second later
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay_ms: int,
        timer_factory: TimerFactory = threading.Timer,
    ):
        """Initialize the debouncer.

        Args:
            callback: Function invoked with the last call's arguments
            delay_ms: Quiet period in milliseconds
            timer_factory: Builds a timer from (seconds, function);
                tests inject a manual clock here
        """
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        self.callback = callback
        self.delay_ms = delay_ms
        self._timer_factory = timer_factory
        # Re-entrant so a timer factory may call cancel() while building
        self._lock = threading.RLock()
        self._timer: TimerHandle | None = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}
        # Bumped on every schedule/cancel so a stale timer firing late is ignored
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        """True while an invocation is scheduled but has not fired."""
        with self._lock:
            return self._timer is not None

    def __call__(self, *args: Any, **kwargs: Any) -> bool:
        return self.trigger(*args, **kwargs)

    def trigger(self, *args: Any, **kwargs: Any) -> bool:
        """Schedule `callback(*args, **kwargs)`, replacing any pending call.

        Returns:
            False if the debouncer is closed and nothing was scheduled
        """
        with self._lock:
            if self._closed:
                logger.debug("Debouncer closed; dropping call for %r", self.callback)
                return False
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            self._args = args
            self._kwargs = kwargs
            timer = self._timer_factory(
                self.delay_ms / 1000.0,
                lambda: self._fire(generation),
            )
            timer.daemon = True
            self._timer = timer
        # Started outside the lock: a timer may fire on the calling thread
        timer.start()
        return True

    def cancel(self) -> bool:
        """Drop the pending invocation.

        Returns:
            True if an invocation was pending
        """
        with self._lock:
            return self._cancel_locked()

    def close(self) -> bool:
        """Drop the pending invocation and refuse any later trigger.

        Returns:
            True if an invocation was pending
        """
        with self._lock:
            self._closed = True
            return self._cancel_locked()

    def flush(self) -> bool:
        """Run the pending invocation now instead of waiting.

        Returns:
            True if an invocation was pending and ran
        """
        with self._lock:
            if self._timer is None:
                return False
            generation = self._generation
        return self._fire(generation)

    def _cancel_locked(self) -> bool:
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        self._generation += 1
        self._args = ()
        self._kwargs = {}
        return True

    def _fire(self, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return False
            args, kwargs = self._args, self._kwargs
            # No-op when called from the timer's own thread; stops it on flush()
            self._timer.cancel()
            self._timer = None
            self._args = ()
            self._kwargs = {}

        try:
            self.callback(*args, **kwargs)
        except Exception:
            # Timer threads have nobody to raise to
            logger.exception("Debounced callback %r failed", self.callback)
        return True
