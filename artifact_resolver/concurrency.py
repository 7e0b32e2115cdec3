"""
Thread-safe helpers shared by collection and materialization.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from .errors import ResolutionCancelled


logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlightCache(Generic[T]):
    """Cache where each key is computed at most once.

    The first caller for a key runs the loader; concurrent callers for the
    same key wait for that result (or exception) instead of loading again.
    Failures are cached unless `cache_errors` is False, in which case the
    next caller after a failure loads again.
    """

    def __init__(self, name: str = "cache", cache_errors: bool = True) -> None:
        self.name = name
        self.cache_errors = cache_errors
        self._lock = threading.Lock()
        self._futures: Dict[Hashable, "Future[T]"] = {}

    def get_or_load(
        self,
        key: Hashable,
        loader: Callable[[], T],
        timeout: Optional[float] = None,
    ) -> T:
        with self._lock:
            future = self._futures.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._futures[key] = future

        if not owner:
            logger.debug("Cache hit: %s %s", self.name, key)
            return future.result(timeout=timeout)

        try:
            future.set_result(loader())
        except BaseException as e:
            future.set_exception(e)
            if not self.cache_errors:
                with self._lock:
                    self._futures.pop(key, None)
        return future.result()

    def peek(self, key: Hashable) -> Optional["Future[T]"]:
        with self._lock:
            return self._futures.get(key)

    def discard(self, key: Hashable) -> None:
        """Forget a key so the next caller loads it again."""
        with self._lock:
            self._futures.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._futures

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)


class TimedCall(Generic[T]):
    """A call submitted to an executor whose timeout starts when it runs.

    Time spent queued behind busy workers is not charged to the call.
    """

    def __init__(self, executor: Executor, fn: Callable[..., T], *args: Any) -> None:
        self._started = threading.Event()
        self._start_time = 0.0
        self.future: "Future[T]" = executor.submit(self._run, fn, args)

    def _run(self, fn: Callable[..., T], args) -> T:
        self._start_time = time.monotonic()
        self._started.set()
        return fn(*args)

    def result(self, timeout: Optional[float] = None) -> T:
        """Return the call's result, raising TimeoutError once it has run for `timeout` seconds."""
        if timeout is None:
            return self.future.result()
        while not self._started.wait(timeout=min(timeout, 0.05)):
            if self.future.done():
                # cancelled before it ever ran
                return self.future.result()
        remaining = self._start_time + timeout - time.monotonic()
        return self.future.result(timeout=max(remaining, 0.0))


class CancellationToken:
    """Cooperative cancellation signal for a resolution."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ResolutionCancelled("Resolution was cancelled")
