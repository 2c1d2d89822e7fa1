"""
Bounded-parallelism gate for registry requests.
"""

from __future__ import annotations

import os
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Deque, Optional, Tuple


MIN_CONCURRENCY = 2
MAX_CONCURRENCY = 10


def default_concurrency() -> int:
    """Concurrency derived from CPU count, clamped to [2, 10]."""
    return min(MAX_CONCURRENCY, max(MIN_CONCURRENCY, os.cpu_count() or 4))


_Pending = Tuple[Future, Callable[..., Any], tuple, dict]


class ConcurrencyLimiter:
    """Admit at most ``capacity`` operations at a time, FIFO.

    Each scheduled call gets its own future which resolves or fails
    independently; a failing operation frees its slot like any other.
    """

    def __init__(self, capacity: Optional[int] = None) -> None:
        if capacity is None:
            capacity = default_concurrency()
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._lock = threading.Lock()
        self._queue: Deque[_Pending] = deque()
        self._active = 0
        self._executor = ThreadPoolExecutor(
            max_workers=capacity, thread_name_prefix="dependency-lens"
        )

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def schedule(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue ``fn(*args, **kwargs)`` and return a future for its result."""
        future: Future = Future()
        with self._lock:
            self._queue.append((future, fn, args, kwargs))
        self._admit()
        return future

    def _admit(self) -> None:
        admitted = []
        with self._lock:
            while self._queue and self._active < self.capacity:
                admitted.append(self._queue.popleft())
                self._active += 1
        for item in admitted:
            try:
                self._executor.submit(self._run, *item)
            except RuntimeError as exc:
                # Executor already shut down; give the slot back and fail this call.
                with self._lock:
                    self._active -= 1
                item[0].set_exception(exc)

    def _run(self, future: Future, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        try:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = fn(*args, **kwargs)
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)
        finally:
            with self._lock:
                self._active -= 1
            self._admit()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> ConcurrencyLimiter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown(wait=True)
