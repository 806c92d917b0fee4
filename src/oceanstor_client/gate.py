"""Admission gate bounding concurrent requests per client."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from .exceptions import CallCancelledError


class AdmissionGate:
    """Counting semaphore with an introspectable number of free slots."""

    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self._semaphore = threading.BoundedSemaphore(max_concurrency)
        self._lock = threading.Lock()
        self._in_use = 0

    def acquire(self, timeout: float | None = None) -> bool:
        """Block until a slot is free; return False only if ``timeout`` elapses."""

        acquired = self._semaphore.acquire(timeout=timeout)
        if acquired:
            with self._lock:
                self._in_use += 1
        return acquired

    def release(self) -> None:
        with self._lock:
            if self._in_use == 0:
                raise ValueError("AdmissionGate released more times than acquired")
            self._in_use -= 1
        self._semaphore.release()

    @property
    def available(self) -> int:
        with self._lock:
            return self.max_concurrency - self._in_use

    @contextmanager
    def slot(self, timeout: float | None = None) -> Iterator[None]:
        if not self.acquire(timeout=timeout):
            raise CallCancelledError("Timed out waiting for an admission slot.")
        try:
            yield
        finally:
            self.release()


__all__ = ["AdmissionGate"]
