"""Call-scoped deadline and cancellation."""

from __future__ import annotations

import threading
import time

from .exceptions import CallCancelledError


class CallContext:
    """Carry an optional deadline and a cancellation flag through one call.

    The deadline bounds the transport timeout and the admission gate wait.
    Once cancelled or expired, no further attempt of the call is started.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def bound(self, timeout: float | None) -> float | None:
        """Return ``timeout`` clipped to the time left before the deadline."""

        remaining = self.remaining()
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)

    def check(self) -> None:
        if self.cancelled:
            raise CallCancelledError("Call was cancelled.")
        if self.expired:
            raise CallCancelledError("Call deadline elapsed.")


__all__ = ["CallContext"]
